import logging
from argparse import ArgumentParser, Namespace
from os import path
from signal import signal, SIGINT
from threading import Event

from fluidcursor.Settings import Settings
from fluidcursor.flow.fluid import FluidFlowConfig


def build_settings(args: Namespace) -> Settings:
    settings: Settings
    if args.settings and path.exists(args.settings):
        logging.info(f"Loading settings from: {args.settings}")
        settings = Settings.load(args.settings)
    else:
        settings = Settings()
        if args.settings:
            logging.info(f"No settings at {args.settings}, writing defaults")
            settings.save(args.settings)

    if args.width: settings.window.width = args.width
    if args.height: settings.window.height = args.height
    if args.fullscreen: settings.window.fullscreen = True
    if args.fps is not None: settings.window.fps = args.fps

    # resolutions are fixed per config instance
    fluid_values = Settings.serialize(settings.fluid)
    if args.sim: fluid_values['sim_resolution'] = args.sim
    if args.dye: fluid_values['dye_resolution'] = args.dye
    if args.no_shading: fluid_values['shading'] = False
    if args.paused: fluid_values['paused'] = True
    settings.fluid = Settings.deserialize(fluid_values, FluidFlowConfig)
    return settings


if __name__ == '__main__':
    parser: ArgumentParser = ArgumentParser(description='Fluid cursor: stable fluids driven by the mouse')
    parser.add_argument('-s',   '--settings',   type=str,   default=None,   help='settings json file, created with defaults if missing')
    parser.add_argument('-W',   '--width',      type=int,   default=0,      help='window width')
    parser.add_argument('-H',   '--height',     type=int,   default=0,      help='window height')
    parser.add_argument('-fs',  '--fullscreen', action='store_true',        help='start fullscreen')
    parser.add_argument('-fps', '--fps',        type=int,   default=None,   help='fixed frame rate, 0 follows v-sync')
    parser.add_argument('-sim', '--sim',        type=int,   default=0,      help='simulation resolution')
    parser.add_argument('-dye', '--dye',        type=int,   default=0,      help='dye resolution')
    parser.add_argument('-ns',  '--no-shading', action='store_true',        help='disable display shading')
    parser.add_argument('-p',   '--paused',     action='store_true',        help='start paused')
    parser.add_argument(        '--headless',   type=int,   default=0,      metavar='FRAMES', help='run FRAMES frames offscreen and save a png')
    parser.add_argument('-o',   '--output',     type=str,   default='fluid.png', help='headless output image')
    parser.add_argument('-v',   '--verbose',    action='store_true',        help='debug logging')

    args: Namespace = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(message)s'
    )

    settings: Settings = build_settings(args)

    if args.headless > 0:
        from fluidcursor.Headless import HeadlessRunner
        runner = HeadlessRunner(settings.fluid, settings.window.width, settings.window.height, args.headless)
        runner.save(runner.run(), args.output)
        raise SystemExit(0)

    from fluidcursor.Main import Main

    app = Main(settings)
    app.start()

    shutdown_event = Event()

    def signal_handler_exit(sig, frame) -> None:
        logging.info("Received interrupt signal, shutting down...")
        shutdown_event.set()
        if app.is_running:
            app.stop()

    signal(SIGINT, signal_handler_exit)

    while not app.is_finished and not shutdown_event.is_set():
        shutdown_event.wait(0.01)

    # GLFW does not always release the process on exit
    from os import _exit
    _exit(0)
