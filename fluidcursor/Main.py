import logging

import OpenGL.GL as gl

from fluidcursor.FrameLoop import FrameClock, FrameLoop
from fluidcursor.Settings import Settings
from fluidcursor.flow.Device import DeviceError
from fluidcursor.flow.fluid import FluidFlow, FluidState
from fluidcursor.flow.pointer import MOUSE_ID
from fluidcursor.gl import Button, GLDevice, RenderWindow


class FluidWindow(RenderWindow):
    """Window that runs the fluid simulation on its GL context and feeds it the mouse.

    When the device has no float render targets the window only clears to
    the background color.
    """

    def __init__(self, settings: Settings) -> None:
        window = settings.window
        super().__init__(window.width, window.height, window.title, window.fullscreen, window.v_sync,
                         window.fps or None, window.pos_x, window.pos_y, window.monitor_id)
        self.settings: Settings = settings
        self.device: GLDevice | None = None
        self.flow: FluidFlow | None = None
        self.loop: FrameLoop | None = None

        self.addMouseCallback(self.on_mouse)
        self.addKeyboardCallback(self.on_key)

    def allocate(self) -> None:
        self.device = GLDevice(*self.surface_size)
        flow = FluidFlow(self.device, self.settings.fluid)
        try:
            self.device.probe()
            flow.initialize(self.surface_size)
        except DeviceError as e:
            logging.error(f"Fluid simulation unavailable, drawing background only: {e}")
            return

        self.flow = flow
        self.loop = FrameLoop(flow, FrameClock(), lambda: self.surface_size)

    def deallocate(self) -> None:
        if self.flow is not None:
            self.flow.deallocate()
        if self.device is not None:
            self.device.release_programs()
        self.loop = None
        self.flow = None

    def draw(self) -> None:
        if self.loop is not None:
            self.loop.tick()
        if self.flow is None or self.flow.state is not FluidState.RUNNING:
            self.draw_background()

    def draw_background(self) -> None:
        r, g, b = self.settings.fluid.back_color
        gl.glClearColor(r, g, b, 1.0)
        gl.glClear(gl.GL_COLOR_BUFFER_BIT)  # type: ignore

    def on_mouse(self, x: float, y: float, button: Button) -> None:
        if self.flow is None:
            return
        if button == Button.NONE:
            self.flow.notify_contact_move(MOUSE_ID, x, y)
        elif button == Button.LEFT_DOWN:
            self.flow.notify_contact_start(MOUSE_ID, x, y)
        elif button == Button.LEAVE:
            self.flow.notify_contact_end(MOUSE_ID)

    def on_key(self, key: bytes) -> None:
        if self.flow is None:
            return
        config = self.flow.config
        if key == b'P':
            config.paused = not config.paused
        elif key == b'S':
            config.shading = not config.shading
        elif key == b'R':
            self.flow.reset()


class Main():
    def __init__(self, settings: Settings) -> None:
        self.settings: Settings = settings
        self.is_running: bool = False
        self.is_finished: bool = False

        self.window = FluidWindow(settings)
        self.window.addExitCallback(self._on_window_exit)

    def start(self) -> None:
        logging.info(f"Starting {self.settings.window.title}")
        self.window.start()
        self.is_running = True

    def stop(self) -> None:
        self.window.stop()
        self.is_running = False
        self.is_finished = True

    def _on_window_exit(self) -> None:
        self.is_running = False
        self.is_finished = True
