import numpy as np

from fluidcursor.Headless import HeadlessRunner
from fluidcursor.flow.fluid import FluidFlowConfig, FluidState


def small_runner(frames=8):
    config = FluidFlowConfig(sim_resolution=8, dye_resolution=16, pressure_iterations=5)
    return HeadlessRunner(config, 32, 24, frames)


def test_run_produces_surface():
    runner = small_runner()
    surface = runner.run()

    assert surface.shape == (24, 32, 4)
    assert np.isfinite(surface).all()
    assert surface.max() > 0.0
    assert runner.flow.state is FluidState.RUNNING
    assert runner.loop.frame_count == 8


def test_runs_are_reproducible():
    assert np.array_equal(small_runner().run(), small_runner().run())


def test_save_png(tmp_path):
    runner = small_runner(frames=3)
    image = HeadlessRunner.to_image(runner.run())
    assert image.size == (32, 24)
    assert image.mode == 'RGBA'

    path = tmp_path / 'out.png'
    runner.save(runner.run(), str(path))
    assert path.exists()
