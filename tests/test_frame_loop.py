import pytest

from fluidcursor.FrameLoop import FrameClock, FrameLoop, MAX_FRAME_DT


class ScriptedTime:
    def __init__(self, *times):
        self.times = list(times)

    def __call__(self):
        return self.times.pop(0)


class RecordingFlow:
    def __init__(self):
        self.calls = []

    def tick(self, dt, surface_size=None):
        self.calls.append((dt, surface_size))


def test_clock_caps_dt():
    clock = FrameClock(time_source=ScriptedTime(0.0, 0.005, 0.5))
    assert clock.tick() == pytest.approx(0.005)
    assert clock.tick() == MAX_FRAME_DT


def test_clock_never_negative():
    clock = FrameClock(time_source=ScriptedTime(1.0, 0.9))
    assert clock.tick() == 0.0


def test_clock_reset():
    clock = FrameClock(time_source=ScriptedTime(0.0, 10.0, 10.004))
    clock.reset()
    assert clock.tick() == pytest.approx(0.004)


def test_loop_passes_dt_and_surface_size():
    flow = RecordingFlow()
    sizes = iter([(640, 480), (800, 600)])
    loop = FrameLoop(flow, FrameClock(time_source=ScriptedTime(0.0, 0.01, 0.03)), lambda: next(sizes))

    loop.tick()
    loop.tick()

    assert flow.calls[0] == (pytest.approx(0.01), (640, 480))
    assert flow.calls[1] == (pytest.approx(0.016666), (800, 600))
    assert loop.frame_count == 2


def test_loop_without_size_provider():
    flow = RecordingFlow()
    loop = FrameLoop(flow, FrameClock(time_source=ScriptedTime(0.0, 0.01)))
    assert loop.tick() == pytest.approx(0.01)
    assert flow.calls == [(pytest.approx(0.01), None)]


def test_loop_drives_simulation(flow):
    loop = FrameLoop(flow, FrameClock(time_source=ScriptedTime(0.0, 0.016, 0.032)), lambda: (64, 48))
    loop.tick()
    loop.tick()
    assert loop.frame_count == 2
    assert flow.surface_size == (64, 48)
