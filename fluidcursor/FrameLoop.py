"""Per-frame driver: measures frame time and advances the simulation once."""

import time
from typing import Callable

from fluidcursor.flow.fluid import FluidFlow

MAX_FRAME_DT: float = 0.016666


class FrameClock:
    """Frame time source. Returns seconds since the previous tick, capped at max_dt."""

    def __init__(self, max_dt: float = MAX_FRAME_DT, time_source: Callable[[], float] = time.perf_counter) -> None:
        self.max_dt: float = max_dt
        self._time_source: Callable[[], float] = time_source
        self._last: float = time_source()

    def reset(self) -> None:
        self._last = self._time_source()

    def tick(self) -> float:
        now: float = self._time_source()
        dt: float = min(now - self._last, self.max_dt)
        self._last = now
        return max(0.0, dt)


class FrameLoop:
    """Calls FluidFlow.tick once per host frame with the measured dt and current surface size.

    The host (a window render loop or the headless runner) decides when
    frames happen; this class owns no timer or thread.
    """

    def __init__(self, flow: FluidFlow, clock: FrameClock | None = None,
                 surface_size: Callable[[], tuple[int, int]] | None = None) -> None:
        self.flow: FluidFlow = flow
        self.clock: FrameClock = clock or FrameClock()
        self._surface_size: Callable[[], tuple[int, int]] | None = surface_size
        self.frame_count: int = 0

    def tick(self) -> float:
        """Advance one frame. Returns the dt that was used."""
        dt: float = self.clock.tick()
        size: tuple[int, int] | None = self._surface_size() if self._surface_size is not None else None
        self.flow.tick(dt, size)
        self.frame_count += 1
        return dt
