"""Offscreen run on the numpy device with a scripted pointer, for previews and CI."""

import logging
import math
import random

import numpy as np
from PIL import Image

from fluidcursor.FrameLoop import FrameClock, FrameLoop, MAX_FRAME_DT
from fluidcursor.flow.NumpyDevice import NumpyDevice
from fluidcursor.flow.fluid import FluidFlow, FluidFlowConfig
from fluidcursor.flow.pointer import MOUSE_ID


class HeadlessRunner:
    """Runs a fixed number of frames with the mouse sweeping a figure eight.

    Frames advance by a constant dt, so a run is reproducible for a given
    rng seed.
    """

    def __init__(self, config: FluidFlowConfig, width: int, height: int, frames: int,
                 dt: float = MAX_FRAME_DT, seed: int | None = 0) -> None:
        self.width: int = max(1, width)
        self.height: int = max(1, height)
        self.frames: int = max(0, frames)
        self.dt: float = dt
        self._frame: int = 0

        self.device = NumpyDevice(self.width, self.height)
        self.flow = FluidFlow(self.device, config, rng=random.Random(seed))
        self.loop = FrameLoop(self.flow, FrameClock(max_dt=dt, time_source=self._time), lambda: (self.width, self.height))

    def _time(self) -> float:
        return self._frame * self.dt

    def pointer_position(self, frame: int) -> tuple[float, float]:
        """Figure eight in window pixels, top-left origin."""
        t: float = frame / 60.0
        x: float = 0.5 + 0.35 * math.sin(t * 2.0)
        y: float = 0.5 + 0.25 * math.sin(t * 4.0)
        return x * self.width, y * self.height

    def run(self) -> np.ndarray:
        """Run every frame and return the final surface (height, width, 4), row 0 at the bottom."""
        self.flow.initialize((self.width, self.height))
        self.loop.clock.reset()

        for frame in range(self.frames):
            self._frame = frame + 1
            x, y = self.pointer_position(frame)
            self.flow.notify_contact_move(MOUSE_ID, x, y)
            self.loop.tick()
            if frame % 30 == 0:
                logging.debug(f"Headless frame {frame}/{self.frames}")

        surface: np.ndarray = self.flow.read(None)
        logging.info(f"Headless run finished: {self.frames} frames at {self.width}x{self.height}")
        return surface

    @staticmethod
    def to_image(surface: np.ndarray) -> Image.Image:
        """Premultiplied float surface to an 8 bit RGBA image, top row first."""
        pixels = np.clip(surface[::-1], 0.0, 1.0)
        return Image.fromarray((pixels * 255.0 + 0.5).astype(np.uint8))

    def save(self, surface: np.ndarray, path: str) -> None:
        HeadlessRunner.to_image(surface).save(path)
        logging.info(f"Saved surface to {path}")
