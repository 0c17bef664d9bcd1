from time import time
import math

class FpsCounter:
    def __init__(self, numSamples = 120) -> None:
        self._times: list[float] = []
        self.numSamples: int = numSamples

    def tick(self) -> None:
        now: float = time()
        self._times.append(now)
        if len(self._times) > self.numSamples:
            self._times.pop(0)

    def get_fps(self) -> int:
        if len(self._times) < 2:
            return 0
        diff: float = self._times[-1] - self._times[0]
        if diff == 0:
            return 0
        return int(math.floor(len(self._times) / diff))

    def get_min_fps(self) -> int:
        """Lowest instantaneous fps over the sample window."""
        if len(self._times) < 2:
            return 0
        longest: float = max(b - a for a, b in zip(self._times, self._times[1:]))
        if longest == 0:
            return 0
        return int(math.floor(1.0 / longest))
