"""Grid fields: device-owned 2D texel grids and their double-buffered pairs."""

from dataclasses import dataclass, field
from enum import Enum
from math import floor
from typing import Any


class FilterMode(Enum):
    LINEAR =    'linear'
    NEAREST =   'nearest'


class Precision(Enum):
    FLOAT = 'float32'
    HALF =  'float16'


@dataclass(eq=False)
class GridField:
    """Opaque handle to a 2D grid of 1, 2 or 4 floating point channels.

    Only FieldStorage creates and releases these. Kernels receive them by
    reference; `handle` is whatever the device uses for the storage.
    """
    width: int
    height: int
    channels: int
    filter_mode: FilterMode = FilterMode.LINEAR
    precision: Precision = Precision.FLOAT
    handle: Any = field(default=None, repr=False)

    @property
    def texel_size_x(self) -> float:
        return 1.0 / self.width

    @property
    def texel_size_y(self) -> float:
        return 1.0 / self.height

    @property
    def texel_size(self) -> tuple[float, float]:
        return (self.texel_size_x, self.texel_size_y)

    @property
    def allocated(self) -> bool:
        return self.handle is not None


class DoubleField:
    """Two grids of identical shape in read/write roles.

    Kernels read from `read`, render into `write`, then swap. Swapping
    exchanges the labels only, the storage handles never move.
    """

    def __init__(self, first: GridField, second: GridField) -> None:
        if (first.width, first.height, first.channels) != (second.width, second.height, second.channels):
            raise ValueError("DoubleField buffers must share width, height and channels")
        self._read: GridField = first
        self._write: GridField = second

    @property
    def read(self) -> GridField:
        return self._read

    @property
    def write(self) -> GridField:
        return self._write

    @property
    def width(self) -> int:
        return self._read.width

    @property
    def height(self) -> int:
        return self._read.height

    @property
    def channels(self) -> int:
        return self._read.channels

    @property
    def texel_size_x(self) -> float:
        return self._read.texel_size_x

    @property
    def texel_size_y(self) -> float:
        return self._read.texel_size_y

    @property
    def texel_size(self) -> tuple[float, float]:
        return self._read.texel_size

    @property
    def buffers(self) -> tuple[GridField, GridField]:
        return (self._read, self._write)

    def swap(self) -> None:
        self._read, self._write = self._write, self._read


def round_half_up(value: float) -> int:
    """Round to nearest integer with halves going up (2.5 -> 3)."""
    return int(floor(value + 0.5))


def get_resolution(resolution: float, surface_width: int, surface_height: int) -> tuple[int, int]:
    """Grid size for a target resolution on a surface, keeping cells square.

    The shorter surface axis gets round(resolution) cells, the longer axis
    round(resolution * aspect). Zero or negative sizes are clamped to 1.

    Returns:
        (width, height) in cells
    """
    surface_width = max(1, int(surface_width))
    surface_height = max(1, int(surface_height))

    aspect: float = surface_width / surface_height
    if aspect < 1.0:
        aspect = 1.0 / aspect

    short_side: int = max(1, round_half_up(resolution))
    long_side: int = max(1, round_half_up(resolution * aspect))

    if surface_width > surface_height:
        return long_side, short_side
    return short_side, long_side
