"""Programmable shading device interface consumed by the fluid simulation.

A device allocates 2D float render targets, runs per-cell programs into them
with bound input textures and uniforms, and presents to a visible surface.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping, TYPE_CHECKING

import numpy as np

from .Field import FilterMode, GridField, Precision

if TYPE_CHECKING:
    from .Program import Program


Uniform = float | int | tuple[float, ...]


class DeviceError(RuntimeError):
    """Base class for shading device failures."""


class DeviceUnsupportedError(DeviceError):
    """The device cannot render into floating point targets, or a program does not compile."""


class FieldAllocationError(DeviceError):
    """A render target could not be created."""


class Device(ABC):
    """Abstract shading device.

    Targets are addressed through GridField handles. A `target` of None
    means the visible surface.
    """

    def __init__(self, surface_width: int = 1, surface_height: int = 1) -> None:
        self.surface_width: int = max(1, int(surface_width))
        self.surface_height: int = max(1, int(surface_height))

    @property
    def surface_size(self) -> tuple[int, int]:
        return self.surface_width, self.surface_height

    def resize_surface(self, width: int, height: int) -> None:
        self.surface_width = max(1, int(width))
        self.surface_height = max(1, int(height))

    def supported_channels(self, channels: int) -> int:
        """Channel count actually used for a requested layout."""
        return channels

    def supported_precision(self, precision: Precision) -> Precision:
        return precision

    @abstractmethod
    def create_target(self, width: int, height: int, channels: int,
                      filter_mode: FilterMode, precision: Precision) -> Any:
        """Create target storage and return its device handle.

        Raises:
            FieldAllocationError: If the storage could not be created
        """

    @abstractmethod
    def destroy_target(self, handle: Any) -> None: ...

    @abstractmethod
    def compile(self, program: 'Program', keywords: frozenset[str]) -> Any:
        """Compile a program variant.

        Raises:
            DeviceUnsupportedError: If the variant does not compile
        """

    @abstractmethod
    def run(self, program: 'Program', target: GridField | None,
            textures: Mapping[str, GridField], uniforms: Mapping[str, Uniform],
            keywords: Iterable[str] = (), blend: bool = False) -> None:
        """Run a program over every cell of target (or the surface when None)."""

    @abstractmethod
    def clear(self, target: GridField | None, color: tuple[float, float, float, float]) -> None: ...

    @abstractmethod
    def read(self, target: GridField | None) -> np.ndarray:
        """Read back a target as float32 array of shape (height, width, channels).

        Row 0 is the bottom row (texture v = 0).
        """

    def present(self) -> None:
        """Make the surface visible. Hosts that swap buffers themselves leave this empty."""
