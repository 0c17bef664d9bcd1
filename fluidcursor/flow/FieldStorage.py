"""Owner of every grid field handle used by a simulation run."""

import logging

from .Device import Device, FieldAllocationError
from .Field import DoubleField, FilterMode, GridField, Precision


class FieldStorage:
    """Allocates and releases GridField handles on a device.

    No other component creates or frees device storage; kernels only
    receive the handles by reference.
    """

    def __init__(self, device: Device) -> None:
        self.device: Device = device
        self._fields: list[GridField] = []

    @property
    def fields(self) -> list[GridField]:
        return list(self._fields)

    def allocate(self, width: int, height: int, channels: int,
                 filter_mode: FilterMode = FilterMode.LINEAR,
                 precision: Precision = Precision.FLOAT) -> GridField:
        """Allocate a zeroed grid.

        Raises:
            FieldAllocationError: If the device cannot create the target
        """
        if channels not in (1, 2, 4):
            raise ValueError(f"unsupported channel count {channels}, use 1, 2 or 4")

        width = max(1, int(width))
        height = max(1, int(height))
        channels = self.device.supported_channels(channels)
        precision = self.device.supported_precision(precision)

        try:
            handle = self.device.create_target(width, height, channels, filter_mode, precision)
        except FieldAllocationError:
            raise
        except Exception as e:
            raise FieldAllocationError(f"{width}x{height}x{channels} target failed: {e}") from e

        grid = GridField(width, height, channels, filter_mode, precision, handle)
        self.device.clear(grid, (0.0, 0.0, 0.0, 0.0))
        self._fields.append(grid)
        return grid

    def allocate_double(self, width: int, height: int, channels: int,
                        filter_mode: FilterMode = FilterMode.LINEAR,
                        precision: Precision = Precision.FLOAT) -> DoubleField:
        first: GridField = self.allocate(width, height, channels, filter_mode, precision)
        second: GridField = self.allocate(width, height, channels, filter_mode, precision)
        return DoubleField(first, second)

    @staticmethod
    def swap(field: DoubleField) -> None:
        field.swap()

    def release(self, grid: GridField) -> None:
        if grid not in self._fields:
            return
        self._fields.remove(grid)
        if grid.handle is not None:
            self.device.destroy_target(grid.handle)
            grid.handle = None

    def release_all(self) -> None:
        count: int = len(self._fields)
        for grid in list(self._fields):
            self.release(grid)
        if count:
            logging.debug(f"FieldStorage: released {count} fields")
