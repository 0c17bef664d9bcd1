# Field storage
from .Field import GridField, DoubleField, FilterMode, Precision, get_resolution
from .FieldStorage import FieldStorage

# Devices
from .Device import Device, DeviceError, DeviceUnsupportedError, FieldAllocationError
from .NumpyDevice import NumpyDevice
from .Program import Program

# Simulation
from .fluid import FluidFlow, FluidFlowConfig, FluidState
from .pointer import Pointer, PointerMapper

__all__ = [
    'GridField', 'DoubleField', 'FilterMode', 'Precision', 'get_resolution', 'FieldStorage',
    'Device', 'DeviceError', 'DeviceUnsupportedError', 'FieldAllocationError', 'NumpyDevice', 'Program',
    'FluidFlow', 'FluidFlowConfig', 'FluidState', 'Pointer', 'PointerMapper',
]
