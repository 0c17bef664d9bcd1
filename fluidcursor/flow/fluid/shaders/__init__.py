"""Fluid simulation shaders."""

from .Advect import Advect
from .Clear import Clear
from .Curl import Curl
from .Display import Display
from .Divergence import Divergence
from .GradientSubtract import GradientSubtract
from .Pressure import Pressure
from .Splat import Splat
from .Vorticity import Vorticity

__all__ = [
    "Advect",
    "Clear",
    "Curl",
    "Display",
    "Divergence",
    "GradientSubtract",
    "Pressure",
    "Splat",
    "Vorticity",
]
