import random

import pytest

from fluidcursor.flow.NumpyDevice import NumpyDevice
from fluidcursor.flow.fluid import FluidFlow, FluidFlowConfig


SURFACE = (64, 48)


@pytest.fixture
def device():
    return NumpyDevice(*SURFACE)


@pytest.fixture
def config():
    return FluidFlowConfig(sim_resolution=16, dye_resolution=32, pressure_iterations=10)


@pytest.fixture
def flow(device, config):
    fluid = FluidFlow(device, config, rng=random.Random(7))
    fluid.initialize(SURFACE)
    yield fluid
    fluid.deallocate()
