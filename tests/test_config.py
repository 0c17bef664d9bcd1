import pytest

from fluidcursor.flow.fluid import FluidFlowConfig


def test_defaults():
    config = FluidFlowConfig()
    assert config.sim_resolution == 128
    assert config.dye_resolution == 1440
    assert config.density_dissipation == 3.5
    assert config.velocity_dissipation == 2.0
    assert config.pressure == 0.1
    assert config.pressure_iterations == 20
    assert config.curl == 3.0
    assert config.splat_radius == 0.1
    assert config.splat_force == 3000.0
    assert config.shading is True
    assert config.paused is False
    assert config.back_color == (0.0, 0.0, 0.0)
    assert config.transparent is True


def test_fixed_fields_locked_after_init():
    config = FluidFlowConfig(dye_resolution=512)
    assert config.dye_resolution == 512
    with pytest.raises(AttributeError):
        config.dye_resolution = 1024


def test_undeclared_attribute():
    with pytest.raises(AttributeError):
        FluidFlowConfig().viscosity = 1.0


def test_watch_and_unwatch():
    config = FluidFlowConfig()
    changes = []
    unwatch = config.watch(changes.append, 'curl')

    config.curl = 10.0
    config.splat_force = 100.0
    unwatch()
    config.curl = 20.0

    assert changes == [10.0]


def test_watch_unknown_attribute():
    with pytest.raises(AttributeError):
        FluidFlowConfig().watch(lambda: None, 'viscosity')


def test_watch_any_field():
    config = FluidFlowConfig()
    calls = []
    config.watch(lambda: calls.append(config.paused))

    config.paused = True
    config.curl = 5.0

    assert calls == [True, True]


def test_out_of_range_warns():
    with pytest.warns(UserWarning):
        FluidFlowConfig(curl=100.0)
