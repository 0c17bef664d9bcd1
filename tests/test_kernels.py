import numpy as np
import pytest

from fluidcursor.flow.Field import FilterMode
from fluidcursor.flow.FieldStorage import FieldStorage
from fluidcursor.flow.NumpyDevice import NumpyDevice
from fluidcursor.flow.fluid.shaders import (
    Advect, Clear, Curl, Display, Divergence, GradientSubtract, Pressure, Splat, Vorticity,
)

SIZE = 16


@pytest.fixture
def device():
    return NumpyDevice(SIZE, SIZE)


@pytest.fixture
def storage(device):
    return FieldStorage(device)


def cell_centers(width, height):
    xs = (np.arange(width) + 0.5) / width
    ys = (np.arange(height) + 0.5) / height
    return np.meshgrid(xs, ys)


def allocated(program, device):
    program.allocate(device)
    return program


def interior(values):
    return values[1:-1, 1:-1]


def test_curl_of_rotation(device, storage):
    velocity = storage.allocate(SIZE, SIZE, 2)
    curl = storage.allocate(SIZE, SIZE, 1, FilterMode.NEAREST)
    u, v = cell_centers(SIZE, SIZE)
    velocity.handle[..., 0] = -v
    velocity.handle[..., 1] = u

    allocated(Curl(), device).use(curl, velocity, velocity.texel_size)

    result = device.read(curl)[..., 0]
    assert interior(result) == pytest.approx(np.full((SIZE - 2, SIZE - 2), 2.0 / SIZE), abs=1e-5)


def test_divergence_of_expansion(device, storage):
    velocity = storage.allocate(SIZE, SIZE, 2)
    divergence = storage.allocate(SIZE, SIZE, 1, FilterMode.NEAREST)
    u, _ = cell_centers(SIZE, SIZE)
    velocity.handle[..., 0] = u

    allocated(Divergence(), device).use(divergence, velocity, velocity.texel_size)

    result = device.read(divergence)[..., 0]
    assert interior(result) == pytest.approx(np.full((SIZE - 2, SIZE - 2), 1.0 / SIZE), abs=1e-5)


def test_divergence_of_uniform_flow_is_zero(device, storage):
    velocity = storage.allocate(SIZE, SIZE, 2)
    divergence = storage.allocate(SIZE, SIZE, 1, FilterMode.NEAREST)
    velocity.handle[...] = (3.0, -2.0)

    allocated(Divergence(), device).use(divergence, velocity, velocity.texel_size)

    assert np.abs(device.read(divergence)).max() == pytest.approx(0.0, abs=1e-6)


def test_vorticity_without_strength_keeps_velocity(device, storage):
    velocity = storage.allocate_double(SIZE, SIZE, 2)
    curl = storage.allocate(SIZE, SIZE, 1, FilterMode.NEAREST)
    rng = np.random.default_rng(1)
    velocity.read.handle[...] = rng.normal(size=(SIZE, SIZE, 2))

    allocated(Curl(), device).use(curl, velocity.read, velocity.texel_size)
    allocated(Vorticity(), device).use(velocity.write, velocity.read, curl, velocity.texel_size, 0.0, 0.016)

    assert device.read(velocity.write) == pytest.approx(device.read(velocity.read), abs=1e-6)


def test_vorticity_adds_force(device, storage):
    velocity = storage.allocate_double(SIZE, SIZE, 2)
    curl = storage.allocate(SIZE, SIZE, 1, FilterMode.NEAREST)
    u, v = cell_centers(SIZE, SIZE)
    falloff = np.exp(-((u - 0.5) ** 2 + (v - 0.5) ** 2) / 0.02)
    velocity.read.handle[..., 0] = -(v - 0.5) * falloff
    velocity.read.handle[..., 1] = (u - 0.5) * falloff

    allocated(Curl(), device).use(curl, velocity.read, velocity.texel_size)
    allocated(Vorticity(), device).use(velocity.write, velocity.read, curl, velocity.texel_size, 30.0, 0.016)

    after = device.read(velocity.write)
    assert np.isfinite(after).all()
    assert not np.allclose(after, device.read(velocity.read))


def test_clear_scales_pressure(device, storage):
    pressure = storage.allocate_double(SIZE, SIZE, 1, FilterMode.NEAREST)
    pressure.read.handle[...] = 2.0

    allocated(Clear(), device).use(pressure.write, pressure.read, 0.1)

    assert device.read(pressure.write) == pytest.approx(np.full((SIZE, SIZE, 1), 0.2))


def test_jacobi_keeps_zero_solution(device, storage):
    pressure = storage.allocate_double(SIZE, SIZE, 1, FilterMode.NEAREST)
    divergence = storage.allocate(SIZE, SIZE, 1, FilterMode.NEAREST)
    solver = allocated(Pressure(), device)

    for _ in range(5):
        solver.use(pressure.write, pressure.read, divergence, pressure.texel_size)
        pressure.swap()

    assert not device.read(pressure.read).any()


def test_jacobi_iteration(device, storage):
    pressure = storage.allocate_double(SIZE, SIZE, 1, FilterMode.NEAREST)
    divergence = storage.allocate(SIZE, SIZE, 1, FilterMode.NEAREST)
    divergence.handle[8, 8] = 1.0

    allocated(Pressure(), device).use(pressure.write, pressure.read, divergence, pressure.texel_size)

    result = device.read(pressure.write)[..., 0]
    assert result[8, 8] == pytest.approx(-0.25)
    assert np.count_nonzero(result) == 1


def test_gradient_subtract(device, storage):
    velocity = storage.allocate_double(SIZE, SIZE, 2)
    pressure = storage.allocate(SIZE, SIZE, 1, FilterMode.NEAREST)
    u, _ = cell_centers(SIZE, SIZE)
    pressure.handle[..., 0] = u

    allocated(GradientSubtract(), device).use(velocity.write, velocity.read, pressure, velocity.texel_size)

    result = device.read(velocity.write)
    assert interior(result[..., 0]) == pytest.approx(np.full((SIZE - 2, SIZE - 2), -2.0 / SIZE), abs=1e-5)
    assert interior(result[..., 1]) == pytest.approx(np.zeros((SIZE - 2, SIZE - 2)), abs=1e-6)


def test_advect_without_velocity_only_dissipates(device, storage):
    velocity = storage.allocate(SIZE, SIZE, 2)
    dye = storage.allocate_double(SIZE, SIZE, 4)
    rng = np.random.default_rng(3)
    dye.read.handle[...] = rng.uniform(0.0, 1.0, size=(SIZE, SIZE, 4))

    allocated(Advect(), device).use(dye.write, velocity, dye.read, velocity.texel_size, 0.016, 3.5)

    expected = device.read(dye.read) / (1.0 + 3.5 * 0.016)
    assert device.read(dye.write) == pytest.approx(expected, abs=1e-5)


def test_advect_never_amplifies(device, storage):
    velocity = storage.allocate(SIZE, SIZE, 2)
    dye = storage.allocate_double(SIZE, SIZE, 4)
    rng = np.random.default_rng(5)
    velocity.handle[...] = rng.normal(scale=200.0, size=(SIZE, SIZE, 2))
    dye.read.handle[...] = rng.uniform(0.0, 1.0, size=(SIZE, SIZE, 4))

    allocated(Advect(), device).use(dye.write, velocity, dye.read, velocity.texel_size, 0.016, 1.0)

    assert device.read(dye.write).max() <= device.read(dye.read).max() + 1e-6


def test_splat_is_local(device, storage):
    dye = storage.allocate_double(32, 32, 4)
    allocated(Splat(), device).use(dye.write, dye.read, (0.5, 0.5), (0.0, 0.38, 1.0), 0.001, 1.0)

    result = device.read(dye.write)
    assert result[..., 2].max() == pytest.approx(np.exp(-2 * (1 / 64) ** 2 / 0.001), rel=1e-4)
    assert result[..., 0].max() == 0.0
    assert result[0, 0, 2] < 1e-6
    assert result[31, 31, 2] < 1e-6
    assert (result[..., 3] == 1.0).all()


def test_splat_is_local_on_wide_surface(device, storage):
    radius = 0.001
    aspect = 2.0
    dye = storage.allocate_double(64, 32, 4)
    allocated(Splat(), device).use(dye.write, dye.read, (0.5, 0.5), (0.0, 0.0, 1.0), radius, aspect)

    blue = device.read(dye.write)[..., 2]
    u, v = cell_centers(64, 32)
    distance = np.sqrt(((u - 0.5) * aspect) ** 2 + (v - 0.5) ** 2)
    far = distance > 3.0 * np.sqrt(radius)

    assert far.any()
    assert blue.max() > 0.5
    assert blue[far].max() <= np.exp(-9.0) + 1e-6


def test_splat_adds_to_base(device, storage):
    velocity = storage.allocate_double(SIZE, SIZE, 2)
    velocity.read.handle[...] = (1.0, 2.0)
    allocated(Splat(), device).use(velocity.write, velocity.read, (0.0, 0.0), (10.0, 0.0, 0.0), 0.01, 1.0)

    result = device.read(velocity.write)
    assert result[SIZE - 1, SIZE - 1] == pytest.approx((1.0, 2.0))
    assert result[0, 0, 0] > 1.0


def test_display_alpha_is_brightest_channel(device, storage):
    dye = storage.allocate(SIZE, SIZE, 4)
    dye.handle[...] = (0.2, 0.6, 0.4, 1.0)

    allocated(Display(), device).use(None, dye, (1.0 / SIZE, 1.0 / SIZE), False)

    surface = device.read(None)
    assert surface[4, 4] == pytest.approx((0.2, 0.6, 0.4, 0.6))


def test_display_blends_over_surface(device, storage):
    dye = storage.allocate(SIZE, SIZE, 4)
    dye.handle[...] = (0.5, 0.0, 0.0, 1.0)
    device.clear(None, (0.0, 0.0, 1.0, 1.0))

    allocated(Display(), device).use(None, dye, (1.0 / SIZE, 1.0 / SIZE), False)

    assert device.read(None)[0, 0] == pytest.approx((0.5, 0.0, 0.5, 1.0))


def test_display_shading_on_flat_dye(device, storage):
    dye = storage.allocate(SIZE, SIZE, 4)
    dye.handle[...] = (0.5, 0.5, 0.5, 1.0)

    allocated(Display(), device).use(None, dye, (1.0 / SIZE, 1.0 / SIZE), True)

    assert device.read(None)[3, 3] == pytest.approx((0.5, 0.5, 0.5, 0.5), abs=1e-5)
