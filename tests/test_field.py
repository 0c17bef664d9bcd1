import numpy as np
import pytest

from fluidcursor.flow.Device import FieldAllocationError
from fluidcursor.flow.Field import DoubleField, FilterMode, GridField, Precision, get_resolution, round_half_up
from fluidcursor.flow.FieldStorage import FieldStorage
from fluidcursor.flow.NumpyDevice import NumpyDevice


def test_resolution_landscape_and_portrait():
    assert get_resolution(128, 1920, 1080) == (228, 128)
    assert get_resolution(128, 1080, 1920) == (128, 228)
    assert get_resolution(128, 500, 500) == (128, 128)


def test_resolution_keeps_aspect():
    width, height = get_resolution(1440, 1280, 720)
    assert height == 1440
    assert width / height == pytest.approx(1280 / 720, abs=1.0 / height)


def test_resolution_clamps_degenerate_surface():
    assert get_resolution(64, 0, 0) == (64, 64)
    assert get_resolution(64, -10, 32) == (64, 2048)
    assert get_resolution(0, 100, 50) == (1, 1)


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(2.49) == 2


def test_double_field_swap_relabels_only():
    first = GridField(4, 4, 2, handle=object())
    second = GridField(4, 4, 2, handle=object())
    double = DoubleField(first, second)
    handles = (first.handle, second.handle)

    assert double.read is first and double.write is second
    double.swap()
    assert double.read is second and double.write is first
    double.swap()
    assert double.read is first
    assert (first.handle, second.handle) == handles


def test_double_field_rejects_mismatched_buffers():
    with pytest.raises(ValueError):
        DoubleField(GridField(4, 4, 2), GridField(4, 8, 2))


def test_texel_size():
    grid = GridField(20, 10, 1)
    assert grid.texel_size == (0.05, 0.1)


def test_storage_allocates_zeroed_fields():
    device = NumpyDevice()
    storage = FieldStorage(device)
    grid = storage.allocate(8, 4, 2, FilterMode.NEAREST)

    data = device.read(grid)
    assert data.shape == (4, 8, 2)
    assert not data.any()
    assert grid.filter_mode is FilterMode.NEAREST
    assert storage.fields == [grid]


def test_storage_half_precision():
    device = NumpyDevice()
    grid = FieldStorage(device).allocate(4, 4, 4, precision=Precision.HALF)
    assert grid.handle.dtype == np.float16
    assert device.read(grid).dtype == np.float32


def test_storage_rejects_three_channels():
    with pytest.raises(ValueError):
        FieldStorage(NumpyDevice()).allocate(4, 4, 3)


def test_storage_clamps_zero_size():
    grid = FieldStorage(NumpyDevice()).allocate(0, -3, 1)
    assert (grid.width, grid.height) == (1, 1)


def test_double_allocation_is_independent():
    device = NumpyDevice()
    double = FieldStorage(device).allocate_double(4, 4, 1)
    double.write.handle[...] = 1.0
    assert not device.read(double.read).any()

    FieldStorage.swap(double)
    assert device.read(double.read).min() == 1.0


def test_storage_release_all():
    device = NumpyDevice()
    storage = FieldStorage(device)
    double = storage.allocate_double(4, 4, 4)
    single = storage.allocate(4, 4, 1)

    storage.release_all()
    assert storage.fields == []
    assert not single.allocated
    assert not double.read.allocated and not double.write.allocated


def test_storage_allocation_failure():
    storage = FieldStorage(NumpyDevice(max_texture_size=32))
    with pytest.raises(FieldAllocationError):
        storage.allocate(64, 8, 2)
    assert storage.fields == []
