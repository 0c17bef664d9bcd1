import random

import pytest

from fluidcursor.flow.pointer import MOUSE_ID, PALETTE, PointerMapper


@pytest.fixture
def mapper():
    return PointerMapper(200, 100, rng=random.Random(1))


def test_contact_start_maps_to_texcoords(mapper):
    pointer = mapper.on_contact_start(3, 50, 25)

    assert pointer.down
    assert not pointer.moved
    assert (pointer.texcoord_x, pointer.texcoord_y) == pytest.approx((0.25, 0.75))
    assert (pointer.prev_texcoord_x, pointer.prev_texcoord_y) == pytest.approx((0.25, 0.75))
    assert (pointer.delta_x, pointer.delta_y) == (0.0, 0.0)
    assert pointer.color in PALETTE


def test_move_delta_is_aspect_corrected(mapper):
    mapper.on_contact_start(1, 100, 50)
    pointer = mapper.on_contact_move(1, 120, 60)

    assert pointer.moved
    assert pointer.delta_x == pytest.approx(0.1 * 2.0)
    assert pointer.delta_y == pytest.approx(-0.1)


def test_portrait_delta_scales_y():
    mapper = PointerMapper(100, 200)
    mapper.on_contact_start(1, 50, 100)
    pointer = mapper.on_contact_move(1, 60, 120)

    assert pointer.delta_x == pytest.approx(0.1)
    assert pointer.delta_y == pytest.approx(-0.1 * 2.0)


def test_move_without_start_starts_implicitly(mapper):
    pointer = mapper.on_contact_move(MOUSE_ID, 40, 40)

    assert pointer.down
    assert not pointer.moved
    assert pointer.color in PALETTE


def test_zero_move_is_not_moved(mapper):
    mapper.on_contact_start(1, 10, 10)
    assert not mapper.on_contact_move(1, 10, 10).moved


def test_color_override(mapper):
    mapper.on_contact_start(1, 10, 10)
    pointer = mapper.on_contact_move(1, 20, 10, color=(1.0, 0.0, 0.0))
    assert pointer.color == (1.0, 0.0, 0.0)


def test_moves_between_frames_coalesce(mapper):
    mapper.on_contact_start(MOUSE_ID, 100, 50)
    mapper.on_contact_move(MOUSE_ID, 110, 50)
    mapper.on_contact_move(MOUSE_ID, 130, 50)
    mapper.on_contact_move(MOUSE_ID, 140, 50)

    consumed = list(mapper.consume())
    assert len(consumed) == 1
    assert consumed[0].delta_x == pytest.approx(0.05 * 2.0)
    assert list(mapper.consume()) == []


def test_contact_end_keeps_mouse(mapper):
    mapper.on_contact_start(MOUSE_ID, 10, 10)
    mapper.on_contact_end(MOUSE_ID)

    pointer = mapper.get(MOUSE_ID)
    assert pointer is not None
    assert not pointer.down


def test_contact_end_forgets_touch(mapper):
    mapper.on_contact_start(5, 10, 10)
    mapper.on_contact_end(5)
    assert mapper.get(5) is None


def test_released_touch_splats_once(mapper):
    mapper.on_contact_start(5, 10, 10)
    mapper.on_contact_move(5, 30, 10)
    mapper.on_contact_end(5)

    assert [p.id for p in mapper.consume()] == [5]
    assert mapper.get(5) is None


def test_contact_end_unknown_id(mapper):
    mapper.on_contact_end(42)
    assert [p.id for p in mapper.pointers] == [MOUSE_ID]


def test_resize_changes_mapping(mapper):
    mapper.resize(400, 0)
    pointer = mapper.on_contact_start(1, 100, 0)
    assert (pointer.texcoord_x, pointer.texcoord_y) == pytest.approx((0.25, 1.0))
