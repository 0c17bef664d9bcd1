"""Pointer state and the mapping from pointer samples to normalized splats."""

import random
from dataclasses import dataclass, field
from typing import Iterator

Color = tuple[float, float, float]

MOUSE_ID: int = -1

PALETTE: tuple[Color, ...] = (
    (0.0, 0.38, 1.0),   # blue
    (0.0, 1.0, 0.53),   # green
)


@dataclass
class Pointer:
    """One mouse or touch contact in normalized texture coordinates (y up)."""
    id: int = MOUSE_ID
    texcoord_x: float = 0.0
    texcoord_y: float = 0.0
    prev_texcoord_x: float = 0.0
    prev_texcoord_y: float = 0.0
    delta_x: float = 0.0
    delta_y: float = 0.0
    down: bool = False
    moved: bool = False
    color: Color = field(default=(0.0, 0.0, 0.0))


class PointerMapper:
    """Turns pixel-space contact events into pointer state for the simulation.

    Events may arrive at any time between frames; they only update pointer
    state. The simulation consumes each moved pointer once per frame, so any
    number of moves between two frames yields a single splat with the latest
    delta.
    """

    def __init__(self, width: int = 1, height: int = 1, palette: tuple[Color, ...] = PALETTE,
                 rng: random.Random | None = None) -> None:
        self.width: int = max(1, int(width))
        self.height: int = max(1, int(height))
        self.palette: tuple[Color, ...] = palette
        self._rng: random.Random = rng or random.Random()
        self._pointers: dict[int, Pointer] = {MOUSE_ID: Pointer()}

    @property
    def pointers(self) -> list[Pointer]:
        return list(self._pointers.values())

    def get(self, pointer_id: int) -> Pointer | None:
        return self._pointers.get(pointer_id)

    def resize(self, width: int, height: int) -> None:
        self.width = max(1, int(width))
        self.height = max(1, int(height))

    def generate_color(self) -> Color:
        return self._rng.choice(self.palette)

    def on_contact_start(self, pointer_id: int, x: float, y: float) -> Pointer:
        pointer: Pointer = self._pointers.setdefault(pointer_id, Pointer(id=pointer_id))
        pointer.id = pointer_id
        pointer.down = True
        pointer.moved = False
        pointer.texcoord_x = x / self.width
        pointer.texcoord_y = 1.0 - y / self.height
        pointer.prev_texcoord_x = pointer.texcoord_x
        pointer.prev_texcoord_y = pointer.texcoord_y
        pointer.delta_x = 0.0
        pointer.delta_y = 0.0
        pointer.color = self.generate_color()
        return pointer

    def on_contact_move(self, pointer_id: int, x: float, y: float, color: Color | None = None) -> Pointer:
        pointer: Pointer | None = self._pointers.get(pointer_id)
        if pointer is None or not pointer.down:
            pointer = self.on_contact_start(pointer_id, x, y)

        aspect: float = self.width / self.height
        pointer.prev_texcoord_x = pointer.texcoord_x
        pointer.prev_texcoord_y = pointer.texcoord_y
        pointer.texcoord_x = x / self.width
        pointer.texcoord_y = 1.0 - y / self.height
        pointer.delta_x = (pointer.texcoord_x - pointer.prev_texcoord_x) * max(aspect, 1.0)
        pointer.delta_y = (pointer.texcoord_y - pointer.prev_texcoord_y) * max(1.0 / aspect, 1.0)
        pointer.moved = abs(pointer.delta_x) > 0.0 or abs(pointer.delta_y) > 0.0
        if color is not None:
            pointer.color = color
        return pointer

    def on_contact_end(self, pointer_id: int) -> None:
        """Release a contact. The mouse slot stays, touch slots are dropped."""
        pointer: Pointer | None = self._pointers.get(pointer_id)
        if pointer is None:
            return
        pointer.down = False
        if pointer_id != MOUSE_ID and not pointer.moved:
            del self._pointers[pointer_id]

    def consume(self) -> Iterator[Pointer]:
        """Yield every moved pointer once, clearing its moved flag."""
        for pointer in list(self._pointers.values()):
            if pointer.moved:
                pointer.moved = False
                yield pointer
        for pointer_id in [pid for pid, p in self._pointers.items() if pid != MOUSE_ID and not p.down]:
            del self._pointers[pointer_id]
