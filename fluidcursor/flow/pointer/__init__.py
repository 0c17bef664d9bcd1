from .Pointer import Pointer, PointerMapper, PALETTE, MOUSE_ID, Color
