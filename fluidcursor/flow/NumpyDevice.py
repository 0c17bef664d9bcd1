"""Headless shading device running the CPU rendition of each program on numpy arrays.

Texture sampling follows GL conventions: texel centers at (i + 0.5) / size,
clamp-to-edge addressing, bilinear or nearest filtering, and single channel
textures read back as (r, 0, 0, 1).
"""

import logging
from typing import Any, Iterable, Mapping, Sequence

import numpy as np

from .Device import Device, FieldAllocationError, Uniform
from .Field import FilterMode, GridField, Precision
from .Program import Program, VariantCache


def sample_linear(data: np.ndarray, u: np.ndarray, v: np.ndarray) -> np.ndarray:
    """Bilinear sample of a (h, w, C) array at uv coordinates, clamped to edge."""
    h, w = data.shape[:2]
    x = np.nan_to_num(u * w - 0.5, nan=0.0, posinf=w, neginf=-1.0)
    y = np.nan_to_num(v * h - 0.5, nan=0.0, posinf=h, neginf=-1.0)
    x0 = np.floor(x)
    y0 = np.floor(y)
    fx = (x - x0)[..., None]
    fy = (y - y0)[..., None]

    x0i = np.clip(x0, 0, w - 1).astype(np.intp)
    x1i = np.clip(x0 + 1, 0, w - 1).astype(np.intp)
    y0i = np.clip(y0, 0, h - 1).astype(np.intp)
    y1i = np.clip(y0 + 1, 0, h - 1).astype(np.intp)

    bottom = data[y0i, x0i] * (1.0 - fx) + data[y0i, x1i] * fx
    top = data[y1i, x0i] * (1.0 - fx) + data[y1i, x1i] * fx
    return (bottom * (1.0 - fy) + top * fy).astype(np.float32)


def sample_nearest(data: np.ndarray, u: np.ndarray, v: np.ndarray) -> np.ndarray:
    h, w = data.shape[:2]
    x = np.nan_to_num(np.floor(u * w), nan=0.0, posinf=w, neginf=0.0)
    y = np.nan_to_num(np.floor(v * h), nan=0.0, posinf=h, neginf=0.0)
    xi = np.clip(x, 0, w - 1).astype(np.intp)
    yi = np.clip(y, 0, h - 1).astype(np.intp)
    return data[yi, xi].astype(np.float32)


def to_vec4(values: np.ndarray) -> np.ndarray:
    channels: int = values.shape[-1]
    if channels == 4:
        return values
    out = np.zeros(values.shape[:-1] + (4,), dtype=np.float32)
    out[..., :channels] = values
    out[..., 3] = 1.0
    return out


class SampleContext:
    """What a program's CPU rendition sees: cell coordinates, textures, uniforms, keywords."""

    def __init__(self, width: int, height: int, textures: Mapping[str, GridField],
                 uniforms: Mapping[str, Uniform], keywords: frozenset[str]) -> None:
        self.width: int = width
        self.height: int = height
        self.textures: Mapping[str, GridField] = textures
        self.uniforms: Mapping[str, Uniform] = uniforms
        self.keywords: frozenset[str] = keywords

        xs = (np.arange(width, dtype=np.float32) + 0.5) / np.float32(width)
        ys = (np.arange(height, dtype=np.float32) + 0.5) / np.float32(height)
        self.u, self.v = np.meshgrid(xs, ys)

    @property
    def uv(self) -> tuple[np.ndarray, np.ndarray]:
        return self.u, self.v

    def uniform(self, name: str) -> Any:
        if name not in self.uniforms:
            raise KeyError(f"uniform '{name}' is not set")
        return self.uniforms[name]

    def sample(self, name: str, u: np.ndarray, v: np.ndarray) -> np.ndarray:
        """Sample a bound texture; always returns 4 channels."""
        texture: GridField = self.textures[name]
        data: np.ndarray = texture.handle
        if texture.filter_mode is FilterMode.LINEAR:
            values = sample_linear(data, u, v)
        else:
            values = sample_nearest(data, u, v)
        return to_vec4(values)

    def neighbors(self) -> tuple[tuple[np.ndarray, np.ndarray], ...]:
        """Left, right, top and bottom coordinates, one `texelSize` away."""
        tx, ty = self.uniform('texelSize')
        u, v = self.uv
        return (u - tx, v), (u + tx, v), (u, v + ty), (u, v - ty)

    def has_keyword(self, keyword: str) -> bool:
        return keyword in self.keywords


class NumpyDevice(Device):
    """CPU device. Targets are numpy arrays of shape (height, width, channels)."""

    def __init__(self, surface_width: int = 1, surface_height: int = 1, max_texture_size: int = 16384) -> None:
        super().__init__(surface_width, surface_height)
        self.max_texture_size: int = max_texture_size
        self._surface: np.ndarray = np.zeros((self.surface_height, self.surface_width, 4), dtype=np.float32)
        self._variants: dict[Program, VariantCache[frozenset[str], Any]] = {}
        self.targets_created: int = 0
        self.runs: int = 0

    def resize_surface(self, width: int, height: int) -> None:
        super().resize_surface(width, height)
        self._surface = np.zeros((self.surface_height, self.surface_width, 4), dtype=np.float32)

    def create_target(self, width: int, height: int, channels: int,
                      filter_mode: FilterMode, precision: Precision) -> np.ndarray:
        if width < 1 or height < 1 or width > self.max_texture_size or height > self.max_texture_size:
            raise FieldAllocationError(
                f"cannot create {width}x{height} target (max {self.max_texture_size})"
            )
        dtype = np.float16 if precision is Precision.HALF else np.float32
        self.targets_created += 1
        return np.zeros((height, width, channels), dtype=dtype)

    def destroy_target(self, handle: Any) -> None:
        pass

    def compile(self, program: Program, keywords: frozenset[str]) -> Any:
        cache = self._variants.get(program)
        if cache is None:
            cache = VariantCache(lambda keys: self._build(program, keys))
            self._variants[program] = cache
        return cache.get(keywords)

    @staticmethod
    def _build(program: Program, keywords: frozenset[str]) -> Any:
        if type(program).evaluate is Program.evaluate:
            logging.error(f"{program.name}: no CPU rendition")
        logging.debug(f"{program.name} variant {sorted(keywords)} ready")
        return program.evaluate

    def variant_count(self, program: Program) -> int:
        cache = self._variants.get(program)
        return len(cache) if cache is not None else 0

    def run(self, program: Program, target: GridField | None,
            textures: Mapping[str, GridField], uniforms: Mapping[str, Uniform],
            keywords: Iterable[str] = (), blend: bool = False) -> None:
        keys: frozenset[str] = frozenset(keywords)
        evaluate = self.compile(program, keys)

        data: np.ndarray = self._surface if target is None else target.handle
        height, width, channels = data.shape

        ctx = SampleContext(width, height, textures, uniforms, keys)
        output: np.ndarray = self._assemble(evaluate(ctx), height, width)

        if blend:
            dst = to_vec4(data.astype(np.float32))
            output = output + dst * (1.0 - output[..., 3:4])

        data[...] = output[..., :channels]
        self.runs += 1

    @staticmethod
    def _assemble(values: Sequence[Any], height: int, width: int) -> np.ndarray:
        output = np.zeros((height, width, 4), dtype=np.float32)
        output[..., 3] = 1.0
        for i, value in enumerate(list(values)[:4]):
            output[..., i] = np.broadcast_to(np.asarray(value, dtype=np.float32), (height, width))
        return output

    def clear(self, target: GridField | None, color: tuple[float, float, float, float]) -> None:
        data: np.ndarray = self._surface if target is None else target.handle
        data[...] = np.asarray(color, dtype=np.float32)[:data.shape[-1]]

    def read(self, target: GridField | None) -> np.ndarray:
        data: np.ndarray = self._surface if target is None else target.handle
        return data.astype(np.float32, copy=True)
