"""Base class for per-cell programs (the simulation's stage kernels).

Each program carries a GLSL fragment source for GPU devices and a numpy
rendition (`evaluate`) for the headless device. Both read their inputs
through the same names: bound textures and uniforms.
"""

from typing import Any, Callable, Generic, Hashable, Iterable, Mapping, Sequence, TypeVar, TYPE_CHECKING

from .Field import GridField

if TYPE_CHECKING:
    from .Device import Device, Uniform
    from .NumpyDevice import SampleContext


K = TypeVar('K', bound=Hashable)
V = TypeVar('V')


BASE_VERTEX_SHADER = """#version 460 core

layout(location = 0) in vec2 position;

uniform vec2 texelSize;

out vec2 vUv;
out vec2 vL;
out vec2 vR;
out vec2 vT;
out vec2 vB;

void main() {
    vUv = position * 0.5 + 0.5;
    vL = vUv - vec2(texelSize.x, 0.0);
    vR = vUv + vec2(texelSize.x, 0.0);
    vT = vUv + vec2(0.0, texelSize.y);
    vB = vUv - vec2(0.0, texelSize.y);
    gl_Position = vec4(position, 0.0, 1.0);
}
"""


def add_keywords(source: str, keywords: Iterable[str]) -> str:
    """Insert a #define per keyword directly after the #version line."""
    defines: str = ''.join(f"#define {keyword}\n" for keyword in sorted(keywords))
    if not defines:
        return source
    if source.startswith('#version'):
        version, _, body = source.partition('\n')
        return f"{version}\n{defines}{body}"
    return defines + source


class VariantCache(Generic[K, V]):
    """Lazily built, memoized mapping from a variant key to a compiled value."""

    def __init__(self, build: Callable[[K], V]) -> None:
        self._build: Callable[[K], V] = build
        self._variants: dict[K, V] = {}

    def get(self, key: K) -> V:
        if key not in self._variants:
            self._variants[key] = self._build(key)
        return self._variants[key]

    def values(self) -> list[V]:
        return list(self._variants.values())

    def clear(self) -> None:
        self._variants.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._variants

    def __len__(self) -> int:
        return len(self._variants)


class Program:
    """A per-cell program run by a Device.

    Subclasses set FRAGMENT_SOURCE, implement evaluate(), and expose a
    domain-specific use(...) that binds textures and uniforms.
    """

    VERTEX_SOURCE: str = BASE_VERTEX_SHADER
    FRAGMENT_SOURCE: str = ''

    def __init__(self) -> None:
        self.device: 'Device | None' = None
        self.allocated: bool = False

    @property
    def name(self) -> str:
        return self.__class__.__name__

    def allocate(self, device: 'Device', keywords: Iterable[str] = ()) -> None:
        """Bind to a device and compile the default variant. Safe to call multiple times."""
        if self.allocated and self.device is device:
            return
        self.device = device
        device.compile(self, frozenset(keywords))
        self.allocated = True

    def deallocate(self) -> None:
        self.allocated = False
        self.device = None

    def fragment_source(self, keywords: Iterable[str] = ()) -> str:
        return add_keywords(self.FRAGMENT_SOURCE, keywords)

    def evaluate(self, ctx: 'SampleContext') -> Sequence[Any]:
        """CPU rendition: return the output channels (r, g, b, a) for every cell."""
        raise NotImplementedError(f"{self.name} has no CPU rendition")

    def _draw(self, target: GridField | None, textures: Mapping[str, GridField],
              keywords: Iterable[str] = (), blend: bool = False, **uniforms: 'Uniform') -> None:
        if not self.allocated or self.device is None:
            raise RuntimeError(f"{self.name} is not allocated")
        if target is not None and any(texture is target for texture in textures.values()):
            raise ValueError(f"{self.name}: target is also bound as input, render into the write buffer")
        self.device.run(self, target, textures, uniforms, keywords, blend)
