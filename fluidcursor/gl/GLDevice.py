"""OpenGL shading device. Needs a current GL context on the calling thread."""

import logging
from typing import Any, Iterable, Mapping

import numpy as np
from OpenGL.GL import * # type: ignore

from fluidcursor.flow.Device import Device, DeviceUnsupportedError, FieldAllocationError, Uniform
from fluidcursor.flow.Field import FilterMode, GridField, Precision
from fluidcursor.flow.Program import Program, VariantCache
from fluidcursor.gl.Fbo import Fbo
from fluidcursor.gl.Shader import Shader, draw_quad

CHANNEL_FALLBACKS: dict[int, tuple[int, ...]] = {
    1: (1, 2, 4),
    2: (2, 4),
    4: (4,),
}


class GLDevice(Device):
    """Render targets are Fbo objects; programs run as a fullscreen quad."""

    def __init__(self, surface_width: int = 1, surface_height: int = 1) -> None:
        super().__init__(surface_width, surface_height)
        self.max_texture_size: int = 0
        self.precision: Precision = Precision.FLOAT
        self._renderable: dict[tuple[int, Precision], bool] = {}
        self._channels: dict[int, int] = {}
        self._variants: dict[Program, VariantCache[frozenset[str], Shader]] = {}

    def probe(self) -> None:
        """Find a float render target layout.

        Raises:
            DeviceUnsupportedError: If no float layout can be rendered to
        """
        self.max_texture_size = int(glGetIntegerv(GL_MAX_TEXTURE_SIZE))

        for precision in (Precision.FLOAT, Precision.HALF):
            if self._is_renderable(4, precision):
                self.precision = precision
                break
        else:
            raise DeviceUnsupportedError("no floating point render target available")

        for channels in CHANNEL_FALLBACKS:
            self._channels[channels] = self._resolve_channels(channels)

        version = glGetString(GL_VERSION)
        logging.info(
            f"GLDevice: OpenGL {version.decode('utf-8') if version else '?'}, {self.precision.value} targets, "
            f"channels {self._channels}, max texture {self.max_texture_size}"
        )

    def _is_renderable(self, channels: int, precision: Precision) -> bool:
        key = (channels, precision)
        if key not in self._renderable:
            fbo = Fbo()
            fbo.allocate(4, 4, channels, precision, FilterMode.NEAREST)
            self._renderable[key] = fbo.allocated
            fbo.deallocate()
        return self._renderable[key]

    def _resolve_channels(self, channels: int) -> int:
        for candidate in CHANNEL_FALLBACKS[channels]:
            if self._is_renderable(candidate, self.precision):
                return candidate
        raise DeviceUnsupportedError(f"no renderable layout for {channels} channels")

    def supported_channels(self, channels: int) -> int:
        if channels not in self._channels:
            self._channels[channels] = self._resolve_channels(channels)
        return self._channels[channels]

    def supported_precision(self, precision: Precision) -> Precision:
        if precision is Precision.FLOAT and self.precision is Precision.HALF:
            return Precision.HALF
        return precision

    # ========== Targets ==========

    def create_target(self, width: int, height: int, channels: int,
                      filter_mode: FilterMode, precision: Precision) -> Fbo:
        if self.max_texture_size and (width > self.max_texture_size or height > self.max_texture_size):
            raise FieldAllocationError(f"{width}x{height} exceeds max texture size {self.max_texture_size}")

        fbo = Fbo()
        fbo.allocate(width, height, channels, precision, filter_mode)
        if not fbo.allocated:
            raise FieldAllocationError(f"cannot create {width}x{height}x{channels} {precision.value} target")
        return fbo

    def destroy_target(self, handle: Any) -> None:
        handle.deallocate()

    # ========== Programs ==========

    def compile(self, program: Program, keywords: frozenset[str]) -> Shader:
        cache = self._variants.get(program)
        if cache is None:
            cache = VariantCache(lambda keys: self._build(program, keys))
            self._variants[program] = cache
        return cache.get(keywords)

    @staticmethod
    def _build(program: Program, keywords: frozenset[str]) -> Shader:
        name: str = program.name if not keywords else f"{program.name}[{','.join(sorted(keywords))}]"
        shader = Shader(name, program.VERTEX_SOURCE, program.fragment_source(keywords))
        shader.allocate()
        logging.debug(f"{name} compiled")
        return shader

    def release_programs(self) -> None:
        for cache in self._variants.values():
            for shader in cache.values():
                shader.deallocate()
        self._variants.clear()

    def run(self, program: Program, target: GridField | None,
            textures: Mapping[str, GridField], uniforms: Mapping[str, Uniform],
            keywords: Iterable[str] = (), blend: bool = False) -> None:
        shader: Shader = self.compile(program, frozenset(keywords))

        self._begin(target)
        if blend:
            glEnable(GL_BLEND)
            glBlendFunc(GL_ONE, GL_ONE_MINUS_SRC_ALPHA)
        else:
            glDisable(GL_BLEND)

        shader.begin()
        shader.set_textures({name: texture.handle.tex_id for name, texture in textures.items()})
        shader.set_uniforms(uniforms)
        draw_quad()
        shader.end()
        Shader.unbind_textures(len(textures))

        glDisable(GL_BLEND)
        self._end()

    def clear(self, target: GridField | None, color: tuple[float, float, float, float]) -> None:
        self._begin(target)
        glClearColor(*color)
        glClear(GL_COLOR_BUFFER_BIT)
        self._end()

    def read(self, target: GridField | None) -> np.ndarray:
        if target is not None:
            data: np.ndarray = target.handle.read()
            return data[..., :target.channels].copy()

        data = np.empty((self.surface_height, self.surface_width, 4), dtype=np.float32)
        glBindFramebuffer(GL_FRAMEBUFFER, 0)
        glPixelStorei(GL_PACK_ALIGNMENT, 1)
        glReadPixels(0, 0, self.surface_width, self.surface_height, GL_RGBA, GL_FLOAT, data)
        return data

    def _begin(self, target: GridField | None) -> None:
        if target is None:
            glBindFramebuffer(GL_FRAMEBUFFER, 0)
            glViewport(0, 0, self.surface_width, self.surface_height)
        else:
            target.handle.begin()

    @staticmethod
    def _end() -> None:
        glBindFramebuffer(GL_FRAMEBUFFER, 0)
