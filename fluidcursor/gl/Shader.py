import logging
from typing import Mapping

from OpenGL.GL import * # type: ignore
from OpenGL.GL import shaders

from fluidcursor.flow.Device import DeviceUnsupportedError, Uniform


def draw_quad() -> None :
    """Fullscreen quad in clip space, vertices on attribute 0."""
    glBegin(GL_QUADS)
    glVertexAttrib2f(0, -1.0, -1.0)
    glVertexAttrib2f(0,  1.0, -1.0)
    glVertexAttrib2f(0,  1.0,  1.0)
    glVertexAttrib2f(0, -1.0,  1.0)
    glEnd()


class Shader():
    """One compiled program variant: vertex + fragment source with keyword defines applied."""

    def __init__(self, shader_name: str, vertex_source: str, fragment_source: str) -> None:
        self.shader_name: str = shader_name
        self.vertex_source: str = vertex_source
        self.fragment_source: str = fragment_source
        self.shader_program: shaders.ShaderProgram | None = None
        self.allocated: bool = False
        self._locations: dict[str, int] = {}

    def allocate(self) -> None:
        """Compile and link.

        Raises:
            DeviceUnsupportedError: If compilation or linking fails
        """
        if self.allocated:
            return

        try:
            vertex_shader = shaders.compileShader(self.vertex_source, GL_VERTEX_SHADER)
        except shaders.ShaderCompilationError as e:
            logging.error(f"{self.shader_name} VERTEX SHADER ERROR: {e}")
            raise DeviceUnsupportedError(f"{self.shader_name}: vertex shader does not compile") from e

        try:
            fragment_shader = shaders.compileShader(self.fragment_source, GL_FRAGMENT_SHADER)
        except shaders.ShaderCompilationError as e:
            logging.error(f"{self.shader_name} FRAGMENT SHADER ERROR: {e}")
            raise DeviceUnsupportedError(f"{self.shader_name}: fragment shader does not compile") from e

        try:
            self.shader_program = shaders.compileProgram(vertex_shader, fragment_shader)
        except Exception as e:
            logging.error(f"{self.shader_name} PROGRAM LINKING ERROR: {e}")
            raise DeviceUnsupportedError(f"{self.shader_name}: program does not link") from e

        self._locations.clear()
        self.allocated = True

    def deallocate(self) -> None:
        self.allocated = False
        if self.shader_program is not None:
            glDeleteProgram(self.shader_program)
        self.shader_program = None
        self._locations.clear()

    def location(self, name: str) -> int:
        if name not in self._locations:
            self._locations[name] = glGetUniformLocation(self.shader_program, name)
        return self._locations[name]

    def begin(self) -> None:
        glUseProgram(self.shader_program)

    def end(self) -> None:
        glUseProgram(0)

    def set_textures(self, texture_ids: Mapping[str, int]) -> None:
        for unit, (name, tex_id) in enumerate(texture_ids.items()):
            glActiveTexture(GL_TEXTURE0 + unit)
            glBindTexture(GL_TEXTURE_2D, tex_id)
            glUniform1i(self.location(name), unit)
        glActiveTexture(GL_TEXTURE0)

    def set_uniforms(self, uniforms: Mapping[str, Uniform]) -> None:
        for name, value in uniforms.items():
            loc: int = self.location(name)
            if loc < 0:
                continue
            if isinstance(value, tuple):
                if len(value) == 2: glUniform2f(loc, *value)
                elif len(value) == 3: glUniform3f(loc, *value)
                elif len(value) == 4: glUniform4f(loc, *value)
                else: logging.warning(f"{self.shader_name}: uniform '{name}' has {len(value)} components")
            else:
                glUniform1f(loc, float(value))

    @staticmethod
    def unbind_textures(count: int) -> None:
        for unit in range(count):
            glActiveTexture(GL_TEXTURE0 + unit)
            glBindTexture(GL_TEXTURE_2D, 0)
        glActiveTexture(GL_TEXTURE0)
