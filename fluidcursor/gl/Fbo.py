import numpy as np
from OpenGL.GL import * # type: ignore

from fluidcursor.flow.Field import FilterMode, Precision
from fluidcursor.gl.Texture import Texture


class Fbo(Texture):
    """Float texture with its own framebuffer, usable as render target and input."""

    def __init__(self) -> None :
        super(Fbo, self).__init__()
        self.fbo_id = 0

    def allocate(self, width: int, height: int, channels: int,
                 precision: Precision = Precision.FLOAT,
                 filter_mode: FilterMode = FilterMode.LINEAR) -> None :
        super(Fbo, self).allocate(width, height, channels, precision, filter_mode)
        if not self.allocated: return

        self.fbo_id = glGenFramebuffers(1)

        glBindFramebuffer(GL_FRAMEBUFFER, self.fbo_id)
        glFramebufferTexture2D(GL_FRAMEBUFFER, GL_COLOR_ATTACHMENT0, GL_TEXTURE_2D, self.tex_id, 0)
        complete: bool = glCheckFramebufferStatus(GL_FRAMEBUFFER) == GL_FRAMEBUFFER_COMPLETE
        glBindFramebuffer(GL_FRAMEBUFFER, 0)

        if not complete:
            self.deallocate()
            return
        self.clear(0.0, 0.0, 0.0, 0.0)

    def deallocate(self) -> None :
        if self.fbo_id:
            glDeleteFramebuffers(1, [self.fbo_id])
        self.fbo_id = 0
        super(Fbo, self).deallocate()

    def begin(self) -> None:
        glBindFramebuffer(GL_FRAMEBUFFER, self.fbo_id)
        glViewport(0, 0, self.width, self.height)

    def end(self) -> None:
        glBindFramebuffer(GL_FRAMEBUFFER, 0)

    def clear(self, r: float, g: float, b: float, a: float) -> None:
        self.begin()
        glClearColor(r, g, b, a)
        glClear(GL_COLOR_BUFFER_BIT)
        self.end()

    def read(self) -> np.ndarray:
        """Pixels as float32 (height, width, channels), row 0 at the bottom."""
        data = np.empty((self.height, self.width, self.channels), dtype=np.float32)
        glBindFramebuffer(GL_FRAMEBUFFER, self.fbo_id)
        glPixelStorei(GL_PACK_ALIGNMENT, 1)
        glReadPixels(0, 0, self.width, self.height, self.format, GL_FLOAT, data)
        glBindFramebuffer(GL_FRAMEBUFFER, 0)
        return data
