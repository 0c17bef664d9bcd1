from OpenGL.GL import * # type: ignore

from fluidcursor.flow.Field import FilterMode, Precision


def get_internal_format(channels: int, precision: Precision) -> Constant:
    """Float internal format for a channel count and precision.

    Args:
        channels: 1, 2 or 4
        precision: Precision.FLOAT (32 bit) or Precision.HALF (16 bit)

    Returns:
        OpenGL internal format constant, GL_NONE if unsupported
    """
    if precision is Precision.FLOAT:
        if channels == 1: return GL_R32F
        if channels == 2: return GL_RG32F
        if channels == 4: return GL_RGBA32F
    if precision is Precision.HALF:
        if channels == 1: return GL_R16F
        if channels == 2: return GL_RG16F
        if channels == 4: return GL_RGBA16F
    return GL_NONE


def get_format(channels: int) -> Constant:
    if channels == 1: return GL_RED
    if channels == 2: return GL_RG
    if channels == 4: return GL_RGBA
    return GL_NONE


def get_data_type(precision: Precision) -> Constant:
    if precision is Precision.HALF: return GL_HALF_FLOAT
    return GL_FLOAT


def get_filter(filter_mode: FilterMode) -> Constant:
    if filter_mode is FilterMode.NEAREST: return GL_NEAREST
    return GL_LINEAR


class Texture():
    def __init__(self) -> None :
        self.allocated = False
        self.width: int = 0
        self.height: int = 0
        self.channels: int = 0
        self.precision: Precision = Precision.FLOAT
        self.internal_format: Constant = GL_NONE
        self.format: Constant = GL_NONE
        self.data_type: Constant = GL_NONE
        self.tex_id = 0

    def allocate(self, width: int, height: int, channels: int,
                 precision: Precision = Precision.FLOAT,
                 filter_mode: FilterMode = FilterMode.LINEAR) -> None :
        """Allocate a clamp-to-edge float texture.

        Args:
            width: Texture width in texels
            height: Texture height in texels
            channels: 1, 2 or 4
            precision: 32 or 16 bit floats
            filter_mode: Linear or nearest for both min and mag filter
        """
        internal_format: Constant = get_internal_format(channels, precision)
        if internal_format == GL_NONE: return

        self.width = width
        self.height = height
        self.channels = channels
        self.precision = precision
        self.internal_format = internal_format
        self.format = get_format(channels)
        self.data_type = get_data_type(precision)
        self.tex_id: int = glGenTextures(1)

        gl_filter: Constant = get_filter(filter_mode)
        glBindTexture(GL_TEXTURE_2D, self.tex_id)
        glTexParameteri(GL_TEXTURE_2D, GL_TEXTURE_WRAP_S, GL_CLAMP_TO_EDGE)
        glTexParameteri(GL_TEXTURE_2D, GL_TEXTURE_WRAP_T, GL_CLAMP_TO_EDGE)
        glTexParameteri(GL_TEXTURE_2D, GL_TEXTURE_MAG_FILTER, gl_filter)
        glTexParameteri(GL_TEXTURE_2D, GL_TEXTURE_MIN_FILTER, gl_filter)
        glTexImage2D(GL_TEXTURE_2D, 0, self.internal_format, self.width, self.height, 0, self.format, self.data_type, None)
        glBindTexture(GL_TEXTURE_2D, 0)

        self.allocated = glGetError() == GL_NO_ERROR

    def deallocate(self) -> None :
        if self.tex_id:
            glDeleteTextures(1, [self.tex_id])
        self.allocated = False
        self.width = 0
        self.height = 0
        self.internal_format = GL_NONE
        self.format = GL_NONE
        self.data_type = GL_NONE
        self.tex_id = 0
