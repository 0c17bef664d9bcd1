from .Shader import Shader, draw_quad
from .RenderWindow import RenderWindow, Button

# TEXTURE CLASSES
from .Texture import Texture
from .Fbo import Fbo

# DEVICE
from .GLDevice import GLDevice
