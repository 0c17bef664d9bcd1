"""Clear shader - scale a field by a constant."""

import numpy as np

from fluidcursor.flow.Field import GridField
from fluidcursor.flow.Program import Program


class Clear(Program):
    """Multiply every texel by `value`.

    Used on pressure before the Jacobi solve: the previous solution is
    damped, not reset, and serves as the next frame's starting guess.
    """

    FRAGMENT_SOURCE = """#version 460 core
precision highp float;

in vec2 vUv;

uniform sampler2D uTexture;
uniform float value;

out vec4 fragColor;

void main() {
    fragColor = value * texture(uTexture, vUv);
}
"""

    def use(self, target: GridField, source: GridField, value: float) -> None:
        self._draw(target, {"uTexture": source}, texelSize=source.texel_size, value=float(value))

    def evaluate(self, ctx):
        texel = ctx.sample("uTexture", *ctx.uv) * np.float32(ctx.uniform("value"))
        return texel[..., 0], texel[..., 1], texel[..., 2], texel[..., 3]
