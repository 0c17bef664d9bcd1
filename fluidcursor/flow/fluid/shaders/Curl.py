"""Curl shader - scalar vorticity of the velocity field."""

import numpy as np

from fluidcursor.flow.Field import GridField
from fluidcursor.flow.Program import Program


class Curl(Program):
    """0.5 * (dv/dx - du/dy) from central differences."""

    FRAGMENT_SOURCE = """#version 460 core
precision highp float;

in vec2 vUv;
in vec2 vL;
in vec2 vR;
in vec2 vT;
in vec2 vB;

uniform sampler2D uVelocity;

out vec4 fragColor;

void main() {
    float L = texture(uVelocity, vL).y;
    float R = texture(uVelocity, vR).y;
    float T = texture(uVelocity, vT).x;
    float B = texture(uVelocity, vB).x;
    fragColor = vec4(0.5 * (R - L - T + B), 0.0, 0.0, 1.0);
}
"""

    def use(self, target: GridField, velocity: GridField, texel_size: tuple[float, float]) -> None:
        """Compute curl.

        Args:
            target: Curl field (1 channel)
            velocity: Velocity field (2 channels)
            texel_size: Velocity grid texel size
        """
        self._draw(target, {"uVelocity": velocity}, texelSize=texel_size)

    def evaluate(self, ctx):
        left, right, top, bottom = ctx.neighbors()
        L = ctx.sample("uVelocity", *left)[..., 1]
        R = ctx.sample("uVelocity", *right)[..., 1]
        T = ctx.sample("uVelocity", *top)[..., 0]
        B = ctx.sample("uVelocity", *bottom)[..., 0]
        return 0.5 * (R - L - T + B), np.float32(0.0), np.float32(0.0), np.float32(1.0)
