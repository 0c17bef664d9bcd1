"""Pressure shader - one Jacobi iteration of the pressure Poisson equation."""

import numpy as np

from fluidcursor.flow.Field import GridField
from fluidcursor.flow.Program import Program


class Pressure(Program):
    """Jacobi iterative solver for the Poisson pressure equation."""

    FRAGMENT_SOURCE = """#version 460 core
precision highp float;

in vec2 vUv;
in vec2 vL;
in vec2 vR;
in vec2 vT;
in vec2 vB;

uniform sampler2D uPressure;
uniform sampler2D uDivergence;

out vec4 fragColor;

void main() {
    float L = texture(uPressure, vL).x;
    float R = texture(uPressure, vR).x;
    float T = texture(uPressure, vT).x;
    float B = texture(uPressure, vB).x;
    float divergence = texture(uDivergence, vUv).x;
    fragColor = vec4((L + R + B + T - divergence) * 0.25, 0.0, 0.0, 1.0);
}
"""

    def use(self, target: GridField, pressure: GridField, divergence: GridField,
            texel_size: tuple[float, float]) -> None:
        """Apply one Jacobi iteration.

        Args:
            target: Pressure write buffer
            pressure: Previous pressure estimate
            divergence: Velocity divergence
            texel_size: Velocity grid texel size
        """
        self._draw(target, {"uPressure": pressure, "uDivergence": divergence}, texelSize=texel_size)

    def evaluate(self, ctx):
        left, right, top, bottom = ctx.neighbors()
        L = ctx.sample("uPressure", *left)[..., 0]
        R = ctx.sample("uPressure", *right)[..., 0]
        T = ctx.sample("uPressure", *top)[..., 0]
        B = ctx.sample("uPressure", *bottom)[..., 0]
        divergence = ctx.sample("uDivergence", *ctx.uv)[..., 0]
        return (L + R + B + T - divergence) * np.float32(0.25), np.float32(0.0), np.float32(0.0), np.float32(1.0)
