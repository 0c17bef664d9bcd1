"""Divergence shader - compute divergence of the velocity field."""

import numpy as np

from fluidcursor.flow.Field import GridField
from fluidcursor.flow.Program import Program


class Divergence(Program):
    """Compute velocity field divergence."""

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
    float L = texture(uVelocity, vL).x;
    float R = texture(uVelocity, vR).x;
    float T = texture(uVelocity, vT).y;
    float B = texture(uVelocity, vB).y;
    float div = 0.5 * (R - L + T - B);
    fragColor = vec4(div, 0.0, 0.0, 1.0);
}
"""

    def use(self, target: GridField, velocity: GridField, texel_size: tuple[float, float]) -> None:
        self._draw(target, {"uVelocity": velocity}, texelSize=texel_size)

    def evaluate(self, ctx):
        left, right, top, bottom = ctx.neighbors()
        L = ctx.sample("uVelocity", *left)[..., 0]
        R = ctx.sample("uVelocity", *right)[..., 0]
        T = ctx.sample("uVelocity", *top)[..., 1]
        B = ctx.sample("uVelocity", *bottom)[..., 1]
        return 0.5 * (R - L + T - B), np.float32(0.0), np.float32(0.0), np.float32(1.0)
