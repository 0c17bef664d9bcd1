"""GradientSubtract shader - remove the pressure gradient from velocity."""

import numpy as np

from fluidcursor.flow.Field import GridField
from fluidcursor.flow.Program import Program


class GradientSubtract(Program):
    """velocity -= (R - L, T - B) of pressure."""

    FRAGMENT_SOURCE = """#version 460 core
precision highp float;

in vec2 vUv;
in vec2 vL;
in vec2 vR;
in vec2 vT;
in vec2 vB;

uniform sampler2D uPressure;
uniform sampler2D uVelocity;

out vec4 fragColor;

void main() {
    float L = texture(uPressure, vL).x;
    float R = texture(uPressure, vR).x;
    float T = texture(uPressure, vT).x;
    float B = texture(uPressure, vB).x;
    vec2 velocity = texture(uVelocity, vUv).xy;
    fragColor = vec4(velocity - vec2(R - L, T - B), 0.0, 1.0);
}
"""

    def use(self, target: GridField, velocity: GridField, pressure: GridField,
            texel_size: tuple[float, float]) -> None:
        self._draw(target, {"uPressure": pressure, "uVelocity": velocity}, texelSize=texel_size)

    def evaluate(self, ctx):
        left, right, top, bottom = ctx.neighbors()
        L = ctx.sample("uPressure", *left)[..., 0]
        R = ctx.sample("uPressure", *right)[..., 0]
        T = ctx.sample("uPressure", *top)[..., 0]
        B = ctx.sample("uPressure", *bottom)[..., 0]
        velocity = ctx.sample("uVelocity", *ctx.uv)
        return velocity[..., 0] - (R - L), velocity[..., 1] - (T - B), np.float32(0.0), np.float32(1.0)
