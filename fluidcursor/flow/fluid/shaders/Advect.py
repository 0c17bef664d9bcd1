"""Advect shader - semi-Lagrangian advection with dissipation.

Advection formula:  coord = uv - dt * velocity(uv) * texelSize
Velocity is in simulation texels per second. Dissipation divides by
(1 + dissipation * dt), so magnitudes decay and never change sign.
"""

import numpy as np

from fluidcursor.flow.Field import GridField
from fluidcursor.flow.Program import Program


class Advect(Program):
    """Semi-Lagrangian advection shader with dissipation."""

    FRAGMENT_SOURCE = """#version 460 core
precision highp float;

in vec2 vUv;

uniform sampler2D uVelocity;
uniform sampler2D uSource;
uniform vec2 texelSize;
uniform float dt;
uniform float dissipation;

out vec4 fragColor;

void main() {
    vec2 coord = vUv - dt * texture(uVelocity, vUv).xy * texelSize;
    fragColor = texture(uSource, coord) / (1.0 + dissipation * dt);
}
"""

    def use(self, target: GridField, velocity: GridField, source: GridField,
            texel_size: tuple[float, float], dt: float, dissipation: float) -> None:
        """Apply advection.

        Args:
            target: Write buffer of the advected field
            velocity: Velocity field to trace back along
            source: Field to advect (velocity itself, or dye)
            texel_size: Velocity grid texel size
            dt: Time step in seconds
            dissipation: Decay rate per second
        """
        self._draw(target, {"uVelocity": velocity, "uSource": source},
                   texelSize=texel_size, dt=float(dt), dissipation=float(dissipation))

    def evaluate(self, ctx):
        tx, ty = ctx.uniform("texelSize")
        dt = np.float32(ctx.uniform("dt"))
        u, v = ctx.uv
        velocity = ctx.sample("uVelocity", u, v)
        coord_u = u - dt * velocity[..., 0] * np.float32(tx)
        coord_v = v - dt * velocity[..., 1] * np.float32(ty)
        result = ctx.sample("uSource", coord_u, coord_v) / (np.float32(1.0) + np.float32(ctx.uniform("dissipation")) * dt)
        return result[..., 0], result[..., 1], result[..., 2], result[..., 3]
