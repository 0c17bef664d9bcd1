"""Vorticity confinement shader.

Pushes velocity along the normalized gradient of |curl|, scaled by the curl
itself, to put back small-scale rotation lost to numerical dissipation.
"""

import numpy as np

from fluidcursor.flow.Field import GridField
from fluidcursor.flow.Program import Program


class Vorticity(Program):
    """Add the confinement force to velocity."""

    FRAGMENT_SOURCE = """#version 460 core
precision highp float;

in vec2 vUv;
in vec2 vL;
in vec2 vR;
in vec2 vT;
in vec2 vB;

uniform sampler2D uVelocity;
uniform sampler2D uCurl;
uniform float curl;
uniform float dt;

out vec4 fragColor;

void main() {
    float L = texture(uCurl, vL).x;
    float R = texture(uCurl, vR).x;
    float T = texture(uCurl, vT).x;
    float B = texture(uCurl, vB).x;
    float C = texture(uCurl, vUv).x;

    vec2 force = 0.5 * vec2(abs(T) - abs(B), abs(R) - abs(L));
    force /= length(force) + 0.0001;
    force *= curl * C;
    force.y *= -1.0;

    vec2 velocity = texture(uVelocity, vUv).xy;
    fragColor = vec4(velocity + force * dt, 0.0, 1.0);
}
"""

    def use(self, target: GridField, velocity: GridField, curl_field: GridField,
            texel_size: tuple[float, float], curl: float, dt: float) -> None:
        """Apply vorticity confinement.

        Args:
            target: Velocity write buffer
            velocity: Velocity read buffer
            curl_field: Curl computed from velocity
            texel_size: Velocity grid texel size
            curl: Confinement strength
            dt: Time step in seconds
        """
        self._draw(target, {"uVelocity": velocity, "uCurl": curl_field},
                   texelSize=texel_size, curl=float(curl), dt=float(dt))

    def evaluate(self, ctx):
        left, right, top, bottom = ctx.neighbors()
        L = ctx.sample("uCurl", *left)[..., 0]
        R = ctx.sample("uCurl", *right)[..., 0]
        T = ctx.sample("uCurl", *top)[..., 0]
        B = ctx.sample("uCurl", *bottom)[..., 0]
        C = ctx.sample("uCurl", *ctx.uv)[..., 0]

        force_x = 0.5 * (np.abs(T) - np.abs(B))
        force_y = 0.5 * (np.abs(R) - np.abs(L))
        length = np.sqrt(force_x * force_x + force_y * force_y) + np.float32(0.0001)
        scale = np.float32(ctx.uniform("curl")) * C / length
        force_x = force_x * scale
        force_y = -force_y * scale

        dt = np.float32(ctx.uniform("dt"))
        velocity = ctx.sample("uVelocity", *ctx.uv)
        return velocity[..., 0] + force_x * dt, velocity[..., 1] + force_y * dt, np.float32(0.0), np.float32(1.0)
