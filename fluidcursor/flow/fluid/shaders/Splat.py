"""Splat shader - additive gaussian impulse at a point."""

import numpy as np

from fluidcursor.flow.Field import GridField
from fluidcursor.flow.Program import Program


class Splat(Program):
    """base + exp(-|p|^2 / radius) * color, with p aspect corrected in x."""

    FRAGMENT_SOURCE = """#version 460 core
precision highp float;

in vec2 vUv;

uniform sampler2D uTarget;
uniform float aspectRatio;
uniform vec3 color;
uniform vec2 point;
uniform float radius;

out vec4 fragColor;

void main() {
    vec2 p = vUv - point.xy;
    p.x *= aspectRatio;
    vec3 splat = exp(-dot(p, p) / radius) * color;
    vec3 base = texture(uTarget, vUv).xyz;
    fragColor = vec4(base + splat, 1.0);
}
"""

    def use(self, target: GridField, base: GridField, point: tuple[float, float],
            color: tuple[float, float, float], radius: float, aspect_ratio: float) -> None:
        """Add a splat.

        Args:
            target: Write buffer
            base: Read buffer of the same field
            point: Center in normalized texture coordinates
            color: Impulse (velocity dx, dy, 0) or dye color
            radius: Gaussian radius in squared normalized units
            aspect_ratio: Surface width / height
        """
        self._draw(target, {"uTarget": base}, texelSize=base.texel_size,
                   point=(float(point[0]), float(point[1])),
                   color=(float(color[0]), float(color[1]), float(color[2])),
                   radius=float(radius), aspectRatio=float(aspect_ratio))

    def evaluate(self, ctx):
        px, py = ctx.uniform("point")
        u, v = ctx.uv
        dx = (u - np.float32(px)) * np.float32(ctx.uniform("aspectRatio"))
        dy = v - np.float32(py)
        falloff = np.exp(-(dx * dx + dy * dy) / np.float32(ctx.uniform("radius")))
        r, g, b = ctx.uniform("color")
        base = ctx.sample("uTarget", u, v)
        return (base[..., 0] + falloff * np.float32(r),
                base[..., 1] + falloff * np.float32(g),
                base[..., 2] + falloff * np.float32(b),
                np.float32(1.0))
