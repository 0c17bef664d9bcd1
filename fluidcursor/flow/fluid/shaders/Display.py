"""Display shader - compose the dye field onto the surface.

With the SHADING keyword a surface normal is estimated from the dye
luminance gradient and used for a clamped diffuse term against a light
pointing out of the screen. Alpha is the brightest channel, so the output
composites premultiplied over whatever is behind it.
"""

import numpy as np

from fluidcursor.flow.Field import GridField
from fluidcursor.flow.Program import Program


class Display(Program):
    """Dye to surface, optionally shaded."""

    SHADING = "SHADING"

    FRAGMENT_SOURCE = """#version 460 core
precision highp float;

in vec2 vUv;
in vec2 vL;
in vec2 vR;
in vec2 vT;
in vec2 vB;

uniform sampler2D uTexture;
uniform vec2 texelSize;

out vec4 fragColor;

void main() {
    vec3 c = texture(uTexture, vUv).rgb;
#ifdef SHADING
    float dx = length(texture(uTexture, vR).rgb) - length(texture(uTexture, vL).rgb);
    float dy = length(texture(uTexture, vT).rgb) - length(texture(uTexture, vB).rgb);
    vec3 n = normalize(vec3(dx, dy, length(texelSize)));
    c *= clamp(dot(n, vec3(0.0, 0.0, 1.0)) + 0.7, 0.7, 1.0);
#endif
    fragColor = vec4(c, max(c.r, max(c.g, c.b)));
}
"""

    def use(self, target: GridField | None, dye: GridField, texel_size: tuple[float, float], shading: bool) -> None:
        """Draw dye.

        Args:
            target: Destination, None for the surface
            dye: Dye read buffer
            texel_size: Destination texel size (used for the shading normal)
            shading: Enable the SHADING variant
        """
        keywords: tuple[str, ...] = (Display.SHADING,) if shading else ()
        self._draw(target, {"uTexture": dye}, keywords=keywords, blend=True, texelSize=texel_size)

    def evaluate(self, ctx):
        c = ctx.sample("uTexture", *ctx.uv)[..., :3]
        if ctx.has_keyword(Display.SHADING):
            left, right, top, bottom = ctx.neighbors()

            def luminance(coord) -> np.ndarray:
                return np.linalg.norm(ctx.sample("uTexture", *coord)[..., :3], axis=-1)

            dx = luminance(right) - luminance(left)
            dy = luminance(top) - luminance(bottom)
            tx, ty = ctx.uniform("texelSize")
            dz = np.float32(np.hypot(tx, ty))
            nz = dz / np.sqrt(dx * dx + dy * dy + dz * dz)
            c = c * np.clip(nz + np.float32(0.7), 0.7, 1.0)[..., None]
        return c[..., 0], c[..., 1], c[..., 2], np.max(c, axis=-1)
