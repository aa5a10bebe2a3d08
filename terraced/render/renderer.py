from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import moderngl
import numpy as np

from terraced.config import FAR, FOV_DEG, NEAR
from terraced.render.shaders import shader_sources
from terraced.util.math import perspective
from terraced.world.tile import GridCoordinate, RenderMesh, Tile, TileMesh

logger = logging.getLogger(__name__)

_SKY_VERT = """#version 150
in vec2 in_pos;
out vec2 v_uv;
void main() {
    v_uv = in_pos * 0.5 + 0.5;
    gl_Position = vec4(in_pos, 0.0, 1.0);
}
"""

_SKY_FRAG = """#version 150
in vec2 v_uv;
out vec4 f_color;

void main() {
    vec3 horizon = vec3(0.74, 0.82, 0.93);
    vec3 zenith  = vec3(0.36, 0.55, 0.82);
    f_color = vec4(mix(horizon, zenith, smoothstep(0.35, 1.0, v_uv.y)), 1.0);
}
"""

_HUD_VERT = """#version 150
in vec2 in_pos;
in vec2 in_uv;
out vec2 v_uv;
void main() {
    v_uv = in_uv;
    gl_Position = vec4(in_pos, 0.0, 1.0);
}
"""

_HUD_FRAG = """#version 150
uniform sampler2D u_tex;
in vec2 v_uv;
out vec4 f_color;
void main() {
    f_color = texture(u_tex, v_uv);
}
"""


@dataclass(eq=False)
class TileGPU:
    coord: GridCoordinate
    vao: Optional[moderngl.VertexArray] = None
    vbo: Optional[moderngl.Buffer] = None
    ibo: Optional[moderngl.Buffer] = None

    def release(self) -> None:
        for obj in (self.vao, self.vbo, self.ibo):
            if obj is not None:
                obj.release()
        self.vao = self.vbo = self.ibo = None


class GLMeshBackend:
    """Mesh backend owning one VBO/IBO/VAO per tile; the terrain program is the shared material."""

    def __init__(self, ctx: moderngl.Context, prog: moderngl.Program) -> None:
        self.ctx = ctx
        self.material = prog

    def create_mesh(self, coord: GridCoordinate) -> TileGPU:
        # GL objects are created on first upload; this only reserves the handle
        return TileGPU(coord=coord)

    def upload(self, render_mesh: RenderMesh, tile_mesh: TileMesh) -> None:
        gpu: TileGPU = render_mesh.mesh
        gpu.release()
        if len(tile_mesh.triangles) == 0:
            return
        gpu.vbo = self.ctx.buffer(tile_mesh.vertices.interleaved().tobytes())
        gpu.ibo = self.ctx.buffer(tile_mesh.triangles.indices.astype(np.uint32).tobytes())
        gpu.vao = self.ctx.vertex_array(
            self.material,
            [
                (gpu.vbo, "3f 3f", "in_pos", "in_norm"),
            ],
            gpu.ibo,
            index_element_size=4,
        )

    def release(self, render_mesh: RenderMesh) -> None:
        if render_mesh.mesh is not None:
            render_mesh.mesh.release()


class Renderer:
    def __init__(self, ctx: moderngl.Context, width: int, height: int, *, terrace_step: float, max_height: float) -> None:
        self.ctx = ctx
        self.width = width
        self.height = height

        vert, frag = shader_sources(ctx.version_code)
        self.prog = self.ctx.program(vertex_shader=vert, fragment_shader=frag)
        self._set_if_present("u_step", float(terrace_step))
        self._set_if_present("u_max_height", float(max_height))

        self._proj = perspective(FOV_DEG, width / height, NEAR, FAR).astype(np.float32)
        self.prog["u_proj"].write(self._proj.tobytes())

        self.ctx.enable(moderngl.DEPTH_TEST)
        self.ctx.disable(moderngl.CULL_FACE)

        # Sky gradient quad
        self._sky_prog = self.ctx.program(vertex_shader=_SKY_VERT, fragment_shader=_SKY_FRAG)
        sky = np.array([-1.0, -1.0, 1.0, -1.0, -1.0, 1.0, 1.0, 1.0], dtype=np.float32)
        self._sky_vbo = self.ctx.buffer(sky.tobytes())
        self._sky_vao = self.ctx.vertex_array(self._sky_prog, [(self._sky_vbo, "2f", "in_pos")])

        # HUD quad (top-left)
        self._hud_prog = self.ctx.program(vertex_shader=_HUD_VERT, fragment_shader=_HUD_FRAG)
        quad = np.array([
            -0.98,  0.98, 0.0, 1.0,
            -0.30,  0.98, 1.0, 1.0,
            -0.98,  0.72, 0.0, 0.0,

            -0.30,  0.98, 1.0, 1.0,
            -0.30,  0.72, 1.0, 0.0,
            -0.98,  0.72, 0.0, 0.0,
        ], dtype=np.float32)
        self._hud_vbo = self.ctx.buffer(quad.tobytes())
        self._hud_vao = self.ctx.vertex_array(self._hud_prog, [(self._hud_vbo, "2f 2f", "in_pos", "in_uv")])
        self._hud_tex: moderngl.Texture | None = None
        self._hud_tex_size = (0, 0)

    def _set_if_present(self, name: str, value) -> None:
        if name in self.prog:
            self.prog[name].value = value

    def release(self) -> None:
        for obj in [self._sky_vao, self._sky_vbo, self._sky_prog, self._hud_vao, self._hud_vbo, self._hud_prog, self._hud_tex, self.prog]:
            if obj is None:
                continue
            try:
                obj.release()
            except Exception:
                logger.debug("GL release failed for %r", obj, exc_info=True)

    def resize(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.ctx.viewport = (0, 0, width, height)
        self._proj = perspective(FOV_DEG, width / height, NEAR, FAR).astype(np.float32)
        self.prog["u_proj"].write(self._proj.tobytes())

    def begin_frame(self) -> None:
        self.ctx.clear(0.74, 0.82, 0.93, 1.0)

    def draw_sky(self) -> None:
        self.ctx.disable(moderngl.DEPTH_TEST)
        self._sky_vao.render(mode=moderngl.TRIANGLE_STRIP)
        self.ctx.enable(moderngl.DEPTH_TEST)

    def set_common_uniforms(
        self,
        view: np.ndarray,
        cam_pos: np.ndarray,
        light_dir: np.ndarray,
        fog_start: float,
        fog_end: float,
    ) -> None:
        self.prog["u_view"].write(view.astype(np.float32).tobytes())
        self._set_if_present("u_cam_pos", (float(cam_pos[0]), float(cam_pos[1]), float(cam_pos[2])))
        self._set_if_present("u_light_dir", (float(light_dir[0]), float(light_dir[1]), float(light_dir[2])))
        self._set_if_present("u_fog_start", float(fog_start))
        self._set_if_present("u_fog_end", float(fog_end))

    def draw_tile(self, tile: Tile) -> None:
        gpu: TileGPU = tile.render_mesh.mesh
        if gpu is None or gpu.vao is None:
            return
        self.prog["u_offset"].value = tile.origin
        gpu.vao.render()

    # --- HUD ---
    def hud_update_rgba(self, rgba_bytes: bytes, w: int, h: int) -> None:
        if self._hud_tex is None or self._hud_tex_size != (w, h):
            if self._hud_tex is not None:
                self._hud_tex.release()
            self._hud_tex = self.ctx.texture((w, h), 4, data=rgba_bytes)
            self._hud_tex.filter = (moderngl.NEAREST, moderngl.NEAREST)
            self._hud_tex.repeat_x = False
            self._hud_tex.repeat_y = False
            self._hud_tex_size = (w, h)
        else:
            self._hud_tex.write(rgba_bytes)

    def draw_hud(self) -> None:
        if self._hud_tex is None:
            return
        self.ctx.enable(moderngl.BLEND)
        self.ctx.blend_func = (moderngl.SRC_ALPHA, moderngl.ONE_MINUS_SRC_ALPHA)
        self.ctx.disable(moderngl.DEPTH_TEST)
        self._hud_tex.use(location=0)
        self._hud_prog["u_tex"].value = 0
        self._hud_vao.render(mode=moderngl.TRIANGLES)
        self.ctx.enable(moderngl.DEPTH_TEST)
        self.ctx.disable(moderngl.BLEND)
