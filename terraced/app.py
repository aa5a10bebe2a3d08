from __future__ import annotations

import logging
import time

import moderngl
import numpy as np
import pygame

from terraced.config import (
    APP_VERSION,
    FPS_CAP,
    HEIGHT_SMOOTH_K,
    LIGHT_DIR,
    WINDOW_HEIGHT,
    WINDOW_WIDTH,
)
from terraced.render.camera import CameraRail
from terraced.render.renderer import GLMeshBackend, Renderer
from terraced.util.math import normalize
from terraced.world.params import WorldParams
from terraced.world.tile import BuildState
from terraced.world.world import TerrainWorld

logger = logging.getLogger(__name__)


def _init_pygame_gl() -> None:
    pygame.init()
    pygame.display.gl_set_attribute(pygame.GL_CONTEXT_MAJOR_VERSION, 3)
    pygame.display.gl_set_attribute(pygame.GL_CONTEXT_MINOR_VERSION, 3)
    pygame.display.gl_set_attribute(pygame.GL_CONTEXT_PROFILE_MASK, pygame.GL_CONTEXT_PROFILE_CORE)
    pygame.display.gl_set_attribute(pygame.GL_DEPTH_SIZE, 24)
    pygame.display.gl_set_attribute(pygame.GL_DOUBLEBUFFER, 1)


def _surface_to_rgba_bytes(surf: pygame.Surface) -> tuple[bytes, int, int]:
    s = surf.convert_alpha()
    w, h = s.get_size()
    data = pygame.image.tostring(s, "RGBA", False)
    return data, w, h


def run_app(
    *,
    params: WorldParams,
    speed: float,
    height_offset: float,
    wireframe: bool,
    debug: bool,
    target_fps: int,
    fog_start: float,
    fog_end: float,
) -> None:
    _init_pygame_gl()

    flags = pygame.OPENGL | pygame.DOUBLEBUF | pygame.RESIZABLE
    pygame.display.set_mode((WINDOW_WIDTH, WINDOW_HEIGHT), flags)
    pygame.display.set_caption(f"terraced v{APP_VERSION} (seed={params.seed})")

    try:
        ctx = moderngl.create_context()
    except Exception as e:
        pygame.quit()
        raise RuntimeError("Failed to create ModernGL context (need OpenGL 3.2+)") from e

    logger.debug(
        "moderngl ctx version_code=%s vendor=%s renderer=%s",
        ctx.version_code, ctx.info.get("GL_VENDOR"), ctx.info.get("GL_RENDERER"),
    )

    ctx.viewport = (0, 0, WINDOW_WIDTH, WINDOW_HEIGHT)
    if wireframe:
        ctx.wireframe = True

    renderer = Renderer(
        ctx, WINDOW_WIDTH, WINDOW_HEIGHT,
        terrace_step=params.terrace_step, max_height=params.noise_amplitude,
    )
    world = TerrainWorld(params, GLMeshBackend(ctx, renderer.prog))

    cam = CameraRail(speed=speed, height_offset=height_offset, smooth_k=HEIGHT_SMOOTH_K)
    cam.y = world.height_at(cam.x, cam.z) + height_offset

    clock = pygame.time.Clock()
    running = True
    last_t = time.perf_counter()
    last_log = last_t
    last_hud = last_t

    light_dir = normalize(np.array(LIGHT_DIR, dtype=np.float32))

    pygame.font.init()
    font = pygame.font.SysFont("Menlo", 16) or pygame.font.Font(None, 16)
    fps_est = 0.0

    # Adaptive upload budget: shrink when below target FPS, grow when above
    target = max(15, int(target_fps))
    max_upload = params.window_size  # first frames upload everything

    try:
        while running:
            now = time.perf_counter()
            dt = min(now - last_t, 0.05)
            last_t = now

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                    running = False
                elif event.type == pygame.VIDEORESIZE:
                    w, h = max(64, event.w), max(64, event.h)
                    pygame.display.set_mode((w, h), flags)
                    renderer.resize(w, h)

            keys = pygame.key.get_pressed()
            turn = float(keys[pygame.K_RIGHT]) - float(keys[pygame.K_LEFT])
            cam.update(dt, world.height_at, turn=turn)

            stats = world.tick(cam.eye(), max_uploads=max_upload)
            if stats.created:
                logger.debug("tick: +%d -%d built=%d", stats.created, stats.destroyed, stats.built)

            if dt > 0:
                inst_fps = 1.0 / dt
                fps_est = (0.9 * fps_est + 0.1 * inst_fps) if fps_est > 0 else inst_fps
            if fps_est < target * 0.85:
                max_upload = max(1, max_upload - 1)
            elif fps_est > target * 1.05:
                max_upload = min(params.window_size, max_upload + 1)

            renderer.begin_frame()
            renderer.draw_sky()
            renderer.set_common_uniforms(
                view=cam.view_matrix(),
                cam_pos=cam.eye(),
                light_dir=light_dir,
                fog_start=float(fog_start),
                fog_end=float(fog_end),
            )
            world.draw(renderer)

            if debug:
                if now - last_hud >= 0.12:
                    last_hud = now
                    ready = len(world.tiles_in_state(BuildState.READY))
                    waiting = len(world.tiles_in_state(BuildState.NEEDS_MESH_UPLOAD))
                    lines = [
                        f"terraced v{APP_VERSION}",
                        f"seed={params.seed} step={params.terrace_step:g} amp={params.noise_amplitude:g}",
                        f"x={cam.x:.1f} z={cam.z:.1f} fps~{fps_est:.0f} upload/frame={max_upload}",
                        f"tiles ready={ready} awaiting upload={waiting} cell={world.window.coarse_cell}",
                    ]
                    pad = 6
                    line_h = font.get_linesize()
                    w = max(font.size(line)[0] for line in lines) + pad * 2
                    h = line_h * len(lines) + pad * 2
                    surf = pygame.Surface((w, h), pygame.SRCALPHA)
                    surf.fill((0, 0, 0, 130))
                    y = pad
                    for line in lines:
                        img = font.render(line, True, (255, 255, 255))
                        surf.blit(img, (pad, y))
                        y += line_h
                    rgba, tw, th = _surface_to_rgba_bytes(surf)
                    renderer.hud_update_rgba(rgba, tw, th)
                renderer.draw_hud()

                if now - last_log >= 1.0:
                    last_log = now
                    logger.debug("fps~%.0f upload=%d tiles=%d", fps_est, max_upload, len(world.window))

            pygame.display.flip()

            if FPS_CAP and FPS_CAP > 0:
                clock.tick(FPS_CAP)
            else:
                clock.tick()
    finally:
        world.shutdown()
        renderer.release()
        pygame.quit()
