from __future__ import annotations

def _pick_glsl_version(ctx_version_code: int) -> int:
    """Pick a GLSL version compatible with the active OpenGL context.

    - For OpenGL >= 3.3: use GLSL 330
    - For OpenGL >= 3.2: use GLSL 150
    """
    if ctx_version_code >= 330:
        return 330
    return 150

_VERT_BODY = """
in vec3 in_pos;
in vec3 in_norm;

uniform mat4 u_proj;
uniform mat4 u_view;
uniform vec3 u_offset;  // tile origin, vertices are tile-local

out vec3 v_world_pos;
out vec3 v_norm;

void main() {
    vec3 world = in_pos + u_offset;
    v_world_pos = world;
    v_norm = in_norm;
    gl_Position = u_proj * u_view * vec4(world, 1.0);
}
"""

_FRAG_BODY = """in vec3 v_world_pos;
in vec3 v_norm;

uniform vec3 u_light_dir;
uniform vec3 u_cam_pos;
uniform float u_step;
uniform float u_max_height;
uniform float u_fog_start;
uniform float u_fog_end;

out vec4 f_color;

vec3 band_color(float h) {
    // Palette indexed by terrace band so plateaus read as distinct levels
    float t = clamp(h / max(u_max_height, 1e-3), 0.0, 1.0);
    vec3 sand  = vec3(0.82, 0.74, 0.52);
    vec3 grass = vec3(0.36, 0.58, 0.28);
    vec3 rock  = vec3(0.52, 0.48, 0.44);
    vec3 snow  = vec3(0.93, 0.95, 0.98);
    vec3 c = mix(sand, grass, smoothstep(0.10, 0.25, t));
    c = mix(c, rock, smoothstep(0.55, 0.75, t));
    c = mix(c, snow, smoothstep(0.85, 0.95, t));
    float band = floor(h / max(u_step, 1e-3));
    return c * (0.94 + 0.06 * mod(band, 2.0));
}

void main() {
    vec3 n = normalize(v_norm);
    vec3 l = normalize(u_light_dir);
    float diff = max(dot(n, l), 0.0);

    vec3 base = band_color(v_world_pos.y);
    // Risers are darker than the plateaus they separate
    base *= mix(0.72, 1.0, clamp(n.y, 0.0, 1.0));

    float ambient = 0.45;
    vec3 col = base * (ambient + 0.75 * diff);

    float dist = length(v_world_pos.xz - u_cam_pos.xz);
    float fog_amount = smoothstep(u_fog_start, u_fog_end, dist);
    vec3 fog_col = vec3(0.74, 0.82, 0.93);
    col = mix(col, fog_col, fog_amount);

    f_color = vec4(col, 1.0);
}"""

def shader_sources(ctx_version_code: int) -> tuple[str, str]:
    ver = _pick_glsl_version(ctx_version_code)
    prefix = f"#version {ver}\n"
    return prefix + _VERT_BODY, prefix + _FRAG_BODY
