from __future__ import annotations

# Window
WINDOW_WIDTH = 1280
WINDOW_HEIGHT = 720
FPS_CAP = 0  # 0 = uncapped

# App
APP_VERSION = "0.3.0"

# Noise
DEFAULT_SEED = 12345
DEFAULT_NOISE_FREQUENCY = 0.05
DEFAULT_NOISE_AMPLITUDE = 8.0

# Terrain window / tiles
DEFAULT_TERRAIN_AMOUNT = (8, 8)  # tiles in the window (x, z)
DEFAULT_TILE_AMOUNT = (16, 16)  # unit cells per tile (x, z); also the tile extent in world units

# Terracing
DEFAULT_TERRACE_STEP = 1.0  # band height
DEFAULT_SMOOTHING_ANGLE_DEG = 60.0  # faces further apart than this keep a hard edge

# Build pipeline
DEFAULT_HEIGHTFIELD_BATCH = 32
DEFAULT_BUILD_WORKERS = 4
DEFAULT_HEIGHTFIELD_WORKERS = 4

# Camera
DEFAULT_SPEED = 6.0
DEFAULT_HEIGHT_OFFSET = 10.0
HEIGHT_SMOOTH_K = 4.0  # larger = faster follow

# Rendering
FOV_DEG = 65.0
NEAR = 0.1
FAR = 400.0
DEFAULT_FOG_START = 40.0
DEFAULT_FOG_END = 70.0
LIGHT_DIR = (0.45, 0.8, 0.3)  # normalized on the CPU before upload

# Streaming
DEFAULT_TARGET_FPS = 60
DEFAULT_HEADLESS_TICKS = 120
DEFAULT_HEADLESS_DT = 1.0 / 30.0
