from __future__ import annotations

import numpy as np

from terraced.util.math import exp_smooth, look_at


class CameraRail:
    """Viewpoint source for the interactive app.

    Glides over the terrain along its heading at constant speed, height
    following the ground with smoothing. Left/right input turns the heading.
    """

    def __init__(self, speed: float, height_offset: float, smooth_k: float, *, turn_rate: float = 0.9) -> None:
        self.speed = float(speed)
        self.height_offset = float(height_offset)
        self.smooth_k = float(smooth_k)
        self.turn_rate = float(turn_rate)

        self.x = 0.0
        self.z = 0.0
        self.y = height_offset
        self.yaw = 0.0  # 0 -> +Z

        # View tuning
        self.look_ahead = 30.0
        self.look_down = 6.0

    def _forward(self) -> np.ndarray:
        return np.array([np.sin(self.yaw), 0.0, np.cos(self.yaw)], dtype=np.float32)

    def update(self, dt: float, height_fn, *, turn: float = 0.0) -> None:
        self.yaw -= float(turn) * self.turn_rate * dt
        fwd = self._forward()
        self.x += float(fwd[0]) * self.speed * dt
        self.z += float(fwd[2]) * self.speed * dt

        y_target = float(height_fn(self.x, self.z)) + self.height_offset
        self.y = exp_smooth(self.y, y_target, self.smooth_k, dt)

    def eye(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float32)

    def view_matrix(self) -> np.ndarray:
        eye = self.eye()
        target = eye + self._forward() * np.float32(self.look_ahead)
        target[1] -= self.look_down
        up = np.array([0.0, 1.0, 0.0], dtype=np.float32)
        return look_at(eye, target, up)
