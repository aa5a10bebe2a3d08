from __future__ import annotations

import pytest

from terraced.world.noise import NoiseSampler, sample_height


class _ConstNoise:
    def __init__(self, value: float) -> None:
        self.value = value
        self.calls = []

    def noise3(self, x: float, y: float, z: float) -> float:
        self.calls.append((x, y, z))
        return self.value


def test_sample_height_maps_noise_range_to_zero_amplitude():
    assert sample_height(_ConstNoise(-1.0), (1.0, 0.0, 2.0), 0.05, 8.0) == 0.0
    assert sample_height(_ConstNoise(0.0), (1.0, 0.0, 2.0), 0.05, 8.0) == 4.0
    assert sample_height(_ConstNoise(1.0), (1.0, 0.0, 2.0), 0.05, 8.0) == 8.0


def test_sample_height_scales_position_by_frequency():
    noise = _ConstNoise(0.0)
    sample_height(noise, (10.0, 0.0, -20.0), 0.5, 1.0)
    assert noise.calls == [(5.0, 0.0, -10.0)]


def test_sampler_is_deterministic_across_instances():
    a = NoiseSampler(seed=7)
    b = NoiseSampler(seed=7)
    points = [(0.0, 0.0, 0.0), (3.5, 0.0, -12.25), (160.0, 0.0, 48.0)]
    first = [a.height(*p) for p in points]
    assert first == [a.height(*p) for p in points]
    assert first == [b.height(*p) for p in points]


def test_sampler_stays_within_amplitude():
    s = NoiseSampler(seed=1, frequency=0.05, amplitude=8.0)
    for i in range(200):
        h = s.height(i * 0.73, 0.0, i * -1.31)
        assert -1e-6 <= h <= 8.0 + 1e-6


def test_seed_changes_the_field():
    a = NoiseSampler(seed=1)
    b = NoiseSampler(seed=2)
    pts = [(i * 2.3, 0.0, i * 1.7) for i in range(1, 20)]
    assert [a.height(*p) for p in pts] != [b.height(*p) for p in pts]


def test_height_at_samples_ground_plane():
    s = NoiseSampler(seed=3)
    assert s.height_at(4.0, 9.0) == pytest.approx(s.height(4.0, 0.0, 9.0))
