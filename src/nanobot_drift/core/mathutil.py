"""
Scalar and 2D vector helpers.

2D vectors are Python complex numbers (x + 1j * y): immutable at every API
boundary, with rotation and scaling as plain arithmetic.
"""

import cmath
import math

import numpy as np


def clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def ease_out_cubic(t: float) -> float:
    u = 1.0 - clamp(t, 0.0, 1.0)
    return 1.0 - u * u * u


def wrap(v: float, extent: float) -> float:
    """Wrap a coordinate into [0, extent)."""
    r = v % extent
    # -tiny % extent rounds up to extent
    return 0.0 if r >= extent else r


def wrap_position(pos: complex, world_size: tuple[float, float]) -> complex:
    return complex(wrap(pos.real, world_size[0]), wrap(pos.imag, world_size[1]))


def wrap_delta(delta: complex, world_size: tuple[float, float]) -> complex:
    """
    Shorter toroidal path for a naive delta.

    Exact for deltas within one world extent, which is all the simulation
    ever produces.
    """
    width, height = world_size
    dx, dy = delta.real, delta.imag
    if dx > width / 2:
        dx -= width
    elif dx < -width / 2:
        dx += width
    if dy > height / 2:
        dy -= height
    elif dy < -height / 2:
        dy += height
    return complex(dx, dy)


def from_angle(rad: float) -> complex:
    return cmath.rect(1.0, rad)


def normalize(v: complex) -> complex:
    length = abs(v)
    if length > 1e-8:
        return v / length
    return v


def dist_sq(a: complex, b: complex) -> float:
    d = a - b
    return d.real * d.real + d.imag * d.imag


def bearing(origin: complex, target: complex) -> float:
    d = target - origin
    return math.atan2(d.imag, d.real)


def wrap_array(values: np.ndarray, extent: float) -> None:
    """In-place `wrap` over a numpy slice view."""
    np.mod(values, extent, out=values)
    values[values >= extent] = 0.0
