"""
Circular interpolation between two angles along the shorter arc.

Plain linear interpolation between 359 deg and 1 deg sweeps through 180 deg.
This module instead orders the two angles so the arc between them is the
shorter one, moves that arc to start at zero, interpolates there and moves
the result back onto the circle.

Ties (angles exactly half a circle apart) are deterministic: the arc starts
at the previous angle and runs in the increasing direction.

Usage:
    smoothed = smooth_angle(new_alpha, last_alpha, k=0.3)
    smoothed_gamma = smooth_angle(new_gamma, last_gamma, k=0.3, angle_range=math.pi)
"""

from __future__ import annotations

import math
from typing import Tuple

TWO_PI = 2.0 * math.pi


def wrap_angle(angle: float, angle_range: float = TWO_PI) -> float:
    """Wrap an angle into [0, angle_range)."""
    wrapped = math.fmod(angle, angle_range)
    if wrapped < 0.0:
        wrapped += angle_range
    # fmod of a tiny negative value can round up to angle_range
    if wrapped >= angle_range:
        wrapped -= angle_range
    return wrapped


def order_angles(a: float, b: float, angle_range: float = TWO_PI) -> Tuple[float, float]:
    """
    Order two angles so that left -> right (increasing) is the shorter arc.

    Args:
        a: First angle, already in [0, angle_range)
        b: Second angle, already in [0, angle_range)
        angle_range: Circumference of the circle

    Returns:
        (left, right) tuple
    """
    half = angle_range / 2.0
    diff = abs(b - a)
    if (b > a and diff < half) or (a > b and diff > half):
        return a, b
    return b, a


def smooth_angle(
    new_angle: float,
    previous_angle: float,
    k: float,
    angle_range: float = TWO_PI,
) -> float:
    """
    Weighted interpolation of two angles along the shorter arc.

    Args:
        new_angle: Latest measurement
        previous_angle: Previous smoothed value
        k: Weight of the new angle in (0, 1], 1 returns new_angle
        angle_range: Circumference, 2*pi for full-turn axes, pi for half-turn axes

    Returns:
        Smoothed angle in [0, angle_range)
    """
    new_angle = wrap_angle(new_angle, angle_range)
    previous_angle = wrap_angle(previous_angle, angle_range)
    if k >= 1.0 or new_angle == previous_angle:
        return new_angle

    left, right = order_angles(new_angle, previous_angle, angle_range)
    new_is_left = left == new_angle

    span = right - left
    if span < 0.0:
        span += angle_range

    # Position along the arc measured from left (at 0) towards right (at span)
    if new_is_left:
        offset = (1.0 - k) * span
    else:
        offset = k * span

    return wrap_angle(left + offset, angle_range)
