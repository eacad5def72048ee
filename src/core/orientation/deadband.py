"""Per-axis hysteresis that drops sub-threshold angle changes."""

from __future__ import annotations


def apply_deadband(new_angle: float, previous_angle: float, threshold: float) -> float:
    """Return previous_angle when the change is below threshold, else new_angle."""
    if abs(new_angle - previous_angle) < threshold:
        return previous_angle
    return new_angle
