"""
Latest-sample storage for the orientation fusion update cycle.

Sensor callbacks write the most recent device-orientation sample, the screen
rotation angle and the north/screen offsets; the render-loop update() reads
them. Everything here runs on a single cooperative thread, so no locking is
done: callbacks own the sample and offsets, update() owns the smoothing state.

Usage:
    store = SampleStore()
    store.record_sample(OrientationSample.from_event({"alpha": 350.0}))
    store.screen_angle = 90
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional


def _read_field(event: Any, *names: str) -> Any:
    """Return the first present field of a mapping or attribute-style event."""
    for name in names:
        if isinstance(event, dict):
            value = event.get(name)
        else:
            value = getattr(event, name, None)
        if value is not None:
            return value
    return None


def _as_degrees(value: Any) -> float:
    """Coerce a raw sensor field to float, missing or malformed values become 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


@dataclass(frozen=True)
class OrientationSample:
    """Raw device-orientation reading in degrees."""

    alpha: float = 0.0                      # Z, [0, 360)
    beta: float = 0.0                       # X', [-180, 180]
    gamma: float = 0.0                      # Y'', [-90, 90]
    compass_heading: Optional[float] = None  # Magnetometer bearing, Apple only
    absolute: Optional[bool] = None

    @classmethod
    def from_event(cls, event: Any) -> "OrientationSample":
        """Build a sample from a raw orientation event (mapping or object)."""
        compass = _read_field(event, "compass_heading", "webkitCompassHeading")
        absolute = _read_field(event, "absolute")
        return cls(
            alpha=_as_degrees(_read_field(event, "alpha")),
            beta=_as_degrees(_read_field(event, "beta")),
            gamma=_as_degrees(_read_field(event, "gamma")),
            compass_heading=None if compass is None else _as_degrees(compass),
            absolute=None if absolute is None else bool(absolute),
        )

    @property
    def compass_or_zero(self) -> float:
        return self.compass_heading if self.compass_heading is not None else 0.0


@dataclass
class OrientationOffsets:
    """North-alignment and screen-rotation corrections, in radians."""

    alpha_offset: float = 0.0
    orientation_offset: float = 0.0


@dataclass(frozen=True)
class SmoothingState:
    """Angles produced by the previous update tick, in radians."""

    alpha: float
    beta: float
    gamma: float
    compass_yaw: Optional[float] = None


class SampleStore:
    """Holds the latest sample, screen angle and offsets between ticks."""

    def __init__(self) -> None:
        self.sample: Optional[OrientationSample] = None
        self.screen_angle: float = 0.0
        self.offsets = OrientationOffsets()
        self.sample_count = 0

    def record_sample(self, sample: OrientationSample) -> None:
        self.sample = sample
        self.sample_count += 1

    def clear_sample(self) -> None:
        """Drop the stored sample; offsets and screen angle are kept."""
        self.sample = None

    @property
    def has_sample(self) -> bool:
        return self.sample is not None
