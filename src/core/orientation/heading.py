"""Compass bearing derived from the latest sample, independent of the render rotation."""

from __future__ import annotations

import math

from core.orientation.sample_store import SampleStore


class HeadingCalculator:
    """Computes a 0-360 deg bearing (0 = north, clockwise) from the sample store."""

    def __init__(self, store: SampleStore, is_apple_mobile: bool, absolute_events: bool = False) -> None:
        self.store = store
        self.is_apple_mobile = is_apple_mobile
        self.absolute_events = absolute_events

    def heading(self) -> float:
        sample = self.store.sample
        if sample is None:
            return 0.0

        if self.is_apple_mobile:
            # Compass heading is always available on this family
            heading = 360.0 - sample.compass_or_zero
            heading += math.degrees(self.store.offsets.orientation_offset)
        else:
            is_absolute = sample.absolute is True or self.absolute_events
            heading = sample.alpha
            if is_absolute:
                # Absolute alpha is already north-referenced; a system-specific
                # offset would go here but none is applied yet.
                pass
            # Alpha grows counter-clockwise, bearings grow clockwise
            heading = 360.0 - heading

        heading %= 360.0
        # -0.0 and float rounding can land exactly on 360
        if heading >= 360.0:
            heading -= 360.0
        return heading
