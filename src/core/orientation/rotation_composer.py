"""
Device-family strategies for turning corrected angles into a rotation.

Two families are supported:
- StandardOrientationStrategy: alpha is wrapped into [0, 360) on arrival and
  the composed quaternion is the output.
- CompassYawOverrideStrategy: Apple-mobile devices report a free-running
  alpha plus a magnetometer compass heading. Pitch and roll come from the
  composed quaternion but yaw is replaced by the (smoothed) compass heading
  plus a screen-orientation offset, so yaw follows true north without drift.

The strategy is picked once when the controls are built (see
select_strategy()) and is never re-checked per sample.
"""

from __future__ import annotations

import dataclasses
import logging
import math
import re
from typing import Optional, Tuple

import numpy as np

from core.orientation.circular_smoother import smooth_angle
from core.orientation.rotation import (
    compose_device_quaternion,
    euler_yxz_from_quaternion,
    quaternion_from_euler_yxz,
)
from core.orientation.sample_store import (
    OrientationOffsets,
    OrientationSample,
    SmoothingState,
)

log = logging.getLogger(__name__)

HALF_PI = 0.5 * math.pi

_APPLE_MOBILE_AGENT = re.compile(r"iPhone|iPad|iPod", re.IGNORECASE)
_MACINTOSH_AGENT = re.compile(r"Macintosh", re.IGNORECASE)


def detect_apple_mobile(user_agent: Optional[str], max_touch_points: Optional[int] = None) -> bool:
    """
    Detect the Apple-mobile device family from a user agent string.

    iPadOS Safari reports a desktop Macintosh agent, so a Macintosh agent
    with more than one touch point also counts.
    """
    agent = user_agent or ""
    if _APPLE_MOBILE_AGENT.search(agent):
        return True
    return bool(
        _MACINTOSH_AGENT.search(agent)
        and max_touch_points is not None
        and max_touch_points > 1
    )


class OrientationStrategy:
    """Base class: sample intake, screen handling and final composition."""

    name = "base"

    def prepare_sample(self, sample: OrientationSample, offsets: OrientationOffsets) -> OrientationSample:
        """Normalize a fresh sample and update offsets; returns the sample to store."""
        return sample

    def on_screen_orientation(self, screen_angle: float, offsets: OrientationOffsets) -> None:
        """React to a screen rotation change."""

    def compose(
        self,
        alpha: float,
        beta: float,
        gamma: float,
        orient: float,
        sample: OrientationSample,
        offsets: OrientationOffsets,
        previous: Optional[SmoothingState],
        smoothing_factor: float,
    ) -> Tuple[np.ndarray, Optional[float]]:
        """
        Produce the output quaternion.

        Args:
            alpha, beta, gamma: Corrected, un-shifted angles in radians
            orient: Screen angle in radians
            sample: Sample the angles were taken from
            offsets: Current offsets
            previous: Smoothing state from the previous tick, if any
            smoothing_factor: Configured smoothing factor

        Returns:
            (quaternion, compass_yaw) where compass_yaw is None unless the
            strategy tracks a separately smoothed compass yaw
        """
        raise NotImplementedError


class StandardOrientationStrategy(OrientationStrategy):
    """Gyro/accelerometer orientation used as-is."""

    name = "standard"

    def prepare_sample(self, sample: OrientationSample, offsets: OrientationOffsets) -> OrientationSample:
        alpha = sample.alpha % 360.0
        # Tiny negative values round up to exactly 360
        if alpha >= 360.0:
            alpha -= 360.0
        if alpha != sample.alpha:
            sample = dataclasses.replace(sample, alpha=alpha)
        return sample

    def compose(self, alpha, beta, gamma, orient, sample, offsets, previous, smoothing_factor):
        return compose_device_quaternion(alpha, beta, gamma, orient), None


class CompassYawOverrideStrategy(OrientationStrategy):
    """Apple-mobile path: yaw follows the compass heading instead of alpha."""

    name = "compass_yaw_override"

    def prepare_sample(self, sample: OrientationSample, offsets: OrientationOffsets) -> OrientationSample:
        ccw_north_heading = 360.0 - sample.compass_or_zero
        offsets.alpha_offset = math.radians(ccw_north_heading - sample.alpha)
        return sample

    def on_screen_orientation(self, screen_angle: float, offsets: OrientationOffsets) -> None:
        if screen_angle == 90:
            offsets.orientation_offset = -HALF_PI
        elif screen_angle == -90:
            offsets.orientation_offset = HALF_PI
        else:
            offsets.orientation_offset = 0.0

    def compose(self, alpha, beta, gamma, orient, sample, offsets, previous, smoothing_factor):
        q = compose_device_quaternion(alpha, beta, gamma, orient)
        euler_x, _, euler_z = euler_yxz_from_quaternion(q)

        compass_yaw = math.radians(360.0 - sample.compass_or_zero)
        if (
            smoothing_factor < 1.0
            and previous is not None
            and previous.compass_yaw is not None
        ):
            compass_yaw = smooth_angle(compass_yaw, previous.compass_yaw, smoothing_factor)

        yaw = compass_yaw + offsets.orientation_offset
        return quaternion_from_euler_yxz(euler_x, yaw, euler_z), compass_yaw


def select_strategy(is_apple_mobile: bool) -> OrientationStrategy:
    strategy = CompassYawOverrideStrategy() if is_apple_mobile else StandardOrientationStrategy()
    log.debug(f"Orientation strategy selected: {strategy.name}")
    return strategy
