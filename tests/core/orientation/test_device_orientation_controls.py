"""Tests for the DeviceOrientationControls facade and its update tick."""

from __future__ import annotations

import math
from typing import Any, Dict, List

import numpy as np
import pytest

from core.hardware.sensor_environment import (
    DEVICE_ORIENTATION_ABSOLUTE_EVENT,
    DEVICE_ORIENTATION_EVENT,
    SCREEN_ORIENTATION_EVENT,
    SimulatedSensorEnvironment,
)
from core.orientation.device_orientation_controls import (
    EVENT_CAMERA_ROTATION_CHANGE,
    DeviceOrientationControls,
)
from core.orientation.permission_controller import EVENT_ERROR, EVENT_GRANTED, ErrorCode, PermissionState
from core.orientation.permission_prompt import DeferredDialogPrompt
from core.orientation.rotation import (
    RotationTarget,
    compose_device_quaternion,
    decompose_device_quaternion,
    euler_yxz_from_quaternion,
)
from utils.config_sections import OrientationConfig

IPHONE_AGENT = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X)"


def angle_close(a: float, b: float, tol: float = 1e-9) -> bool:
    diff = (a - b + math.pi) % (2 * math.pi) - math.pi
    return abs(diff) < tol


def same_rotation(q1: np.ndarray, q2: np.ndarray) -> bool:
    return abs(float(np.dot(q1, q2))) == pytest.approx(1.0)


class Harness:
    def __init__(self, config: OrientationConfig = None, prompt=None, **env_fields) -> None:
        self.env = SimulatedSensorEnvironment(**env_fields)
        self.target = RotationTarget()
        self.controls = DeviceOrientationControls(
            self.target,
            self.env,
            config=config or OrientationConfig(platform_is_apple_mobile=False),
            prompt=prompt,
        )
        self.granted: List[Dict[str, Any]] = []
        self.errors: List[Any] = []
        self.controls.on(EVENT_GRANTED, self.granted.append)
        self.controls.on(EVENT_ERROR, self.errors.append)

    def start(self) -> "Harness":
        self.controls.init()
        self.controls.connect()
        return self

    def tick(self, **fields) -> None:
        self.env.emit_orientation(**fields)
        self.controls.update()


@pytest.fixture()
def harness() -> Harness:
    return Harness().start()


def test_init_without_orientation_api_emits_single_error():
    h = Harness(has_orientation_api=False)

    h.controls.init()

    assert [error.code for error in h.errors] == [ErrorCode.NOT_SUPPORTED]
    assert h.granted == []


def test_init_insecure_emits_single_no_https():
    h = Harness(is_secure_context=False)

    h.controls.init()

    assert [error.code for error in h.errors] == [ErrorCode.NO_HTTPS]
    assert h.granted == []


def test_granted_payload_targets_controls():
    h = Harness()

    h.controls.init()

    assert h.granted == [{"target": h.controls}]
    assert h.errors == []


def test_granted_handler_can_connect():
    h = Harness(has_permission_api=True, prompt=DeferredDialogPrompt())
    h.controls.on(EVENT_GRANTED, lambda event: event["target"].connect())
    h.controls.init()

    h.controls.permission.prompt.click()
    h.env.resolve_permission("granted")

    assert h.controls.permission_state is PermissionState.GRANTED
    assert h.controls.enabled
    assert h.env.listener_count(DEVICE_ORIENTATION_EVENT) == 1
    assert len(h.granted) == 1 and h.errors == []


def test_connect_before_grant_registers_nothing():
    h = Harness(has_permission_api=True, prompt=DeferredDialogPrompt())
    h.controls.init()

    h.controls.connect()

    assert h.env.listener_count() == 0
    assert not h.controls.enabled


def test_connect_is_idempotent(harness):
    harness.controls.connect()

    assert harness.env.listener_count(DEVICE_ORIENTATION_EVENT) == 1
    assert harness.env.listener_count(SCREEN_ORIENTATION_EVENT) == 1
    assert harness.controls.enabled


def test_disconnect_clears_sample_and_listeners(harness):
    harness.tick(alpha=45.0, beta=10.0, gamma=5.0)
    assert harness.controls.get_alpha() == pytest.approx(math.radians(45.0))

    harness.controls.disconnect()
    harness.controls.disconnect()

    assert harness.env.listener_count() == 0
    assert not harness.controls.enabled
    assert harness.controls.get_alpha() == 0.0
    assert harness.controls.get_beta() == 0.0
    assert harness.controls.get_gamma() == 0.0
    assert harness.controls.heading() == 0.0


def test_dispose_disconnects(harness):
    harness.controls.dispose()
    assert harness.env.listener_count() == 0


def test_absolute_events_are_preferred():
    h = Harness(supports_absolute_orientation=True).start()

    assert h.env.listener_count(DEVICE_ORIENTATION_ABSOLUTE_EVENT) == 1
    assert h.env.listener_count(DEVICE_ORIENTATION_EVENT) == 0


def test_update_before_connect_is_noop():
    h = Harness()
    h.controls.init()
    before = h.target.quaternion.copy()

    h.controls.update()

    assert h.controls.smoothing_state is None
    assert np.array_equal(h.target.quaternion, before)


def test_update_without_sample_is_noop(harness):
    harness.controls.update()
    assert harness.controls.smoothing_state is None
    assert harness.controls.tick_count == 0


def test_update_while_disabled_leaves_state_untouched(harness):
    harness.tick(alpha=30.0, beta=20.0, gamma=10.0)
    state = harness.controls.smoothing_state
    rotation = harness.target.quaternion.copy()

    harness.controls.enabled = False
    harness.env.emit_orientation(alpha=100.0, beta=-20.0, gamma=-10.0)
    harness.controls.update()

    assert harness.controls.smoothing_state is state
    assert np.array_equal(harness.target.quaternion, rotation)


def test_negative_alpha_is_normalized(harness):
    harness.env.emit_orientation(alpha=-10.0)

    assert harness.controls.store.sample.alpha == pytest.approx(350.0)
    assert harness.controls.get_alpha() == pytest.approx(math.radians(350.0))
    assert harness.controls.heading() == pytest.approx(10.0)


def test_missing_fields_default_to_zero(harness):
    harness.tick(alpha=None, beta="oops")

    sample = harness.controls.store.sample
    assert (sample.alpha, sample.beta, sample.gamma) == (0.0, 0.0, 0.0)
    assert same_rotation(harness.target.quaternion, compose_device_quaternion(0.0, 0.0, 0.0, 0.0))


def test_rotation_matches_composition(harness):
    harness.tick(alpha=40.0, beta=30.0, gamma=-20.0)

    expected = compose_device_quaternion(
        math.radians(40.0), math.radians(30.0), math.radians(-20.0), 0.0
    )
    assert same_rotation(harness.target.quaternion, expected)

    alpha, beta, gamma = decompose_device_quaternion(harness.target.quaternion, 0.0)
    assert angle_close(alpha, math.radians(40.0))
    assert beta == pytest.approx(math.radians(30.0))
    assert gamma == pytest.approx(math.radians(-20.0))


def test_350_to_10_without_smoothing_passes_raw_value(harness):
    harness.tick(alpha=350.0, beta=0.0, gamma=0.0)
    harness.tick(alpha=10.0, beta=0.0, gamma=0.0)

    alpha, _, _ = decompose_device_quaternion(harness.target.quaternion, 0.0)
    assert angle_close(alpha, math.radians(10.0))
    assert harness.controls.smoothing_state.alpha == pytest.approx(math.radians(10.0))


def test_smoothing_follows_the_short_arc():
    h = Harness(config=OrientationConfig(smoothing_factor=0.5, platform_is_apple_mobile=False)).start()

    h.tick(alpha=350.0, beta=0.0, gamma=0.0)
    h.tick(alpha=10.0, beta=0.0, gamma=0.0)

    alpha, beta, gamma = decompose_device_quaternion(h.target.quaternion, 0.0)
    assert angle_close(alpha, 0.0)
    assert beta == pytest.approx(0.0, abs=1e-9)
    assert gamma == pytest.approx(0.0, abs=1e-9)


def test_smoothing_first_tick_matches_raw_rotation():
    h = Harness(config=OrientationConfig(smoothing_factor=0.3, platform_is_apple_mobile=False)).start()

    h.tick(alpha=40.0, beta=-30.0, gamma=20.0)

    expected = compose_device_quaternion(
        math.radians(40.0), math.radians(-30.0), math.radians(20.0), 0.0
    )
    assert same_rotation(h.target.quaternion, expected)
    state = h.controls.smoothing_state
    assert state.beta == pytest.approx(math.radians(-30.0) + math.pi)
    assert state.gamma == pytest.approx(math.radians(20.0) + 0.5 * math.pi)


def test_deadband_suppresses_small_changes():
    config = OrientationConfig(orientation_change_threshold=0.1, platform_is_apple_mobile=False)
    h = Harness(config=config).start()

    h.tick(alpha=10.0, beta=5.0, gamma=0.0)
    first = h.target.quaternion.copy()
    h.tick(alpha=12.0, beta=6.0, gamma=1.0)

    assert h.controls.smoothing_state.alpha == pytest.approx(math.radians(10.0))
    assert np.allclose(h.target.quaternion, first)

    h.tick(alpha=30.0, beta=6.0, gamma=1.0)

    assert h.controls.smoothing_state.alpha == pytest.approx(math.radians(30.0))
    assert h.controls.smoothing_state.beta == pytest.approx(math.radians(5.0))


def test_screen_rotation_is_compensated(harness):
    harness.env.rotate_screen(90)
    harness.tick(alpha=20.0, beta=40.0, gamma=10.0)

    assert harness.controls.store.screen_angle == 90
    alpha, beta, gamma = decompose_device_quaternion(harness.target.quaternion, math.radians(90))
    assert angle_close(alpha, math.radians(20.0))
    assert beta == pytest.approx(math.radians(40.0))
    assert gamma == pytest.approx(math.radians(10.0))


def test_screen_angle_read_on_connect():
    h = Harness(screen_angle=-90).start()
    assert h.controls.store.screen_angle == -90


def test_camera_rotation_change_emitted_per_sample(harness):
    seen = []
    harness.controls.on(EVENT_CAMERA_ROTATION_CHANGE, seen.append)

    harness.env.emit_orientation(alpha=1.0)
    harness.env.emit_orientation(alpha=2.0)

    assert seen == [{"camera_rotation": harness.target}] * 2


def test_platform_detected_from_user_agent():
    h = Harness(config=OrientationConfig(), user_agent=IPHONE_AGENT)
    assert h.controls.is_apple_mobile
    assert h.controls.strategy.name == "compass_yaw_override"

    android = Harness(config=OrientationConfig(), user_agent="Mozilla/5.0 (Linux; Android 14)")
    assert not android.controls.is_apple_mobile


def test_apple_heading_and_yaw_follow_compass():
    h = Harness(config=OrientationConfig(platform_is_apple_mobile=True)).start()

    h.tick(alpha=123.0, beta=30.0, gamma=0.0, compass_heading=90.0)

    assert h.controls.heading() == pytest.approx(270.0)
    assert h.controls.get_alpha() == pytest.approx(math.radians(270.0))
    _, yaw, _ = euler_yxz_from_quaternion(h.target.quaternion)
    assert angle_close(yaw, math.radians(270.0))
    assert h.controls.smoothing_state.compass_yaw == pytest.approx(math.radians(270.0))


def test_apple_landscape_offset_applies_to_heading_and_yaw():
    h = Harness(config=OrientationConfig(platform_is_apple_mobile=True)).start()
    h.env.rotate_screen(90)

    h.tick(alpha=0.0, beta=30.0, gamma=0.0, compass_heading=90.0)

    assert h.controls.store.offsets.orientation_offset == pytest.approx(-0.5 * math.pi)
    assert h.controls.heading() == pytest.approx(180.0)
    _, yaw, _ = euler_yxz_from_quaternion(h.target.quaternion)
    assert angle_close(yaw, math.radians(180.0))


def test_apple_offsets_survive_disconnect():
    h = Harness(config=OrientationConfig(platform_is_apple_mobile=True)).start()
    h.env.rotate_screen(-90)
    h.env.emit_orientation(alpha=10.0, compass_heading=90.0)
    offsets = (h.controls.store.offsets.alpha_offset, h.controls.store.offsets.orientation_offset)

    h.controls.disconnect()

    assert (h.controls.store.offsets.alpha_offset, h.controls.store.offsets.orientation_offset) == offsets
    assert h.controls.get_alpha() == 0.0
