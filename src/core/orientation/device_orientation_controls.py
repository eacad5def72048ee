"""
Device-orientation controls for AR camera overlays.

Turns raw device-orientation samples into a smoothed, north-aligned camera
rotation and a compass heading.

Architecture:
    sensor event -> SampleStore (+ offsets)
                         |
    update() tick -> circular smoothing -> deadband -> strategy.compose()
                         |                                   |
                  HeadingCalculator                 RotationTarget (in place)

Lifecycle:
    controls = DeviceOrientationControls(target, environment, prompt=prompt)
    controls.on("granted", lambda event: controls.connect())
    controls.on("error", report_error)
    controls.init()
    ...
    controls.update()          # every render frame
    bearing = controls.heading()
    ...
    controls.dispose()

Everything runs on the host's single event loop thread: sensor callbacks
write the sample store, update() writes the smoothing state and the target.
update() must not be called re-entrantly or from another thread.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Callable, Optional

from core.events.event_emitter import EventEmitter
from core.hardware.sensor_environment import SCREEN_ORIENTATION_EVENT, SensorEnvironment
from core.orientation.circular_smoother import smooth_angle
from core.orientation.deadband import apply_deadband
from core.orientation.heading import HeadingCalculator
from core.orientation.permission_controller import PermissionController, PermissionState
from core.orientation.permission_prompt import PermissionPrompt
from core.orientation.rotation import RotationTarget
from core.orientation.rotation_composer import detect_apple_mobile, select_strategy
from core.orientation.sample_store import OrientationSample, SampleStore, SmoothingState
from utils.config_sections import OrientationConfig, load_orientation_config

log = logging.getLogger(__name__)

HALF_PI = 0.5 * math.pi

EVENT_CAMERA_ROTATION_CHANGE = "camera_rotation_change"


class DeviceOrientationControls:
    """Fuses device-orientation samples into a camera rotation."""

    def __init__(
        self,
        target: RotationTarget,
        environment: SensorEnvironment,
        config: Optional[OrientationConfig] = None,
        prompt: Optional[PermissionPrompt] = None,
    ) -> None:
        self.target = target
        self.environment = environment
        self.config = config or load_orientation_config()

        self.event_emitter = EventEmitter()
        self.store = SampleStore()
        self.smoothing_state: Optional[SmoothingState] = None
        self.enabled = False
        self.tick_count = 0

        if self.config.platform_is_apple_mobile is None:
            self.is_apple_mobile = detect_apple_mobile(
                environment.user_agent, environment.max_touch_points
            )
        else:
            self.is_apple_mobile = self.config.platform_is_apple_mobile
        self.strategy = select_strategy(self.is_apple_mobile)

        self.orientation_event_name = environment.orientation_event_name()
        self.heading_calculator = HeadingCalculator(
            self.store,
            self.is_apple_mobile,
            absolute_events=environment.supports_absolute_orientation,
        )
        self.permission = PermissionController(
            environment,
            self.event_emitter,
            self.config,
            prompt=prompt,
            granted_target=self,
        )
        self._connected = False

        log.info(
            f"[Controls] Initialized (strategy={self.strategy.name}, "
            f"events={self.orientation_event_name}, "
            f"smoothing={self.config.smoothing_factor}, "
            f"threshold={self.config.orientation_change_threshold})"
        )

    # ------------------------------------------------------------------
    # notifications
    # ------------------------------------------------------------------

    def on(self, event_name: str, handler: Callable[..., Any]) -> None:
        self.event_emitter.on(event_name, handler)

    def off(self, event_name: str, handler: Callable[..., Any]) -> None:
        self.event_emitter.off(event_name, handler)

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    @property
    def permission_state(self) -> PermissionState:
        return self.permission.state

    def init(self) -> None:
        """
        Run capability checks and drive the permission state machine.

        Register "granted" and "error" handlers first: the outcome is only
        reported through them.
        """
        self.permission.init()

    def connect(self) -> None:
        """Attach sensor listeners. Requires granted permission; idempotent."""
        if not self.permission.is_granted:
            log.warning(
                f"[Controls] connect() ignored, permission state is {self.permission.state.name}"
            )
            return
        if self._connected:
            return

        self._on_screen_orientation_change()
        self.environment.add_listener(SCREEN_ORIENTATION_EVENT, self._on_screen_orientation_change)
        self.environment.add_listener(self.orientation_event_name, self._on_device_orientation)
        self._connected = True
        self.enabled = True
        log.info("[Controls] Connected")

    def disconnect(self) -> None:
        """Detach listeners and drop the stored sample; offsets survive. Idempotent."""
        if self._connected:
            self.environment.remove_listener(SCREEN_ORIENTATION_EVENT, self._on_screen_orientation_change)
            self.environment.remove_listener(self.orientation_event_name, self._on_device_orientation)
            self._connected = False
            log.info("[Controls] Disconnected")
        self.enabled = False
        self.store.clear_sample()

    def dispose(self) -> None:
        self.disconnect()

    # ------------------------------------------------------------------
    # sensor callbacks
    # ------------------------------------------------------------------

    def _on_device_orientation(self, event: Any) -> None:
        sample = OrientationSample.from_event(event)
        sample = self.strategy.prepare_sample(sample, self.store.offsets)
        self.store.record_sample(sample)
        self.event_emitter.emit(EVENT_CAMERA_ROTATION_CHANGE, {"camera_rotation": self.target})

    def _on_screen_orientation_change(self, *_: Any) -> None:
        angle = self.environment.screen_orientation_angle or 0
        self.store.screen_angle = angle
        self.strategy.on_screen_orientation(angle, self.store.offsets)
        log.debug(f"[Controls] Screen orientation {angle}")

    # ------------------------------------------------------------------
    # update tick
    # ------------------------------------------------------------------

    def update(self) -> None:
        """One fusion tick; writes the rotation into the target. No-op while disabled."""
        if not self.enabled:
            return
        sample = self.store.sample
        if sample is None:
            return

        offsets = self.store.offsets
        previous = self.smoothing_state
        k = self.config.smoothing_factor
        smoothing = self.config.smoothing_enabled

        alpha = math.radians(sample.alpha) + offsets.alpha_offset  # Z
        beta = math.radians(sample.beta)  # X'
        gamma = math.radians(sample.gamma)  # Y''
        orient = math.radians(self.store.screen_angle)  # O

        if smoothing:
            # Shift beta to [0, 2pi] and gamma to [0, pi] so the wrap points
            # are away from the usual holding positions
            beta += math.pi
            gamma += HALF_PI
            if previous is not None:
                alpha = smooth_angle(alpha, previous.alpha, k)
                beta = smooth_angle(beta, previous.beta, k)
                gamma = smooth_angle(gamma, previous.gamma, k, math.pi)

        if previous is not None:
            threshold = self.config.orientation_change_threshold
            alpha = apply_deadband(alpha, previous.alpha, threshold)
            beta = apply_deadband(beta, previous.beta, threshold)
            gamma = apply_deadband(gamma, previous.gamma, threshold)

        quaternion, compass_yaw = self.strategy.compose(
            alpha,
            beta - math.pi if smoothing else beta,
            gamma - HALF_PI if smoothing else gamma,
            orient,
            sample,
            offsets,
            previous,
            k,
        )
        self.target.set_quaternion(quaternion)
        self.smoothing_state = SmoothingState(alpha, beta, gamma, compass_yaw)
        self.tick_count += 1

    # ------------------------------------------------------------------
    # accessors
    # ------------------------------------------------------------------

    def heading(self) -> float:
        """Compass bearing in [0, 360), 0 before the first sample."""
        return self.heading_calculator.heading()

    def get_alpha(self) -> float:
        sample = self.store.sample
        if sample is None:
            return 0.0
        return math.radians(sample.alpha) + self.store.offsets.alpha_offset

    def get_beta(self) -> float:
        sample = self.store.sample
        return math.radians(sample.beta) if sample is not None else 0.0

    def get_gamma(self) -> float:
        sample = self.store.sample
        return math.radians(sample.gamma) if sample is not None else 0.0
