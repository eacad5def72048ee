"""
Host environment boundary for device-orientation sensors.

The fusion core never talks to a browser or an OS sensor API directly. It
asks a SensorEnvironment for its capabilities, registers listeners through
it and starts permission requests with it. This module defines that
boundary and a SimulatedSensorEnvironment that lets the core be driven
without hardware (tests and the replay tool).

Event names:
- "deviceorientationabsolute": north-referenced orientation events, used when
  the environment supports them
- "deviceorientation": relative orientation events otherwise
- "orientationchange": screen rotation changes

Usage:
    env = SimulatedSensorEnvironment(has_permission_api=True)
    controls = DeviceOrientationControls(RotationTarget(), env)
    controls.init()
    env.resolve_permission("granted")
    controls.connect()
    env.emit_orientation(alpha=350.0, beta=10.0, gamma=0.0)
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from core.orientation.permission_controller import PendingRequest

log = logging.getLogger(__name__)

DEVICE_ORIENTATION_EVENT = "deviceorientation"
DEVICE_ORIENTATION_ABSOLUTE_EVENT = "deviceorientationabsolute"
SCREEN_ORIENTATION_EVENT = "orientationchange"

Listener = Callable[..., None]


class SensorEnvironment:
    """Capabilities and listener registry exposed by the host platform."""

    has_orientation_api: bool = False
    is_secure_context: bool = False
    has_permission_api: bool = False
    supports_absolute_orientation: bool = False
    user_agent: str = ""
    max_touch_points: int = 0

    @property
    def screen_orientation_angle(self) -> float:
        return 0.0

    def orientation_event_name(self) -> str:
        if self.supports_absolute_orientation:
            return DEVICE_ORIENTATION_ABSOLUTE_EVENT
        return DEVICE_ORIENTATION_EVENT

    def request_permission(self) -> PendingRequest:
        raise NotImplementedError

    def add_listener(self, event_name: str, listener: Listener) -> None:
        raise NotImplementedError

    def remove_listener(self, event_name: str, listener: Listener) -> None:
        raise NotImplementedError


class SimulatedSensorEnvironment(SensorEnvironment):
    """
    In-memory environment that dispatches synthetic sensor events.

    Permission requests stay pending until resolve_permission() or
    fail_permission() is called, like a real prompt waiting for the user.
    """

    def __init__(
        self,
        *,
        has_orientation_api: bool = True,
        is_secure_context: bool = True,
        has_permission_api: bool = False,
        supports_absolute_orientation: bool = False,
        user_agent: str = "",
        max_touch_points: int = 0,
        screen_angle: float = 0.0,
        request_error: Optional[BaseException] = None,
    ) -> None:
        self.has_orientation_api = has_orientation_api
        self.is_secure_context = is_secure_context
        self.has_permission_api = has_permission_api
        self.supports_absolute_orientation = supports_absolute_orientation
        self.user_agent = user_agent
        self.max_touch_points = max_touch_points
        self.request_error = request_error

        self._screen_angle = screen_angle
        self.listeners: Dict[str, List[Listener]] = {}
        self.pending_requests: List[PendingRequest] = []
        self.permission_request_count = 0

    # ------------------------------------------------------------------
    # SensorEnvironment
    # ------------------------------------------------------------------

    @property
    def screen_orientation_angle(self) -> float:
        return self._screen_angle

    def request_permission(self) -> PendingRequest:
        self.permission_request_count += 1
        if self.request_error is not None:
            raise self.request_error
        pending = PendingRequest()
        self.pending_requests.append(pending)
        return pending

    def add_listener(self, event_name: str, listener: Listener) -> None:
        self.listeners.setdefault(event_name, []).append(listener)

    def remove_listener(self, event_name: str, listener: Listener) -> None:
        registered = self.listeners.get(event_name, [])
        for index, candidate in enumerate(registered):
            if candidate == listener:
                del registered[index]
                return

    # ------------------------------------------------------------------
    # simulation controls
    # ------------------------------------------------------------------

    def listener_count(self, event_name: Optional[str] = None) -> int:
        if event_name is not None:
            return len(self.listeners.get(event_name, []))
        return sum(len(items) for items in self.listeners.values())

    def emit_orientation(self, **fields: Any) -> None:
        """Dispatch one orientation event with the given raw fields."""
        self._dispatch(self.orientation_event_name(), dict(fields))

    def rotate_screen(self, angle: float) -> None:
        self._screen_angle = angle
        self._dispatch(SCREEN_ORIENTATION_EVENT)

    @property
    def has_pending_permission(self) -> bool:
        return any(not pending.done for pending in self.pending_requests)

    def resolve_permission(self, response: str) -> None:
        self._next_pending().resolve(response)

    def fail_permission(self, error: BaseException) -> None:
        self._next_pending().fail(error)

    def _next_pending(self) -> PendingRequest:
        for pending in self.pending_requests:
            if not pending.done:
                return pending
        raise RuntimeError("No pending permission request")

    def _dispatch(self, event_name: str, *args: Any) -> None:
        listeners = list(self.listeners.get(event_name, []))
        if not listeners:
            log.debug(f"[SimEnv] {event_name} dropped, no listeners")
        for listener in listeners:
            listener(*args)
