"""
Permission state machine gating access to device-orientation sensors.

init() runs the capability checks and moves the controller to its first
resting state. When the platform requires an explicit permission request
(Apple-mobile Safari), that request must come from a user gesture, so the
controller only reaches REQUESTING from the callback it hands to the prompt.

States:
    UNCHECKED --init()--> UNSUPPORTED | INSECURE | AWAITING_GESTURE | GRANTED
    AWAITING_GESTURE --gesture--> REQUESTING | FAILED (permission API vanished)
    REQUESTING --result--> GRANTED | DENIED | FAILED

Every terminal state is announced exactly once through the emitter, as a
"granted" or "error" notification. Nothing is raised to the caller: the
outcome is discovered during init() or asynchronously.

The permission result is two-phase: the environment returns a PendingRequest
right away and completes it later. There is no timeout; an unanswered prompt
leaves the controller in REQUESTING.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from core.events.event_emitter import EventEmitter
from core.orientation.permission_prompt import PermissionPrompt
from utils.config_sections import (
    OrientationConfig,
    PermissionPromptConfig,
    load_permission_prompt_config,
)

log = logging.getLogger(__name__)

EVENT_GRANTED = "granted"
EVENT_ERROR = "error"

PERMISSION_GRANTED = "granted"


class PermissionState(Enum):
    UNCHECKED = "unchecked"
    AWAITING_GESTURE = "awaiting_gesture"
    REQUESTING = "requesting"
    GRANTED = "granted"
    DENIED = "denied"
    FAILED = "failed"
    UNSUPPORTED = "unsupported"
    INSECURE = "insecure"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset({
    PermissionState.GRANTED,
    PermissionState.DENIED,
    PermissionState.FAILED,
    PermissionState.UNSUPPORTED,
    PermissionState.INSECURE,
})


class ErrorCode(Enum):
    NOT_SUPPORTED = "NOT_SUPPORTED"
    NO_HTTPS = "NO_HTTPS"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    PERMISSION_REQUEST_FAILED = "PERMISSION_REQUEST_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass(frozen=True)
class OrientationError:
    """Payload of an "error" notification."""

    code: ErrorCode
    message: str
    detail: Optional[str] = None


class PendingRequest:
    """
    In-flight permission request with a single completion consumer.

    The environment creates it, returns it from request_permission() and
    later calls resolve() or fail(). The controller attaches exactly one
    consumer; a result that arrives first is held until it does.
    """

    def __init__(self) -> None:
        self._consumer: Optional[Callable[[Optional[str], Optional[BaseException]], None]] = None
        self._done = False
        self._response: Optional[str] = None
        self._error: Optional[BaseException] = None

    @property
    def done(self) -> bool:
        return self._done

    def on_complete(self, consumer: Callable[[Optional[str], Optional[BaseException]], None]) -> None:
        if self._consumer is not None:
            raise RuntimeError("PendingRequest already has a consumer")
        self._consumer = consumer
        if self._done:
            consumer(self._response, self._error)

    def resolve(self, response: str) -> None:
        self._complete(response, None)

    def fail(self, error: BaseException) -> None:
        self._complete(None, error)

    def _complete(self, response: Optional[str], error: Optional[BaseException]) -> None:
        if self._done:
            raise RuntimeError("PendingRequest already completed")
        self._done = True
        self._response = response
        self._error = error
        if self._consumer is not None:
            self._consumer(response, error)


class PermissionController:
    """Drives PermissionState and reports terminal outcomes."""

    def __init__(
        self,
        environment: Any,
        emitter: EventEmitter,
        config: OrientationConfig,
        prompt: Optional[PermissionPrompt] = None,
        prompt_config: Optional[PermissionPromptConfig] = None,
        granted_target: Any = None,
    ) -> None:
        self.environment = environment
        self.emitter = emitter
        self.config = config
        self.prompt = prompt
        self.prompt_config = prompt_config or load_permission_prompt_config()
        self.granted_target = granted_target
        self.state = PermissionState.UNCHECKED
        self.pending: Optional[PendingRequest] = None

    # ------------------------------------------------------------------
    # capability checks
    # ------------------------------------------------------------------

    def init(self) -> None:
        if self.state is not PermissionState.UNCHECKED:
            log.warning(f"[Permission] init() ignored in state {self.state.name}")
            return

        if not self.environment.has_orientation_api:
            self._fail(
                PermissionState.UNSUPPORTED,
                ErrorCode.NOT_SUPPORTED,
                "Device orientation API not supported",
            )
        elif not self.environment.is_secure_context:
            self._fail(
                PermissionState.INSECURE,
                ErrorCode.NO_HTTPS,
                "Device orientation is only available in secure contexts (https)",
            )
        elif self.environment.has_permission_api and self.config.enable_permission_dialog:
            self._set_state(PermissionState.AWAITING_GESTURE)
            self._obtain_permission_gesture()
        else:
            # No permission model, or the caller handles the request elsewhere
            self._grant()

    # ------------------------------------------------------------------
    # user gesture
    # ------------------------------------------------------------------

    def _obtain_permission_gesture(self) -> None:
        if self.prompt is None:
            log.warning("[Permission] No prompt attached; waiting for on_gesture_confirmed()")
            return

        message = self.prompt_config.message
        if self.config.prefer_confirm_dialog:
            if self.prompt.confirm(message):
                self.on_gesture_confirmed()
            else:
                log.info("[Permission] Confirm prompt declined")
        else:
            self.prompt.show_dialog(
                message,
                self.on_gesture_confirmed,
                button_text=self.prompt_config.button_text,
            )

    def on_gesture_confirmed(self) -> None:
        """Gesture callback: the only way into REQUESTING."""
        if self.state is not PermissionState.AWAITING_GESTURE:
            log.warning(f"[Permission] Gesture ignored in state {self.state.name}")
            return

        if not self.environment.has_permission_api:
            self._fail(
                PermissionState.FAILED,
                ErrorCode.INTERNAL_ERROR,
                "Internal error: permission API missing although a permission "
                "request was started",
            )
            return

        self._set_state(PermissionState.REQUESTING)
        try:
            pending = self.environment.request_permission()
        except Exception as err:
            log.error(f"[Permission] Permission request raised: {err!r}")
            self._fail(
                PermissionState.FAILED,
                ErrorCode.PERMISSION_REQUEST_FAILED,
                "Permission request for device orientation failed",
                detail=repr(err),
            )
            return

        self.pending = pending
        pending.on_complete(self._on_permission_result)

    def _on_permission_result(self, response: Optional[str], error: Optional[BaseException]) -> None:
        if self.state is not PermissionState.REQUESTING:
            log.warning(f"[Permission] Late permission result ignored in state {self.state.name}")
            return

        self.pending = None
        if error is not None:
            log.error(f"[Permission] Permission request failed: {error!r}")
            self._fail(
                PermissionState.FAILED,
                ErrorCode.PERMISSION_REQUEST_FAILED,
                "Permission request for device orientation failed",
                detail=repr(error),
            )
        elif response == PERMISSION_GRANTED:
            self._grant()
        else:
            self._fail(
                PermissionState.DENIED,
                ErrorCode.PERMISSION_DENIED,
                "Permission for device orientation denied",
                detail=None if response is None else str(response),
            )

    # ------------------------------------------------------------------
    # terminal outcomes
    # ------------------------------------------------------------------

    @property
    def is_granted(self) -> bool:
        return self.state is PermissionState.GRANTED

    def _grant(self) -> None:
        self._set_state(PermissionState.GRANTED)
        self.emitter.emit(EVENT_GRANTED, {"target": self.granted_target})

    def _fail(
        self,
        state: PermissionState,
        code: ErrorCode,
        message: str,
        detail: Optional[str] = None,
    ) -> None:
        self._set_state(state)
        log.warning(f"[Permission] {code.value}: {message}")
        self.emitter.emit(EVENT_ERROR, OrientationError(code=code, message=message, detail=detail))

    def _set_state(self, state: PermissionState) -> None:
        log.debug(f"[Permission] {self.state.name} -> {state.name}")
        self.state = state
