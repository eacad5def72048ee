"""
Permission gesture prompts (UI collaborator boundary).

Browsers only accept a motion-sensor permission request that originates from
a direct user gesture. The controller therefore never requests permission on
its own: it hands a prompt either a yes/no confirm question or a dialog with
a single button whose click callback starts the request.

Rendering and styling of the dialog belong to the UI layer; the prompts here
cover the console replay tool and tests.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

log = logging.getLogger(__name__)


class PermissionPrompt:
    """Interface for the UI collaborator that collects the user gesture."""

    def confirm(self, message: str) -> bool:
        """Ask a blocking yes/no question; True means the user accepted."""
        raise NotImplementedError

    def show_dialog(self, message: str, on_confirm: Callable[[], None], button_text: str = "OK") -> None:
        """Show a one-button dialog; on_confirm must run from the button click."""
        raise NotImplementedError


class AutoConfirmPrompt(PermissionPrompt):
    """Accepts immediately, for unattended replays."""

    def confirm(self, message: str) -> bool:
        log.info(f"[Prompt] Auto-confirmed: {message}")
        return True

    def show_dialog(self, message, on_confirm, button_text="OK"):
        log.info(f"[Prompt] Auto-clicked '{button_text}': {message}")
        on_confirm()


class DeferredDialogPrompt(PermissionPrompt):
    """
    Keeps the dialog open until click() is called.

    Mirrors a real dialog: nothing happens until the user presses the button.
    """

    def __init__(self, accept_confirm: bool = True) -> None:
        self.accept_confirm = accept_confirm
        self.message: Optional[str] = None
        self.button_text: Optional[str] = None
        self._on_confirm: Optional[Callable[[], None]] = None
        self.confirm_calls = 0

    def confirm(self, message: str) -> bool:
        self.confirm_calls += 1
        self.message = message
        return self.accept_confirm

    def show_dialog(self, message, on_confirm, button_text="OK"):
        self.message = message
        self.button_text = button_text
        self._on_confirm = on_confirm

    @property
    def is_open(self) -> bool:
        return self._on_confirm is not None

    def click(self) -> None:
        """Simulate the button click, closing the dialog."""
        if self._on_confirm is None:
            raise RuntimeError("No permission dialog is open")
        on_confirm, self._on_confirm = self._on_confirm, None
        on_confirm()


class ConsolePermissionPrompt(PermissionPrompt):
    """Asks on stdin."""

    def __init__(self, input_fn: Callable[[str], str] = input) -> None:
        self.input_fn = input_fn

    def confirm(self, message: str) -> bool:
        answer = self.input_fn(f"{message} [y/N] ")
        return answer.strip().lower() in ("y", "yes")

    def show_dialog(self, message, on_confirm, button_text="OK"):
        self.input_fn(f"{message}\nPress Enter for [{button_text}] ")
        on_confirm()
