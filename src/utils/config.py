"""
Centralized configuration for the orientation fusion subsystem.

This module provides all configuration constants for:
- Smoothing and jitter suppression (circular interpolation, deadband)
- Platform selection (Apple-mobile compass yaw vs standard orientation)
- Permission gesture handling (dialog vs confirm prompt)
- Session logging

The Config class contains all constants as class attributes, making them
accessible throughout the application without instantiation.

Usage:
    from utils.config import Config

    factor = Config.ORIENTATION_SMOOTHING_FACTOR
    if Config.ORIENTATION_ENABLE_PERMISSION_DIALOG:
        # Show the permission gesture prompt on init()
"""

import logging

log = logging.getLogger(__name__)


class Config:
    """System configuration constants for orientation fusion."""

    # ==========================================================================
    # SMOOTHING: Circular interpolation & deadband
    # ==========================================================================

    # 1.0 disables smoothing; lower values weight the previous tick more
    ORIENTATION_SMOOTHING_FACTOR = 1.0
    ORIENTATION_CHANGE_THRESHOLD = 0.0      # Radians, 0 = deadband off

    # ==========================================================================
    # PLATFORM: Device family selection
    # ==========================================================================

    # None = detect from the environment user agent
    ORIENTATION_PLATFORM_APPLE_MOBILE = None

    # ==========================================================================
    # PERMISSIONS: User gesture prompt
    # ==========================================================================

    ORIENTATION_ENABLE_PERMISSION_DIALOG = True
    ORIENTATION_PREFER_CONFIRM_DIALOG = False   # Plain confirm() instead of a dialog
    ORIENTATION_PERMISSION_MESSAGE = (
        "This application requires access to your device motion sensors."
    )
    ORIENTATION_PERMISSION_BUTTON_TEXT = "OK"

    # ==========================================================================
    # LOGGING: Session log files
    # ==========================================================================

    ORIENTATION_LOG_ROOT = "logs"
    ORIENTATION_LOG_CONSOLE_LEVEL = "WARNING"

    # ==========================================================================
    # REPLAY: Simulated environment defaults
    # ==========================================================================

    REPLAY_USER_AGENT = "Mozilla/5.0 (Linux; Android 14; Pixel 8)"
    REPLAY_SECURE_CONTEXT = True
