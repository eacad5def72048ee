"""
Session logger for orientation fusion debugging.

This module provides a singleton that routes the orientation subsystem's
module loggers into dedicated per-session files for easier analysis.

Features:
- Singleton pattern (one instance per session)
- Separate log files for fusion, permission and sensor intake
- DEBUG level logging to files
- WARNING level console output for critical messages

Log Files:
- fusion.log: Update ticks, strategy selection, connect/disconnect
- permission.log: Permission state machine transitions and outcomes
- sensor.log: Environment listener and simulated event traffic

Usage:
    from core.telemetry.loggers.orientation_logger import get_orientation_logger

    orientation_logger = get_orientation_logger(session_dir=Path("logs/session_2025-01-15_10-30-00"))
    orientation_logger.fusion.debug("Tick processed")
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from utils.config_sections import load_orientation_logging_config

# channel -> (logger name, file name)
CHANNELS: Dict[str, tuple] = {
    "fusion": ("core.orientation", "fusion.log"),
    "permission": ("core.orientation.permission_controller", "permission.log"),
    "sensor": ("core.hardware", "sensor.log"),
}


class OrientationLogger:
    """Singleton logger for orientation fusion debugging."""

    _instance = None
    _initialized = False

    def __new__(cls, session_dir: Optional[Path] = None):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, session_dir: Optional[Path] = None):
        if self._initialized:
            return

        logging_config = load_orientation_logging_config()

        # Use provided session directory or create new one
        if session_dir is None:
            timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
            self.log_dir = Path(logging_config.log_root) / f"session_{timestamp}"
        else:
            self.log_dir = Path(session_dir)

        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.console_level = getattr(logging, logging_config.console_level.upper(), logging.WARNING)

        for name, (logger_name, filename) in CHANNELS.items():
            self._setup_logger(name, logger_name, filename)

        self._initialized = True

    def _setup_logger(self, name: str, logger_name: str, filename: str):
        """Setup individual logger with file and console handlers."""
        logger = logging.getLogger(logger_name)
        logger.setLevel(logging.DEBUG)
        # Each channel writes only to its own file
        logger.propagate = False

        # Clear existing handlers
        logger.handlers.clear()

        # Format
        formatter = logging.Formatter(
            '%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s',
            datefmt='%H:%M:%S'
        )

        # File handler
        fh = logging.FileHandler(self.log_dir / filename, mode='w')
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(formatter)
        logger.addHandler(fh)

        # Console handler (for critical messages)
        ch = logging.StreamHandler()
        ch.setLevel(self.console_level)
        ch.setFormatter(formatter)
        logger.addHandler(ch)

        setattr(self, name, logger)

    def close(self):
        """Close all handlers and hand the loggers back to the root logger."""
        for name in CHANNELS:
            logger = getattr(self, name, None)
            if logger:
                for handler in logger.handlers[:]:
                    handler.close()
                    logger.removeHandler(handler)
                logger.setLevel(logging.NOTSET)
                logger.propagate = True


# Global instance
_orientation_logger = None


def get_orientation_logger(session_dir: Optional[Path] = None):
    """Get or create orientation logger instance."""
    global _orientation_logger
    if _orientation_logger is None:
        _orientation_logger = OrientationLogger(session_dir=session_dir)
    return _orientation_logger


def reset_orientation_logger():
    """Close and forget the current session logger."""
    global _orientation_logger
    if _orientation_logger is not None:
        _orientation_logger.close()
    _orientation_logger = None
    OrientationLogger._instance = None
    OrientationLogger._initialized = False
