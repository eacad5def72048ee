#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Orientation fusion replay tool.

Feeds a recorded JSONL event log through a simulated sensor environment and
prints the fused heading and camera quaternion on every render tick.

Record types (one JSON object per line):
    {"type": "orientation", "alpha": 350.0, "beta": 10.0, "gamma": 0.0,
     "compass_heading": 90.0, "absolute": false}
    {"type": "screen", "angle": 90}
    {"type": "permission", "response": "granted"}
    {"type": "grant"}
    {"type": "deny"}
    {"type": "tick"}

"grant" and "deny" are shorthand for a permission record answered with
"granted" or "denied". Permission records with no request pending are
skipped with a warning.

Usage:
    python run.py replay session.jsonl --smoothing 0.3
    python run.py replay session.jsonl --apple --permission-api --json
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from core.hardware.sensor_environment import SimulatedSensorEnvironment
from core.orientation.device_orientation_controls import DeviceOrientationControls
from core.orientation.permission_controller import EVENT_ERROR, EVENT_GRANTED
from core.orientation.permission_prompt import AutoConfirmPrompt
from core.orientation.rotation import RotationTarget
from core.telemetry.loggers.orientation_logger import get_orientation_logger
from utils.config import Config
from utils.config_sections import OrientationConfig, load_orientation_config

log = logging.getLogger(__name__)

# record type -> fixed response (None: read it from the record)
PERMISSION_RESPONSES: Dict[str, Optional[str]] = {
    "permission": None,
    "grant": "granted",
    "deny": "denied",
}


def load_events(path: Path) -> List[Dict[str, Any]]:
    """Read a JSONL event log, skipping blank lines."""
    events = []
    with open(path, "r", encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                events.append(json.loads(line))
            except json.JSONDecodeError as err:
                raise ValueError(f"{path}:{line_number}: invalid JSON ({err.msg})") from err
    return events


def build_config(args: argparse.Namespace) -> OrientationConfig:
    base = load_orientation_config()
    return OrientationConfig(
        smoothing_factor=args.smoothing if args.smoothing is not None else base.smoothing_factor,
        orientation_change_threshold=(
            args.threshold if args.threshold is not None else base.orientation_change_threshold
        ),
        platform_is_apple_mobile=True if args.apple else base.platform_is_apple_mobile,
        enable_permission_dialog=base.enable_permission_dialog,
        prefer_confirm_dialog=args.confirm_dialog or base.prefer_confirm_dialog,
    )


def replay(
    events: Iterable[Dict[str, Any]],
    controls: DeviceOrientationControls,
    environment: SimulatedSensorEnvironment,
) -> List[Dict[str, Any]]:
    """
    Drive the controls with recorded events.

    Returns:
        One result dict per "tick" record
    """
    results: List[Dict[str, Any]] = []
    for event in events:
        kind = event.get("type")
        if kind == "orientation":
            fields = {key: value for key, value in event.items() if key != "type"}
            environment.emit_orientation(**fields)
        elif kind == "screen":
            environment.rotate_screen(event.get("angle", 0))
        elif kind in PERMISSION_RESPONSES:
            response = PERMISSION_RESPONSES[kind] or event.get("response", "granted")
            if not environment.has_pending_permission:
                log.warning(f"Permission record {kind!r} ignored, no request pending")
                continue
            environment.resolve_permission(response)
        elif kind == "tick":
            controls.update()
            results.append({
                "tick": len(results) + 1,
                "heading": controls.heading(),
                "quaternion": [float(value) for value in controls.target.quaternion],
                "enabled": controls.enabled,
            })
        else:
            log.warning(f"Unknown event type {kind!r} ignored")
    return results


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Replay device-orientation events through the fusion core")
    parser.add_argument("events", type=Path, help="JSONL event log")
    parser.add_argument("--smoothing", type=float, default=None, help="Smoothing factor in (0, 1]")
    parser.add_argument("--threshold", type=float, default=None, help="Deadband threshold in radians")
    parser.add_argument("--apple", action="store_true", help="Use the Apple-mobile compass yaw path")
    parser.add_argument("--permission-api", action="store_true", help="Simulate a platform with a permission prompt")
    parser.add_argument("--confirm-dialog", action="store_true", help="Use a confirm prompt instead of a dialog")
    parser.add_argument("--absolute", action="store_true", help="Simulate absolute orientation events")
    parser.add_argument("--insecure", action="store_true", help="Simulate a non-secure context")
    parser.add_argument("--session-dir", type=Path, default=None, help="Write session logs here")
    parser.add_argument("--json", action="store_true", help="Print results as JSON lines")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    if args.session_dir is not None:
        get_orientation_logger(session_dir=args.session_dir)

    try:
        config = build_config(args)
        events = load_events(args.events)
    except (OSError, ValueError) as err:
        print(f"[ERROR] {err}")
        return 2

    environment = SimulatedSensorEnvironment(
        is_secure_context=not args.insecure and Config.REPLAY_SECURE_CONTEXT,
        has_permission_api=args.permission_api,
        supports_absolute_orientation=args.absolute,
        user_agent=Config.REPLAY_USER_AGENT,
    )
    controls = DeviceOrientationControls(
        RotationTarget(), environment, config=config, prompt=AutoConfirmPrompt()
    )

    errors: List[Any] = []
    controls.on(EVENT_GRANTED, lambda event: event["target"].connect())
    controls.on(EVENT_ERROR, errors.append)
    controls.init()

    results = replay(events, controls, environment)

    for error in errors:
        print(f"[ERROR] {error.code.value}: {error.message}")

    for result in results:
        if args.json:
            print(json.dumps(result))
        else:
            w, x, y, z = result["quaternion"]
            print(
                f"tick {result['tick']:4d}  heading={result['heading']:7.2f}  "
                f"q=({w:+.4f}, {x:+.4f}, {y:+.4f}, {z:+.4f})"
            )

    return 1 if errors else 0


if __name__ == "__main__":
    sys.exit(main())
