"""Tests for the orientation session logger."""

from __future__ import annotations

import logging

import pytest

from core.telemetry.loggers import orientation_logger as logger_module


@pytest.fixture()
def session_logger(tmp_path):
    logger_module.reset_orientation_logger()
    instance = logger_module.get_orientation_logger(session_dir=tmp_path / "session")
    yield instance
    logger_module.reset_orientation_logger()


def flush(instance):
    for name in logger_module.CHANNELS:
        for handler in getattr(instance, name).handlers:
            handler.flush()


def test_creates_session_files(session_logger, tmp_path):
    session_dir = tmp_path / "session"
    assert session_logger.log_dir == session_dir
    for _, filename in logger_module.CHANNELS.values():
        assert (session_dir / filename).exists()


def test_singleton_returns_same_instance(session_logger, tmp_path):
    assert logger_module.get_orientation_logger(session_dir=tmp_path / "other") is session_logger


def test_module_loggers_route_to_channel_files(session_logger, tmp_path):
    logging.getLogger("core.orientation.permission_controller").debug("state change")
    logging.getLogger("core.orientation.device_orientation_controls").debug("tick")
    logging.getLogger("core.hardware.sensor_environment").debug("dispatch")
    flush(session_logger)

    session_dir = tmp_path / "session"
    permission_log = (session_dir / "permission.log").read_text()
    fusion_log = (session_dir / "fusion.log").read_text()
    sensor_log = (session_dir / "sensor.log").read_text()

    assert "state change" in permission_log
    assert "state change" not in fusion_log
    assert "tick" in fusion_log and "tick" not in permission_log
    assert "dispatch" in sensor_log


def test_reset_restores_propagation(tmp_path):
    logger_module.reset_orientation_logger()
    logger_module.get_orientation_logger(session_dir=tmp_path)
    logger_module.reset_orientation_logger()

    fusion = logging.getLogger("core.orientation")
    assert fusion.propagate
    assert fusion.handlers == []


def test_permission_warnings_stay_in_permission_log(session_logger, tmp_path):
    logging.getLogger("core.orientation.permission_controller").warning("permission only")
    flush(session_logger)

    session_dir = tmp_path / "session"
    assert "permission only" in (session_dir / "permission.log").read_text()
    assert "permission only" not in (session_dir / "fusion.log").read_text()
    assert "permission only" not in (session_dir / "sensor.log").read_text()


def test_every_channel_stops_propagation(session_logger):
    for logger_name, _ in logger_module.CHANNELS.values():
        assert logging.getLogger(logger_name).propagate is False
