"""
Tests for logging configuration.
"""

import structlog

from app.config import Settings
from app.utils.logger import _service_fields, get_logger


class TestLogger:
    """Service fields and component binding."""

    def test_service_fields_added(self):
        add_service = _service_fields(Settings(app_name="ECG Desk", app_version="2.1.0"))
        event = add_service(None, "info", {"event": "started"})

        assert event == {"event": "started", "service": "ECG Desk", "version": "2.1.0"}

    def test_explicit_fields_not_overwritten(self):
        add_service = _service_fields(Settings())
        event = add_service(None, "info", {"event": "x", "version": "upstream"})

        assert event["version"] == "upstream"

    def test_component_bound(self):
        logger = get_logger("routes")
        assert structlog.get_context(logger) == {"component": "routes"}
