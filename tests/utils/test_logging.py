"""Tests for the logging utility module."""

import pytest
import structlog
from structlog.testing import capture_logs


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_configure_logging_default(self):
        """Test configure_logging with defaults."""
        from relocator.utils.logging import configure_logging

        # Should not raise
        configure_logging()

    def test_configure_logging_debug_level(self):
        """Test configure_logging with DEBUG level."""
        from relocator.utils.logging import configure_logging

        configure_logging(level="debug")

    def test_configure_logging_json_format(self):
        """Test configure_logging with JSON output."""
        from relocator.utils.logging import configure_logging

        configure_logging(json_format=True, include_timestamp=False)

    def test_configure_logging_invalid_level(self):
        """Test configure_logging rejects an unknown level."""
        from relocator.utils.logging import configure_logging

        with pytest.raises(AttributeError):
            configure_logging(level="LOUD")


class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_logger_with_context(self):
        """Test get_logger binds context."""
        from relocator.utils.logging import get_logger

        with capture_logs() as logs:
            get_logger("relocator.test", run_id="r1").info("hello")

        assert logs[0]["run_id"] == "r1"
        assert logs[0]["event"] == "hello"


class TestLogContext:
    """Tests for LogContext class."""

    def test_log_context_creation(self):
        """Test LogContext creation."""
        from relocator.utils.logging import LogContext

        context = LogContext(run_id="123", step_id="s1")

        assert context.context == {"run_id": "123", "step_id": "s1"}

    def test_binds_and_unbinds_contextvars(self):
        """Test fields are bound only inside the block."""
        from relocator.utils.logging import LogContext

        with LogContext(run_id="abc"):
            assert structlog.contextvars.get_contextvars()["run_id"] == "abc"

        assert "run_id" not in structlog.contextvars.get_contextvars()

    def test_unbinds_on_error(self):
        """Test fields are unbound when the block raises."""
        from relocator.utils.logging import LogContext

        with pytest.raises(RuntimeError):
            with LogContext(run_id="abc"):
                raise RuntimeError("boom")

        assert "run_id" not in structlog.contextvars.get_contextvars()


class TestLogOperation:
    """Tests for log_operation context manager."""

    def test_success(self):
        """Test a successful operation marks the result."""
        from relocator.utils.logging import log_operation

        with log_operation("resolve", step_id="s1") as op:
            op["strategy"] = "id"

        assert op["success"] is True
        assert op["strategy"] == "id"

    def test_failure_reraises(self):
        """Test a failing operation records the error and re-raises."""
        from relocator.utils.logging import log_operation

        with pytest.raises(ValueError):
            with log_operation("resolve") as op:
                raise ValueError("bad descriptor")

        assert op["success"] is False
        assert op["error"] == "bad descriptor"


class TestRunLogger:
    """Tests for RunLogger."""

    def test_step_events(self):
        """Test step events carry run and step fields."""
        from relocator.utils.logging import RunLogger

        with capture_logs() as logs:
            run_log = RunLogger("run-1", total_steps=2)
            run_log.run_started(continue_on_failure=False)
            run_log.step_started(0, "s1", "click")
            run_log.step_completed(0, "s1", 42, "id", 0.9)

        assert [entry["event"] for entry in logs] == ["Run started", "Step started", "Step completed"]
        assert all(entry["run_id"] == "run-1" for entry in logs)
        assert logs[0]["total_steps"] == 2
        assert logs[2]["strategy"] == "id"

    def test_failures_log_at_higher_levels(self):
        """Test failed steps and failed runs are logged above info."""
        from relocator.utils.logging import RunLogger

        with capture_logs() as logs:
            run_log = RunLogger("run-2", total_steps=1)
            run_log.step_failed(0, "s1", "Element not found")
            run_log.run_finished("step_failed", 120, passed=0, failed=1)

        assert run_log.failures == 1
        assert [entry["log_level"] for entry in logs] == ["error", "warning"]

    def test_skipped_step(self):
        from relocator.utils.logging import RunLogger

        with capture_logs() as logs:
            RunLogger("run-3").step_skipped(1, "s2", "not found")

        assert logs[0]["reason"] == "not found"
        assert logs[0]["log_level"] == "info"
