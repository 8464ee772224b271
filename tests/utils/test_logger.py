"""Tests for request-scoped logging context."""

import structlog

from aisignal.utils.logger import new_request_id, request_context


class TestRequestContext:
    """Tests for request_context."""

    def test_binds_and_unbinds(self) -> None:
        """Test that fields are visible only inside the block."""
        with request_context("abc123", path="/signal"):
            bound = structlog.contextvars.get_contextvars()
            assert bound["request_id"] == "abc123"
            assert bound["path"] == "/signal"

        assert "request_id" not in structlog.contextvars.get_contextvars()

    def test_generates_id(self) -> None:
        """Test that a missing id is generated."""
        with request_context():
            request_id = structlog.contextvars.get_contextvars()["request_id"]

        assert len(request_id) == 12

    def test_ids_are_unique(self) -> None:
        """Test that generated ids differ."""
        assert new_request_id() != new_request_id()
