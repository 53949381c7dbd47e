"""
Tests for core.exceptions module.
"""
from core.exceptions import (
    DashboardError,
    NotFoundError,
    ValidationError,
    QueryTimeoutError,
)


class TestDashboardError:
    """Tests for base DashboardError exception."""

    def test_message_only(self):
        """Error with message only."""
        error = DashboardError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.details is None

    def test_message_with_details(self):
        """Error with message and details."""
        error = DashboardError("Failed to load", "mart missing")
        assert str(error) == "Failed to load: mart missing"


class TestNotFoundError:
    """Tests for NotFoundError exception."""

    def test_inheritance(self):
        """Should inherit from DashboardError."""
        assert isinstance(NotFoundError("Order", "SO-1"), DashboardError)

    def test_message_names_resource_and_key(self):
        """Message reads '<resource> not found: <key>'."""
        error = NotFoundError("Company", "acme.com")
        assert str(error) == "Company not found: acme.com"
        assert error.resource == "Company"
        assert error.key == "acme.com"


class TestValidationError:
    """Tests for ValidationError exception."""

    def test_without_value(self):
        """Field and message only."""
        error = ValidationError("page", "Must be at least 1")
        assert str(error) == "page: Must be at least 1"
        assert error.field == "page"

    def test_with_value(self):
        """Value is appended with repr."""
        error = ValidationError("range", "Expected a day count", "ninety")
        assert str(error) == "range: Expected a day count (got: 'ninety')"
        assert error.value == "ninety"


class TestQueryTimeoutError:
    """Tests for QueryTimeoutError exception."""

    def test_attributes(self):
        """Timeout and details are kept."""
        error = QueryTimeoutError("SELECT 1", 30.0, "fetch_all failed")
        assert error.timeout == 30.0
        assert error.details == "fetch_all failed"
        assert "30.0s" in str(error)

    def test_long_query_truncated(self):
        """Stored query text is capped at 200 characters plus an ellipsis."""
        error = QueryTimeoutError("SELECT " + "x" * 500, 5.0)
        assert len(error.query) == 203
        assert error.query.endswith("...")
