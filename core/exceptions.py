"""
Custom exception hierarchy for dashboard queries.

Exception Hierarchy:
    DashboardError (base)
    └── NotFoundError          - Requested record does not exist

    ValidationError            - Input validation failed
    QueryTimeoutError          - DuckDB query exceeded its timeout
"""


class DashboardError(Exception):
    """Base exception for all dashboard errors."""

    def __init__(self, message: str, details: str = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class NotFoundError(DashboardError):
    """
    A single record lookup found nothing.

    Routes translate this into HTTP 404.
    """

    def __init__(self, resource: str, key: str):
        super().__init__(f"{resource} not found", details=str(key))
        self.resource = resource
        self.key = key


class ValidationError(Exception):
    """
    Input validation failed.

    Used for validating user input before processing.
    """

    def __init__(self, field: str, message: str, value: any = None):
        self.field = field
        self.message = message
        self.value = value
        super().__init__(f"{field}: {message}")

    def __str__(self) -> str:
        if self.value is not None:
            return f"{self.field}: {self.message} (got: {self.value!r})"
        return f"{self.field}: {self.message}"


class QueryTimeoutError(Exception):
    """
    Database query exceeded timeout.

    Usually a sign of a query scanning far more of the mart than intended.
    """

    def __init__(self, query: str, timeout: float, details: str = None):
        self.query = query[:200] + "..." if len(query) > 200 else query
        self.timeout = timeout
        self.details = details
        message = f"Query timed out after {timeout}s"
        if details:
            message = f"{message}: {details}"
        super().__init__(message)

    def __str__(self) -> str:
        return f"QueryTimeoutError: Query timed out after {self.timeout}s - {self.query}"
