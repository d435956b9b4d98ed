"""Graph-specific exceptions for error handling."""
from typing import Optional


class GraphError(Exception):
    """Base exception for all Microsoft Graph operations."""
    pass


class GraphAPIError(GraphError):
    """HTTP error from the Microsoft Graph API.

    Attributes:
        status_code: HTTP status code
        message: Error message from response
        endpoint: API endpoint that failed
        error_code: Graph error code (e.g. "Request_ResourceNotFound")
    """

    def __init__(self, status_code: int, message: str, endpoint: str, error_code: Optional[str] = None):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        self.error_code = error_code
        super().__init__(f"[{status_code}] {endpoint}: {message}")

    @property
    def not_found(self) -> bool:
        return self.status_code == 404


class GraphAuthError(GraphError):
    """Access token could not be obtained from the identity platform."""
    pass


class GraphRequestError(GraphError):
    """Transport-level failure (connection refused, DNS, timeout)."""
    pass


class DeadlineExceededError(GraphError):
    """Operation deadline expired before the call could be issued."""
    pass


class ApiContractError(GraphError):
    """Graph returned a success status with a body missing required fields."""
    pass


def was_not_found(error: Exception) -> bool:
    """Return True if ``error`` is a Graph 404."""
    return isinstance(error, GraphAPIError) and error.not_found
