"""
Custom exceptions for the classification oracle client.

Every oracle failure drops the current event. The retry policy (if one is
configured) only retries OracleConnectionError (which includes timeouts)
and 5xx OracleHTTPError.
"""


class OracleError(Exception):
    """
    Base exception for all oracle client errors.
    """
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class OracleConnectionError(OracleError):
    """
    Raised when the oracle server cannot be reached (DNS, refused
    connection, reset).
    """
    pass


class OracleTimeoutError(OracleConnectionError):
    """
    Raised when classification exceeds its deadline.
    """
    pass


class OracleHTTPError(OracleError):
    """
    Raised on a non-success HTTP status. Carries the status and body.
    """
    def __init__(self, status_code: int, body: str, details: dict | None = None):
        super().__init__(
            f"bad status code: {status_code} - {body[:500]}",
            details={"status_code": status_code, "body": body[:2000], **(details or {})},
        )
        self.status_code = status_code
        self.body = body

    @property
    def is_transient(self) -> bool:
        return self.status_code >= 500 or self.status_code == 429


class OracleSchemaViolation(OracleError):
    """
    Raised when the response envelope or its message content does not
    match the expected verdict schema.
    """
    pass
