"""
Exceptions raised by the emission/audit dispatcher.

LabelerHTTPError aborts the remaining labels of an event. AuditWriteError
is logged by the decision engine and does not stop other labels.
"""

from reply_labeler.persistence.exceptions import AuditWriteError


class DispatchError(Exception):
    """
    Base exception for side-effecting calls.
    """
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class LabelerHTTPError(DispatchError):
    """
    Raised when the labeler does not answer 200 to POST /emit.

    status_code is 0 when no response was received (network error, timeout).
    """
    def __init__(self, status_code: int, body: str = "", details: dict | None = None):
        if status_code:
            message = f"received invalid status code from server: {status_code}"
        else:
            message = "labeler request failed before a response was received"
        super().__init__(
            message,
            details={"status_code": status_code, "body": body[:500], **(details or {})},
        )
        self.status_code = status_code
        self.body = body

    @property
    def is_transient(self) -> bool:
        return self.status_code == 0 or self.status_code >= 500 or self.status_code == 429
