"""
Persistence exceptions.
"""


class AuditWriteError(Exception):
    """
    Raised when an audit entry cannot be written to the store.
    """
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
