"""
Emission and audit dispatch.

- LabelerClient: POST /emit to the labeler service
- Dispatcher: emission (dry-run, dedupe, retry) and audit writes
- exceptions: LabelerHTTPError, AuditWriteError
"""

from reply_labeler.dispatch.labeler_client import LabelerClient
from reply_labeler.dispatch.dispatcher import Dispatcher, is_transient_labeler_error
from reply_labeler.dispatch.exceptions import (
    DispatchError,
    LabelerHTTPError,
    AuditWriteError,
)

__all__ = [
    "LabelerClient",
    "Dispatcher",
    "is_transient_labeler_error",
    "DispatchError",
    "LabelerHTTPError",
    "AuditWriteError",
]
