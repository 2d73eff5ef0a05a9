"""
Custom exceptions for AT Protocol record handling.

Every exception here is per-event: the consumer logs it and drops the event.
Nothing raised from this layer is cached by the post cache.
"""


class ATProtoError(Exception):
    """
    Base exception for record, URI and post lookup errors.
    """
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class MalformedReference(ATProtoError):
    """
    Raised when a reply reference is present but has no parent.

    This is an unexpected record shape, not a top-level post, so it is
    reported as an error rather than skipped.
    """
    pass


class InvalidURI(ATProtoError):
    """
    Raised when an ancestor reference is not a parseable AT-URI.
    """
    pass


class PostNotFound(ATProtoError):
    """
    Raised when the AppView returns zero posts for a URI (deleted,
    taken down, or never existed).
    """
    pass


class InvalidRecord(ATProtoError):
    """
    Raised when a record is not an `app.bsky.feed.post` or fails
    PostRecord validation.
    """
    pass


class PostFetchError(ATProtoError):
    """
    Raised when the AppView request itself fails (non-2xx status or
    network error).
    """
    pass
