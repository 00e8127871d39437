from __future__ import annotations
from typing import List, Optional

from quotedesk.schemas import Violation


class QuoteDeskError(Exception):
    """Base for every error the quote lifecycle raises."""
    status_code = 500
    public_message = "Something went wrong!"

    def to_dict(self) -> dict:
        return {"message": self.public_message}


class ValidationError(QuoteDeskError):
    status_code = 400
    public_message = "Validation failed"

    def __init__(self, violations: List[Violation]):
        super().__init__(f"{len(violations)} invalid field(s)")
        self.violations = violations

    def to_dict(self) -> dict:
        return {"message": self.public_message, "errors": [v.to_dict() for v in self.violations]}


class NotFound(QuoteDeskError):
    status_code = 404
    public_message = "Quote not found"

    def __init__(self, quote_id: str):
        super().__init__(f"Quote {quote_id} not found")
        self.quote_id = quote_id


class InvalidStatus(QuoteDeskError):
    status_code = 400
    public_message = "Invalid status"

    def __init__(self, status: object, allowed: Optional[List[str]] = None):
        super().__init__(f"Invalid status: {status!r}")
        self.status = status
        self.allowed = allowed or []

    def to_dict(self) -> dict:
        return {"message": self.public_message, "allowed": self.allowed}


class RateLimited(QuoteDeskError):
    status_code = 429
    public_message = "Too many requests from this IP, please try again later."

    def __init__(self, retry_after: int, message: Optional[str] = None):
        super().__init__(message or self.public_message)
        self.retry_after = retry_after
        if message:
            self.public_message = message


class StorageReadError(QuoteDeskError):
    public_message = "Internal storage error"


class StorageWriteError(QuoteDeskError):
    public_message = "Internal storage error"


class NotificationError(QuoteDeskError):
    """Mail relay failure. Logged by the notifier, never sent to a client."""

    AUTH = "auth"
    CONNECTION = "connection"
    RELAY = "relay"

    def __init__(self, message: str, kind: str = RELAY):
        super().__init__(message)
        self.kind = kind


class Unauthorized(QuoteDeskError):
    status_code = 401
    public_message = "Missing or invalid admin key"


class ConfirmationRequired(QuoteDeskError):
    status_code = 400
    public_message = "Pass confirm=true to delete every quote request"
