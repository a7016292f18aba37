from __future__ import annotations


class DomainError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 400
    detail = "Bad request"

    def __init__(self, detail: str | None = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class ValidationFailed(DomainError):
    status_code = 400


class NotAuthenticated(DomainError):
    status_code = 401
    detail = "Authentication required"


class PermissionDenied(DomainError):
    status_code = 403
    detail = "Access denied"


class NotFound(DomainError):
    status_code = 404
    detail = "Not found"


class NotFoundOrProcessed(NotFound):
    detail = "Complaint not found or already processed"


class ChatUnavailable(DomainError):
    status_code = 403
    detail = "Chat is only available while the complaint is in progress"


class AlreadyRejected(DomainError):
    status_code = 400
    detail = "Complaint has already been rejected"


class InsufficientPoints(DomainError):
    status_code = 400


class RedemptionLimitReached(DomainError):
    status_code = 400
    detail = "You have reached the maximum redemptions for this reward"


class RewardUnavailable(DomainError):
    status_code = 400
    detail = "This reward is no longer available"


class RateLimited(DomainError):
    status_code = 429
    detail = "Too many requests. Please slow down."

    def __init__(self, retry_after: int = 1):
        self.retry_after = retry_after
        super().__init__()
