"""
Connections service — domain-specific HTTP exceptions.

All exceptions use preset status codes and detail messages so that callers
never need to specify these at the call site.  The shared error envelope
wraps them as ``{"error": {...}, "request_id": ...}``.

Four bases mirror the failure taxonomy of the ledger and resolver:
ValidationFailed (422), NotAuthorized (403), ConflictError (409) and
NotFoundError (404).  Everything raised by ``service`` modules derives from one
of them.
"""
from fastapi import HTTPException, status


# ── Taxonomy bases ────────────────────────────────────────────────────────────

class ValidationFailed(HTTPException):
    def __init__(self, detail: str = "The request is invalid.") -> None:
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class NotAuthorized(HTTPException):
    def __init__(self, detail: str = "You are not allowed to perform this action.") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class ConflictError(HTTPException):
    def __init__(self, detail: str = "The resource is in a conflicting state.") -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, resource: str = "Resource") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=f"{resource} not found.")


# ── Validation ────────────────────────────────────────────────────────────────

class TargetRequired(ValidationFailed):
    def __init__(self) -> None:
        super().__init__("A target account is required.")


class CannotRequestSelf(ValidationFailed):
    def __init__(self) -> None:
        super().__init__("You cannot send a request to yourself.")


class CannotBlockSelf(ValidationFailed):
    def __init__(self) -> None:
        super().__init__("You cannot block yourself.")


class CannotRejectSelf(ValidationFailed):
    def __init__(self) -> None:
        super().__init__("You cannot remove yourself from your feed.")


class InvalidProfileEdit(ValidationFailed):
    def __init__(self, detail: str = "The submitted profile edits are invalid.") -> None:
        super().__init__(detail)


# ── Authorization ─────────────────────────────────────────────────────────────

class PairBlocked(NotAuthorized):
    """Either party has blocked the other; hides which side did it."""

    def __init__(self) -> None:
        super().__init__("This action is not available for this account.")


class AdminNotAllowed(NotAuthorized):
    """Administrators neither send nor receive connection requests."""

    def __init__(self) -> None:
        super().__init__("Administrator accounts cannot take part in connection requests.")


class ResponderMismatch(NotAuthorized):
    def __init__(self) -> None:
        super().__init__("This request is not addressed to you.")


class AccountNotApproved(NotAuthorized):
    def __init__(self) -> None:
        super().__init__("Your account is awaiting approval.")


class AdminRequired(NotAuthorized):
    def __init__(self) -> None:
        super().__init__("Administrator access required.")


# ── Conflict ──────────────────────────────────────────────────────────────────

class RequestAlreadyResolved(ConflictError):
    def __init__(self) -> None:
        super().__init__("This request has already been answered.")


class AlreadyBlocked(ConflictError):
    def __init__(self) -> None:
        super().__init__("You have already blocked this account.")


class NoPendingEdits(ConflictError):
    def __init__(self) -> None:
        super().__init__("This account has no pending profile edits.")


class RequestLimitReached(ConflictError):
    """Daily quota exhausted.

    Carries the numbers the client needs to render an upgrade prompt, so the
    detail is a dict rather than a plain message.  Uses 429 like the legacy API.
    """

    def __init__(self, *, limit: int, remaining: int, is_premium: bool) -> None:
        super().__init__()
        self.status_code = status.HTTP_429_TOO_MANY_REQUESTS
        self.limit = limit
        self.remaining = remaining
        self.is_premium = is_premium
        self.detail = {
            "message": "Daily request limit reached.",
            "limit": limit,
            "remaining": remaining,
            "is_premium": is_premium,
        }


# ── Not found ─────────────────────────────────────────────────────────────────

class AccountNotFound(NotFoundError):
    def __init__(self) -> None:
        super().__init__("Account")


class RequestNotFound(NotFoundError):
    def __init__(self) -> None:
        super().__init__("Request")


class ConnectionNotFound(NotFoundError):
    def __init__(self) -> None:
        super().__init__("Connection")


class NotBlocked(NotFoundError):
    def __init__(self) -> None:
        super().__init__("Block")


class FeedRejectionNotFound(NotFoundError):
    def __init__(self) -> None:
        super().__init__("Feed rejection")
