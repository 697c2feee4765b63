from datetime import datetime

from fastapi import HTTPException, status


class LootError(Exception):
    """Base class of every error raised by the claim engine.

    Each subclass carries a stable ``code`` for clients and the HTTP status
    the routers answer with.
    """

    code = "loot_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class Unauthorized(LootError):
    code = "unauthorized"
    status_code = status.HTTP_403_FORBIDDEN


class InvalidOrdering(LootError):
    code = "invalid_ordering"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class InvalidRange(LootError):
    code = "invalid_range"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class InvalidItemPool(LootError):
    code = "invalid_item_pool"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class InvalidRecipient(LootError):
    code = "invalid_recipient"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, recipient: str | None) -> None:
        super().__init__(f"Invalid recipient: {recipient!r}")
        self.recipient = recipient


class ClaimTooSoon(LootError):
    code = "claim_too_soon"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, recipient: str, next_claim_at: datetime | None = None) -> None:
        super().__init__("You can claim once per day")
        self.recipient = recipient
        self.next_claim_at = next_claim_at


class RewardNotConfigured(LootError):
    code = "reward_not_configured"
    status_code = status.HTTP_409_CONFLICT


class LedgerError(LootError):
    code = "ledger_error"
    status_code = status.HTTP_409_CONFLICT


def to_http_exception(error: LootError, now: datetime | None = None) -> HTTPException:
    """Convert an engine error to the HTTPException returned by the routers

    Args:
        error (LootError): Error raised by a service or the domain layer
        now (datetime | None): Current time, used for the Retry-After header of ClaimTooSoon

    Returns:
        HTTPException: Exception with the status code and detail of the error
    """
    headers = None
    if isinstance(error, ClaimTooSoon) and error.next_claim_at is not None and now is not None:
        retry_after = max(int((error.next_claim_at - now).total_seconds()), 0)
        headers = {"Retry-After": str(retry_after)}
    return HTTPException(
        status_code=error.status_code,
        detail={"error": error.code, "message": error.message},
        headers=headers,
    )
