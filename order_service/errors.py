# order_service/errors.py
from typing import Optional


class OrderServiceError(Exception):
    """Base error; the HTTP layer turns it into a JSON response with ``status_code``."""

    status_code = 500

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict:
        body = {"success": False, "message": self.message}
        if self.detail:
            body["error"] = self.detail
        return body


class InvalidRequest(OrderServiceError):
    status_code = 400


class VerificationFailed(OrderServiceError):
    """Gateway unreachable or returned something we cannot read."""

    status_code = 400


class PaymentNotSuccessful(OrderServiceError):
    status_code = 400


class NotFound(OrderServiceError):
    status_code = 404


class Conflict(OrderServiceError):
    status_code = 409


class PersistenceError(OrderServiceError):
    status_code = 500


class NotificationFailure(OrderServiceError):
    """Advisory only. Logged by the dispatcher, never raised to a caller."""
