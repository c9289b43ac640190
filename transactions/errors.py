from __future__ import annotations

"""Error types surfaced by the transactions webhook."""

from typing import Any, Dict


class TransactionFlowError(Exception):
    """Base error with a machine-readable code and an HTTP status for the API layer."""

    def __init__(self, code: str, message: str, http_status: int = 400, **extra: Any) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.code, "message": self.message}
        payload.update(self.extra)
        return payload


class UnhandledIntentError(TransactionFlowError):
    """Raised when a turn names an intent with no registered handler."""

    def __init__(self, intent: str) -> None:
        super().__init__(
            code="unhandled_intent",
            message=f"No handler registered for intent '{intent}'",
            http_status=400,
            intent=intent,
        )


class InvalidHandlerRegistryError(TransactionFlowError):
    """Raised at startup when the handler registry does not cover every intent."""

    def __init__(self, missing: list[str]) -> None:
        super().__init__(
            code="invalid_handler_registry",
            message="Missing handlers for intents: " + ", ".join(missing),
            http_status=500,
            missing=missing,
        )
