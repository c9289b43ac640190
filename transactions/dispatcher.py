from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Dict, Mapping, Optional

from . import handlers
from .errors import InvalidHandlerRegistryError, UnhandledIntentError
from .handlers import TurnContext
from .models import ConversationResponse

logger = logging.getLogger("transactions.dispatcher")

Handler = Callable[[TurnContext], None]


class Intent(str, Enum):
    """Intents the transaction flow answers."""
    TRANSACTION_CHECK_NOPAYMENT = "transaction_check_nopayment"
    TRANSACTION_CHECK_ACTION = "transaction_check_action"
    TRANSACTION_CHECK_GOOGLE = "transaction_check_google"
    TRANSACTION_CHECK_COMPLETE = "transaction_check_complete"
    DELIVERY_ADDRESS = "delivery_address"
    DELIVERY_ADDRESS_COMPLETE = "delivery_address_complete"
    TRANSACTION_DECISION_ACTION = "transaction_decision_action"
    TRANSACTION_DECISION_GOOGLE = "transaction_decision_google"
    TRANSACTION_DECISION_COMPLETE = "transaction_decision_complete"


DEFAULT_HANDLERS: Dict[Intent, Handler] = {
    Intent.TRANSACTION_CHECK_NOPAYMENT: handlers.transaction_check_nopayment,
    Intent.TRANSACTION_CHECK_ACTION: handlers.transaction_check_action,
    Intent.TRANSACTION_CHECK_GOOGLE: handlers.transaction_check_google,
    Intent.TRANSACTION_CHECK_COMPLETE: handlers.transaction_check_complete,
    Intent.DELIVERY_ADDRESS: handlers.delivery_address,
    Intent.DELIVERY_ADDRESS_COMPLETE: handlers.delivery_address_complete,
    Intent.TRANSACTION_DECISION_ACTION: handlers.transaction_decision_action,
    Intent.TRANSACTION_DECISION_GOOGLE: handlers.transaction_decision_google,
    Intent.TRANSACTION_DECISION_COMPLETE: handlers.transaction_decision_complete,
}


def parse_intent(name: str) -> Intent:
    try:
        return Intent(name)
    except ValueError:
        raise UnhandledIntentError(name) from None


class IntentDispatcher:
    """Routes a turn to the handler registered for its intent."""

    def __init__(self, registry: Optional[Mapping[Intent, Handler]] = None) -> None:
        """Purpose: Freeze the intent -> handler registry.
        Inputs/Outputs: Input is an optional registry (defaults to DEFAULT_HANDLERS).
        Side Effects / State: Copies the registry; later edits to the argument do not leak in.
        Dependencies: Intent enumeration.
        Failure Modes: InvalidHandlerRegistryError when any Intent has no handler.
        If Removed: The webhook cannot route turns.
        Testing Notes: Build with one entry removed and expect the error.
        """
        registry = dict(DEFAULT_HANDLERS if registry is None else registry)
        missing = [intent.value for intent in Intent if intent not in registry]
        if missing:
            raise InvalidHandlerRegistryError(missing)
        self._registry: Dict[Intent, Handler] = registry

    def dispatch(self, turn: TurnContext) -> ConversationResponse:
        """Run the handler for ``turn.intent``; unknown intents raise UnhandledIntentError."""
        try:
            intent = parse_intent(turn.intent)
        except UnhandledIntentError:
            logger.warning("session=%s unhandled intent=%s", turn.session_id, turn.intent)
            raise
        logger.info("session=%s intent=%s locale=%s", turn.session_id, intent.value, turn.catalog.locale)
        self._registry[intent](turn)
        return turn.to_response()
