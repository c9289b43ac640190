from __future__ import annotations

import logging
from typing import Optional

from .config import Settings
from .dispatcher import IntentDispatcher
from .handlers import TurnContext
from .i18n import LocaleResolver
from .models import ConversationRequest, ConversationResponse
from .session_store import SessionStore

logger = logging.getLogger("transactions.webhook")


class TransactionWebhook:
    """Runs one conversational turn: session data in, locale resolved, intent dispatched, data out."""

    def __init__(
        self,
        settings: Settings,
        resolver: LocaleResolver,
        session_store: SessionStore,
        dispatcher: Optional[IntentDispatcher] = None,
    ) -> None:
        self._settings = settings
        self._resolver = resolver
        self._sessions = session_store
        self._dispatcher = dispatcher or IntentDispatcher()

    @classmethod
    def from_settings(cls, settings: Settings) -> "TransactionWebhook":
        resolver = LocaleResolver.from_directory(settings.locales_dir, settings.default_locale)
        store = SessionStore(settings.sessions_path, max_sessions=settings.max_sessions)
        return cls(settings, resolver, store)

    @property
    def sessions(self) -> SessionStore:
        return self._sessions

    @property
    def resolver(self) -> LocaleResolver:
        return self._resolver

    def handle(self, request: ConversationRequest) -> ConversationResponse:
        """Purpose: Answer one turn of the transaction flow.
        Inputs/Outputs: Input is a ConversationRequest; output is a ConversationResponse.
        Side Effects / State: Saves the session's conversation data after an ask,
            clears it after a close.
        Dependencies: LocaleResolver, IntentDispatcher, SessionStore.
        Failure Modes: UnhandledIntentError propagates; session data is left untouched.
        If Removed: The HTTP endpoint has nothing to call.
        Testing Notes: Run delivery_address_complete then transaction_decision_action on
            one session id and check the extension.
        """
        # The catalog travels with the turn; nothing process-wide is switched.
        catalog = self._resolver.resolve(request.user.locale)
        turn = TurnContext(
            session_id=request.session_id,
            intent=request.intent,
            arguments=dict(request.arguments),
            catalog=catalog,
            settings=self._settings,
            conversation_data=self._sessions.get_data(request.session_id),
        )
        response = self._dispatcher.dispatch(turn)
        if response.action == "close":
            self._sessions.clear(request.session_id)
            response.conversation_data = {}
            logger.info("session=%s closed", request.session_id)
        else:
            self._sessions.set_data(request.session_id, response.conversation_data)
        return response
