from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import Settings, load_settings
from .errors import TransactionFlowError
from .models import ConversationRequest, ConversationResponse, SessionData
from .webhook import TransactionWebhook

BASE_DIR = Path(__file__).resolve().parent

ENV_PATH = BASE_DIR / ".env"
if ENV_PATH.exists():
    load_dotenv(ENV_PATH, override=True)

log_level_name = os.getenv("LOG_LEVEL", "INFO").upper()
log_level = getattr(logging, log_level_name, logging.INFO)
if not logging.getLogger().handlers:
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

logging.getLogger("transactions").setLevel(log_level)
logger = logging.getLogger("transactions.app")


def create_app(settings: Optional[Settings] = None, webhook: Optional[TransactionWebhook] = None) -> FastAPI:
    """Purpose: Build the FastAPI application around a TransactionWebhook.
    Inputs/Outputs: Optional Settings and webhook; returns a FastAPI app.
    Side Effects / State: Loads locale catalogs and session data when no webhook is given.
    Dependencies: load_settings, TransactionWebhook.from_settings.
    Failure Modes: Missing default catalog or bad env values raise at startup.
    If Removed: No HTTP surface; the platform cannot reach the flow.
    Testing Notes: Pass a webhook with an in-memory store to TestClient.
    """
    settings = settings or load_settings()
    webhook = webhook or TransactionWebhook.from_settings(settings)

    app = FastAPI(title="Transactions Webhook")
    app.state.webhook = webhook

    @app.exception_handler(TransactionFlowError)
    def handle_flow_error(request: Request, exc: TransactionFlowError) -> JSONResponse:
        # Dispatch failures are reported to the caller, never retried.
        return JSONResponse(status_code=exc.http_status, content=exc.to_payload())

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "locales": webhook.resolver.supported_locales}

    @app.post("/webhook", response_model=ConversationResponse, response_model_exclude_none=True)
    def fulfill(request: ConversationRequest) -> ConversationResponse:
        """Purpose: Fulfill one conversational turn.
        Inputs/Outputs: Input is ConversationRequest; output is ConversationResponse.
        Side Effects / State: Updates or clears the session's conversation data.
        Dependencies: TransactionWebhook.handle.
        Failure Modes: Unknown intents return 400 via the TransactionFlowError handler.
        If Removed: The platform has no fulfillment endpoint.
        Testing Notes: Post each intent and check action and payload kinds.
        """
        return webhook.handle(request)

    @app.get("/api/sessions/{session_id}", response_model=SessionData)
    def get_session(session_id: str) -> SessionData:
        # Unknown sessions return empty data.
        return SessionData(session_id=session_id, conversation_data=webhook.sessions.get_data(session_id))

    @app.delete("/api/sessions/{session_id}")
    def delete_session(session_id: str) -> dict:
        return {"session_id": session_id, "deleted": webhook.sessions.clear(session_id)}

    logger.info("transactions webhook ready locales=%s", webhook.resolver.supported_locales)
    return app


app = create_app()
