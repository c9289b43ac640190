"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from typing import Any, Dict, Optional

import pytest

# Add project root to sys.path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from fastapi.testclient import TestClient  # noqa: E402

from transactions.app import create_app  # noqa: E402
from transactions.config import BASE_DIR, DEFAULT_CUSTOMER_SERVICE_URL, DEFAULT_ORDER_ID, Settings  # noqa: E402
from transactions.handlers import TurnContext  # noqa: E402
from transactions.i18n import LocaleResolver  # noqa: E402
from transactions.session_store import SessionStore  # noqa: E402
from transactions.webhook import TransactionWebhook  # noqa: E402


@pytest.fixture
def settings() -> Settings:
    return Settings(
        locales_dir=BASE_DIR / "locales",
        default_locale="en-US",
        sessions_path=None,
        max_sessions=100,
        order_id=DEFAULT_ORDER_ID,
        customer_service_url=DEFAULT_CUSTOMER_SERVICE_URL,
    )


@pytest.fixture
def resolver(settings) -> LocaleResolver:
    return LocaleResolver.from_directory(settings.locales_dir, settings.default_locale)


@pytest.fixture
def en(resolver):
    return resolver.resolve("en-US")


@pytest.fixture
def ja(resolver):
    return resolver.resolve("ja-JP")


@pytest.fixture
def webhook(settings, resolver) -> TransactionWebhook:
    return TransactionWebhook(settings, resolver, SessionStore())


@pytest.fixture
def client(settings, webhook) -> TestClient:
    return TestClient(create_app(settings, webhook))


@pytest.fixture
def postal_address() -> Dict[str, Any]:
    return {
        "regionCode": "US",
        "postalCode": "94043",
        "administrativeArea": "CA",
        "locality": "Mountain View",
        "addressLines": ["1600 Amphitheatre Parkway"],
        "recipients": ["Jane Doe"],
    }


@pytest.fixture
def accepted_address_args(postal_address) -> Dict[str, Any]:
    return {
        "DELIVERY_ADDRESS_VALUE": {
            "userDecision": "ACCEPTED",
            "location": {"postalAddress": postal_address, "phoneNumber": "+1 650-253-0000"},
        }
    }


@pytest.fixture
def make_turn(settings, en):
    def _make(
        intent: str,
        arguments: Optional[Dict[str, Any]] = None,
        conversation_data: Optional[Dict[str, Any]] = None,
        catalog=None,
    ) -> TurnContext:
        return TurnContext(
            session_id="session-test",
            intent=intent,
            arguments=arguments or {},
            catalog=catalog or en,
            settings=settings,
            conversation_data=conversation_data if conversation_data is not None else {},
        )

    return _make
