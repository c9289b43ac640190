from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

BASE_DIR = Path(__file__).resolve().parent

DEFAULT_LOCALE = "en-US"
DEFAULT_ORDER_ID = "<UNIQUE_ORDER_ID>"
DEFAULT_CUSTOMER_SERVICE_URL = "http://example.com/customer-service"


@dataclass(frozen=True)
class Settings:
    """Configuration container for catalogs, session storage, and order constants."""
    locales_dir: Path
    default_locale: str
    sessions_path: Optional[Path]
    max_sessions: int
    order_id: str
    customer_service_url: str


def load_settings() -> Settings:
    """Purpose: Load configuration from environment variables and defaults.
    Inputs/Outputs: No inputs; returns a Settings instance.
    Side Effects / State: Reads environment variables only.
    Dependencies: Uses os.getenv and BASE_DIR for the default catalog directory.
    Failure Modes: Invalid MAX_SESSIONS env value raises ValueError.
    If Removed: App cannot locate catalogs or session storage and fails at startup.
    Testing Notes: Verify defaults and overrides via environment variables.
    """
    # Resolve catalog and session paths, then build Settings.
    locales_dir = os.getenv("LOCALES_DIR")
    if locales_dir:
        locales_path = Path(locales_dir)
    else:
        locales_path = (BASE_DIR / "locales").resolve()

    sessions_path = os.getenv("SESSIONS_PATH")

    return Settings(
        locales_dir=locales_path,
        default_locale=os.getenv("DEFAULT_LOCALE", DEFAULT_LOCALE),
        sessions_path=Path(sessions_path) if sessions_path else None,
        max_sessions=int(os.getenv("MAX_SESSIONS", "1000")),
        order_id=os.getenv("ORDER_ID", DEFAULT_ORDER_ID),
        customer_service_url=os.getenv("CUSTOMER_SERVICE_URL", DEFAULT_CUSTOMER_SERVICE_URL),
    )
