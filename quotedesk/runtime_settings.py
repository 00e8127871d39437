# quotedesk/runtime_settings.py
from __future__ import annotations
import os
from dataclasses import dataclass, field
from typing import List, Optional
from dotenv import load_dotenv, find_dotenv

# A local .env is optional; in containers everything comes from the environment.
load_dotenv(find_dotenv(usecwd=True), override=False)

PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_SITE_CONFIG = os.path.join(PACKAGE_DIR, "site.yaml")


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


@dataclass
class Settings:
    ENV: str = "dev"
    DATA_FILE: str = os.path.join("data", "quotes.json")
    SITE_CONFIG: str = DEFAULT_SITE_CONFIG

    # Mail relay (Mailgun HTTP API)
    NOTIFICATIONS_EMAIL: Optional[str] = None
    MAILGUN_DOMAIN: Optional[str] = None
    MAILGUN_API_KEY: Optional[str] = None
    MAILGUN_BASE_URL: str = "https://api.mailgun.net/v3"

    ADMIN_API_KEY: Optional[str] = None
    CORS_ORIGINS: List[str] = field(default_factory=lambda: ["*"])

    # Fixed-window rate limits, per client address
    DISABLE_RATE_LIMIT: bool = False
    RATE_LIMIT_MAX: int = 100
    RATE_LIMIT_WINDOW: int = 15 * 60
    QUOTE_LIMIT_MAX: int = 5
    QUOTE_LIMIT_WINDOW: int = 60 * 60

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    HOST: str = "127.0.0.1"
    PORT: int = 3000

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"

    @property
    def mail_configured(self) -> bool:
        return bool(self.MAILGUN_DOMAIN and self.MAILGUN_API_KEY)


def load_settings() -> Settings:
    """Build settings from the process environment."""
    env = os.getenv("ENV", os.getenv("NODE_ENV", "dev"))
    origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    return Settings(
        ENV=env,
        DATA_FILE=os.getenv("DATA_FILE", os.path.join("data", "quotes.json")),
        SITE_CONFIG=os.getenv("SITE_CONFIG", DEFAULT_SITE_CONFIG),
        NOTIFICATIONS_EMAIL=os.getenv("NOTIFICATIONS_EMAIL") or None,
        MAILGUN_DOMAIN=os.getenv("MAILGUN_DOMAIN") or None,
        MAILGUN_API_KEY=os.getenv("MAILGUN_API_KEY") or None,
        MAILGUN_BASE_URL=os.getenv("MAILGUN_BASE_URL", "https://api.mailgun.net/v3").rstrip("/"),
        ADMIN_API_KEY=os.getenv("ADMIN_API_KEY") or None,
        CORS_ORIGINS=origins or ["*"],
        DISABLE_RATE_LIMIT=_env_bool("DISABLE_RATE_LIMIT"),
        RATE_LIMIT_MAX=_env_int("RATE_LIMIT_MAX", 100),
        RATE_LIMIT_WINDOW=_env_int("RATE_LIMIT_WINDOW", 15 * 60),
        QUOTE_LIMIT_MAX=_env_int("QUOTE_LIMIT_MAX", 5),
        QUOTE_LIMIT_WINDOW=_env_int("QUOTE_LIMIT_WINDOW", 60 * 60),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
        LOG_JSON=_env_bool("LOG_JSON", default=(env == "production")),
        HOST=os.getenv("HOST", "0.0.0.0" if env == "production" else "127.0.0.1"),
        PORT=_env_int("PORT", 3000),
    )
