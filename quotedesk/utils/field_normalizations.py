# ---------------- Normalization Utilities ----------------
import re
from typing import Any, Optional

_WS = re.compile(r"\s+")


def _clean(value: Any) -> Optional[str]:
    """Trim a submitted string; None for missing, non-strings pass through untouched."""
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    return value.strip()


def _collapse_spaces(text: str) -> str:
    return _WS.sub(" ", text)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _phone_digits(phone: str) -> str:
    return "".join(ch for ch in phone if ch.isdigit())
