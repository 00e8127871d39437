from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict
import uuid

from quotedesk.schemas import QuoteSubmission


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse the ISO-8601 timestamps we persist (``...Z`` suffix accepted)."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


# JSON key on disk / over HTTP -> attribute name
FIELD_KEYS: Dict[str, str] = {
    "id": "id",
    "name": "name",
    "email": "email",
    "phone": "phone",
    "company": "company",
    "projectType": "project_type",
    "budget": "budget",
    "timeline": "timeline",
    "description": "description",
    "status": "status",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}


@dataclass
class QuoteRequest:
    id: str
    name: str
    email: str
    phone: str
    company: str
    project_type: str
    budget: str
    timeline: str
    description: str
    status: str
    created_at: str
    updated_at: str

    @classmethod
    def from_submission(cls, sub: QuoteSubmission, status: str, now: str) -> "QuoteRequest":
        return cls(
            id=str(uuid.uuid4()),
            name=sub.name,
            email=sub.email,
            phone=sub.phone,
            company=sub.company,
            project_type=sub.project_type,
            budget=sub.budget,
            timeline=sub.timeline,
            description=sub.description,
            status=status,
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuoteRequest":
        kwargs = {attr: data.get(key) for key, attr in FIELD_KEYS.items()}
        kwargs["company"] = kwargs["company"] or ""
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {key: getattr(self, attr) for key, attr in FIELD_KEYS.items()}

    def with_status(self, status: str, now: str) -> "QuoteRequest":
        return replace(self, status=status, updated_at=now)
