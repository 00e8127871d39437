# quotedesk/schemas.py
from dataclasses import dataclass, field, asdict
from typing import List, Optional, Dict, Any


# ---------- Intake ----------

@dataclass
class Violation:
    field: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass
class QuoteSubmission:
    """A validated, normalised quote request form."""
    name: str
    email: str
    phone: str
    project_type: str
    budget: str
    timeline: str
    description: str
    company: str = ""


@dataclass
class ValidationResult:
    submission: Optional[QuoteSubmission] = None
    violations: List[Violation] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.submission is not None and not self.violations


# ---------- Admin ----------

@dataclass
class StatusUpdateIn:
    status: Optional[str] = None


@dataclass
class QuoteCreatedOut:
    id: str


@dataclass
class QuoteListOut:
    data: List[Dict[str, Any]]
    total: int


@dataclass
class DeletedOut:
    deleted: int
