"""
Field-level validation of inbound quote request forms.

validate_submission() is pure: it never touches storage and never raises for
bad input. It returns either a normalised QuoteSubmission or every field-level
violation it found (at most one per field, in form order).
"""
from __future__ import annotations
import re
from typing import Any, Callable, Dict, List, Mapping, Optional

from quotedesk.catalog import Catalog
from quotedesk.schemas import QuoteSubmission, ValidationResult, Violation
from quotedesk.utils.field_normalizations import _clean, _collapse_spaces, _normalize_email, _phone_digits

NAME_MIN, NAME_MAX = 2, 100
COMPANY_MAX = 100
DESCRIPTION_MIN, DESCRIPTION_MAX = 10, 1000
PHONE_MIN_DIGITS, PHONE_MAX_DIGITS = 7, 15

NAME_RE = re.compile(r"^[^\W\d_]+(?:[ '\-.]+[^\W\d_]+)*\.?$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\+?[\d\s\-().]+$")

CHOICE_MESSAGES = {
    "projectType": "Please select a valid project type",
    "budget": "Please select a valid budget range",
    "timeline": "Please select a valid timeline",
}

# form key -> QuoteSubmission attribute
FORM_FIELDS = {
    "name": "name",
    "email": "email",
    "phone": "phone",
    "company": "company",
    "projectType": "project_type",
    "budget": "budget",
    "timeline": "timeline",
    "description": "description",
}


def _check_name(value: str) -> Optional[str]:
    if not NAME_MIN <= len(value) <= NAME_MAX:
        return f"Name must be between {NAME_MIN} and {NAME_MAX} characters"
    if not NAME_RE.match(value):
        return "Name can only contain letters, spaces, apostrophes, hyphens and periods"
    return None


def _check_email(value: str) -> Optional[str]:
    if not EMAIL_RE.match(value):
        return "Please provide a valid email address"
    return None


def _check_phone(value: str) -> Optional[str]:
    digits = _phone_digits(value)
    if not PHONE_RE.match(value) or not PHONE_MIN_DIGITS <= len(digits) <= PHONE_MAX_DIGITS:
        return "Please provide a valid phone number"
    return None


def _check_company(value: str) -> Optional[str]:
    if len(value) > COMPANY_MAX:
        return f"Company name must be less than {COMPANY_MAX} characters"
    return None


def _check_description(value: str) -> Optional[str]:
    if not DESCRIPTION_MIN <= len(value) <= DESCRIPTION_MAX:
        return f"Description must be between {DESCRIPTION_MIN} and {DESCRIPTION_MAX} characters"
    return None


TEXT_CHECKS: Dict[str, Callable[[str], Optional[str]]] = {
    "name": _check_name,
    "email": _check_email,
    "phone": _check_phone,
    "company": _check_company,
    "description": _check_description,
}

REQUIRED_MESSAGES = {
    "name": "Name is required",
    "email": "Email is required",
    "phone": "Phone number is required",
    "projectType": CHOICE_MESSAGES["projectType"],
    "budget": CHOICE_MESSAGES["budget"],
    "timeline": CHOICE_MESSAGES["timeline"],
    "description": "Description is required",
}


def validate_submission(payload: Mapping[str, Any], catalog: Catalog) -> ValidationResult:
    if not isinstance(payload, Mapping):
        return ValidationResult(violations=[Violation("body", "Request body must be a JSON object")])

    violations: List[Violation] = []
    cleaned: Dict[str, str] = {}

    for key in FORM_FIELDS:
        value = _clean(payload.get(key))

        if value is None or value == "":
            if key == "company":
                cleaned[key] = ""
            else:
                violations.append(Violation(key, REQUIRED_MESSAGES[key]))
            continue

        if not isinstance(value, str):
            violations.append(Violation(key, f"{key} must be a string"))
            continue

        if key in CHOICE_MESSAGES:
            if not catalog.contains(key, value):
                violations.append(Violation(key, CHOICE_MESSAGES[key]))
                continue
        else:
            if key == "name":
                value = _collapse_spaces(value)
            problem = TEXT_CHECKS[key](value)
            if problem:
                violations.append(Violation(key, problem))
                continue
            if key == "email":
                value = _normalize_email(value)

        cleaned[key] = value

    if violations:
        return ValidationResult(violations=violations)

    submission = QuoteSubmission(**{attr: cleaned[key] for key, attr in FORM_FIELDS.items()})
    return ValidationResult(submission=submission)
