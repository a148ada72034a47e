"""
Section-level validation of the investor form.
Each of the seven sections is checked independently; the result is a map of
camelCase field path -> message, empty when the section is valid.
Internal field paths are snake_case attribute paths into SubmissionForm.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Optional

from config import settings
from schemas.submission import SubmissionForm
from services.errors import InvalidSectionError
from utils.case import field_path

TOTAL_SECTIONS = 7

SECTION_KEYS = {
    1: "personal_info",
    2: "bank_details",
    3: "investment_details",
    4: "dividend_history",
    5: "documents",
    6: "remarks",
    7: "declaration",
}

MSG_REQUIRED = "Required"
MSG_NUMBER = "Must be a number"

REQUIRED_FIELDS: dict[int, tuple[tuple[str, ...], ...]] = {
    1: (
        ("personal_info", "full_name"),
        ("personal_info", "email"),
        ("personal_info", "phone"),
        ("personal_info", "country"),
    ),
    2: (
        ("bank_details", "bank_name"),
        ("bank_details", "account_number"),
        ("bank_details", "account_holder_name"),
    ),
    3: (
        ("investment_details", "amount"),
        ("investment_details", "investment_date"),
        ("investment_details", "duration"),
        ("investment_details", "annual_dividend_percentage"),
        ("investment_details", "dividend_frequency"),
        ("investment_details", "status"),
    ),
    4: (),
    5: (),
    6: (),
    7: (),
}

NUMERIC_FIELDS: dict[int, tuple[tuple[str, ...], ...]] = {
    3: (
        ("investment_details", "amount"),
        ("investment_details", "annual_dividend_percentage"),
    ),
}


@dataclass(frozen=True)
class ConditionalRule:
    """Field at `path` is required when `applies(form)` is true."""

    section: int
    path: tuple[str, ...]
    applies: Callable[[SubmissionForm], bool]
    message: str


CONDITIONAL_RULES: tuple[ConditionalRule, ...] = (
    ConditionalRule(
        section=3,
        path=("investment_details", "payment_method", "cheque_number"),
        applies=lambda f: f.investment_details.payment_method.paid_by_cheque,
        message="Required when paid by cheque",
    ),
    ConditionalRule(
        section=3,
        path=("investment_details", "payment_method", "cheque_date"),
        applies=lambda f: f.investment_details.payment_method.paid_by_cheque,
        message="Required when paid by cheque",
    ),
    ConditionalRule(
        section=4,
        path=("dividend_history", "pending_amount"),
        applies=lambda f: f.dividend_history.has_pending,
        message="Required when dividends are pending",
    ),
)


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def is_number(value: Any) -> bool:
    """Finite number, or text of one; thousands separators allowed, underscores not."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return math.isfinite(value)
    text = str(value).replace(",", "").strip()
    if "_" in text:
        return False
    try:
        return math.isfinite(float(text))
    except ValueError:
        return False


def _resolve(form: SubmissionForm, path: tuple[str, ...]) -> Any:
    obj: Any = form
    for part in path:
        obj = getattr(obj, part)
    return obj


def validate_section(
    section: int,
    form: SubmissionForm,
    strict_conditional: Optional[bool] = None,
) -> dict[str, str]:
    """
    Validate one section of the form. Pure: never touches storage.
    Conditional requirements (cheque details, pending dividend amount) are
    enforced unless strictness is turned off, per call or via settings.
    """
    if section not in SECTION_KEYS:
        raise InvalidSectionError(f"Section must be between 1 and {TOTAL_SECTIONS}, got {section!r}")
    if strict_conditional is None:
        strict_conditional = settings.strict_conditional_fields

    errors: dict[str, str] = {}
    for path in REQUIRED_FIELDS[section]:
        if is_blank(_resolve(form, path)):
            errors[field_path(path)] = MSG_REQUIRED

    if strict_conditional:
        for rule in CONDITIONAL_RULES:
            if rule.section == section and rule.applies(form) and is_blank(_resolve(form, rule.path)):
                errors[field_path(rule.path)] = rule.message

    for path in NUMERIC_FIELDS.get(section, ()):
        key = field_path(path)
        value = _resolve(form, path)
        if key not in errors and not is_blank(value) and not is_number(value):
            errors[key] = MSG_NUMBER

    if section == 7:
        if not form.declaration.confirmed:
            errors["declaration.confirmed"] = "You must confirm the declaration"
        if is_blank(form.declaration.signature):
            errors["declaration.signature"] = "Signature is required"

    return errors


def validate_all(form: SubmissionForm, strict_conditional: Optional[bool] = None) -> dict[str, str]:
    """Union of the errors of every section."""
    errors: dict[str, str] = {}
    for section in range(1, TOTAL_SECTIONS + 1):
        errors.update(validate_section(section, form, strict_conditional))
    return errors
