"""
Section navigation: a section must validate before the form moves past it,
going back is always allowed.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from schemas.submission import SubmissionForm
from services.errors import InvalidSectionError
from services.validation import TOTAL_SECTIONS, validate_section


@dataclass
class SectionStep:
    section: int
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return not self.errors


def advance_section(form: SubmissionForm, current: int) -> SectionStep:
    """Validate the current section and move forward (capped at the last section)."""
    errors = validate_section(current, form)
    if errors:
        return SectionStep(section=current, errors=errors)
    return SectionStep(section=min(current + 1, TOTAL_SECTIONS))


def retreat_section(current: int) -> int:
    if not 1 <= current <= TOTAL_SECTIONS:
        raise InvalidSectionError(f"Section must be between 1 and {TOTAL_SECTIONS}, got {current!r}")
    return max(1, current - 1)


def resume_section(completed: list[int]) -> int:
    """First section not yet completed, or the last section when all are."""
    return next((s for s in range(1, TOTAL_SECTIONS + 1) if s not in completed), TOTAL_SECTIONS)
