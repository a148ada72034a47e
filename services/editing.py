from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from schemas.submission import SubmissionForm
from services.navigation import advance_section, resume_section, retreat_section
from services.validation import TOTAL_SECTIONS


@dataclass
class EditingSession:
    """
    State of one investor editing one form: the in-memory form, the section on
    screen, and the id of the stored draft once it exists.
    Passed explicitly to navigation and autosave; nothing here is global.
    """

    form: SubmissionForm = field(default_factory=SubmissionForm)
    current_section: int = 1
    submission_id: Optional[str] = None
    status: str = "draft"

    @classmethod
    def from_record(cls, record: Any) -> "EditingSession":
        session = cls(
            form=SubmissionForm.from_record(record),
            submission_id=record.id,
            status=record.status,
        )
        session.current_section = session.resume_section
        return session

    @property
    def completed_sections(self) -> list[int]:
        return sorted(set(self.form.completed_sections))

    @property
    def progress(self) -> str:
        return f"{len(self.completed_sections)}/{TOTAL_SECTIONS}"

    @property
    def resume_section(self) -> int:
        return resume_section(self.completed_sections)

    @property
    def submitted(self) -> bool:
        return self.status != "draft"

    def next_section(self) -> dict[str, str]:
        """Validate the current section; on success mark it complete and move forward."""
        step = advance_section(self.form, self.current_section)
        if step.valid:
            self.mark_complete(self.current_section)
            self.current_section = step.section
        return step.errors

    def previous_section(self) -> int:
        self.current_section = retreat_section(self.current_section)
        return self.current_section

    def mark_complete(self, section: int) -> None:
        if section not in self.form.completed_sections:
            self.form = self.form.model_copy(
                update={"completed_sections": sorted({*self.form.completed_sections, section})}
            )
