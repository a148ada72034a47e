"""
Submission lifecycle: draft -> pending -> verified | rejected | discrepancy.

Investors own the draft phase (save, resume, finalize, delete). Review
statuses are assigned by services.review only. Field validation failures are
returned to the caller as error maps, never raised.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from models import Submission
from schemas.submission import DocumentsSchema, SubmissionForm
from services.documents import with_documents
from services.editing import EditingSession
from services.errors import Forbidden, NotFound
from services.submission_store import SubmissionStore, form_to_columns
from services.validation import TOTAL_SECTIONS, validate_all

logger = logging.getLogger(__name__)

EDITABLE_STATUSES = frozenset({"draft", "rejected", "discrepancy"})
RESUBMITTABLE_STATUSES = frozenset({"rejected", "discrepancy"})

MSG_ALREADY_SUBMITTED = "Submission has already been submitted"


@dataclass
class FinalizeOutcome:
    submission: Optional[Submission] = None
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.submission is not None and not self.errors


def new_submission_id() -> str:
    return f"sub-{uuid.uuid4().hex[:12]}"


def compose_phone(code: Optional[str], local: Optional[str]) -> Optional[str]:
    """Dial code + local number; numbers already in international form are kept."""
    local = (local or "").strip()
    if not local:
        return None
    if local.startswith("+"):
        return local
    return f"{(code or '').strip()}{local}"


def _finalized_form(form: SubmissionForm) -> SubmissionForm:
    info = form.personal_info.model_copy(update={
        "full_phone": compose_phone(form.personal_info.phone_code, form.personal_info.phone),
        "full_mobile": compose_phone(form.personal_info.mobile_code, form.personal_info.mobile),
    })
    return form.model_copy(update={
        "personal_info": info,
        "completed_sections": list(range(1, TOTAL_SECTIONS + 1)),
    })


async def start_or_resume_draft(
    store: SubmissionStore,
    owner_id: str,
    existing_id: Optional[str] = None,
) -> EditingSession:
    """Blank editing session, or the owner's existing editable submission positioned at its first incomplete section."""
    if existing_id is None:
        return EditingSession()
    record = await store.get_owned(existing_id, owner_id)
    if record.status not in EDITABLE_STATUSES:
        raise NotFound("No editable submission found")
    return EditingSession.from_record(record)


def ensure_resubmittable(record: Submission) -> None:
    if record.status not in RESUBMITTABLE_STATUSES:
        if record.status == "draft":
            raise Forbidden("Drafts are saved as drafts and submitted with finalize")
        raise Forbidden(f"A {record.status} submission cannot be edited")


def _with_stored_documents(
    form: SubmissionForm,
    record: Optional[Submission],
    references: Optional[dict[str, str]] = None,
) -> SubmissionForm:
    """
    Document slots come from the stored record plus fresh object-store
    references; whatever the client sent for them is dropped.
    """
    stored = DocumentsSchema.model_validate(record.documents or {}) if record is not None else DocumentsSchema()
    return with_documents(form.model_copy(update={"documents": stored}), references or {})


async def persist_draft(
    store: SubmissionStore,
    owner_id: str,
    form: SubmissionForm,
    submission_id: Optional[str] = None,
) -> Submission:
    """
    Upsert the whole form with status draft. No full validation is required.
    Every call replaces all sections with what the caller sent, except the
    document slots, which only uploads change.
    """
    if submission_id is None:
        values = form_to_columns(_with_stored_documents(form, None))
        record = Submission(id=new_submission_id(), owner_id=owner_id, status="draft", **values)
        await store.create(record)
        logger.info("Draft %s created for investor %s", record.id, owner_id)
        return record

    record = await store.get_owned(submission_id, owner_id)
    if record.status != "draft":
        raise Forbidden(MSG_ALREADY_SUBMITTED)
    return await store.update(submission_id, form_to_columns(_with_stored_documents(form, record)))


async def finalize_submission(
    store: SubmissionStore,
    owner_id: str,
    form: SubmissionForm,
    submission_id: Optional[str] = None,
    references: Optional[dict[str, str]] = None,
) -> FinalizeOutcome:
    """The only draft -> pending transition. Invalid forms are not persisted."""
    record = None
    if submission_id is not None:
        record = await store.get_owned(submission_id, owner_id)
        if record.status != "draft":
            raise Forbidden(MSG_ALREADY_SUBMITTED)

    errors = validate_all(form)
    if errors:
        return FinalizeOutcome(errors=errors)

    values = form_to_columns(_finalized_form(_with_stored_documents(form, record, references)))
    values["status"] = "pending"
    values["submitted_at"] = datetime.now(timezone.utc)

    if record is None:
        record = Submission(id=new_submission_id(), owner_id=owner_id, **values)
        await store.create(record)
    else:
        record = await store.update(record.id, values)
    logger.info("Submission %s moved to pending", record.id)
    return FinalizeOutcome(submission=record)


async def update_submission(
    store: SubmissionStore,
    owner_id: str,
    submission_id: str,
    form: SubmissionForm,
    references: Optional[dict[str, str]] = None,
) -> FinalizeOutcome:
    """
    Full re-edit of a rejected or discrepancy record; the status stays with the
    reviewer. A new upload for a slot replaces that slot's reference.
    """
    record = await store.get_owned(submission_id, owner_id)
    ensure_resubmittable(record)

    errors = validate_all(form)
    if errors:
        return FinalizeOutcome(errors=errors)

    values = form_to_columns(_finalized_form(_with_stored_documents(form, record, references)))
    record = await store.update(submission_id, values)
    logger.info("Submission %s updated while %s", submission_id, record.status)
    return FinalizeOutcome(submission=record)


async def delete_submission(store: SubmissionStore, submission_id: str, owner_id: str) -> None:
    record = await store.get_owned(submission_id, owner_id)
    if record.status == "verified":
        raise Forbidden("Verified submissions cannot be deleted")
    await store.delete(submission_id)
    logger.info("Submission %s deleted by investor %s", submission_id, owner_id)
