"""
Reviewer-side status changes and the documents that follow verification:
the verification certificate and the two-party consent document.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from models import Submission
from services.certificates import (
    certificate_number,
    consent_number,
    render_certificate,
    render_consent_document,
)
from services.documents import ObjectPutter
from services.errors import Forbidden
from services.storage import check_upload
from services.submission_store import SubmissionStore

logger = logging.getLogger(__name__)

REVIEW_STATUSES = frozenset({"verified", "rejected", "discrepancy"})
PDF_ONLY = {"pdf"}


def consent_state(record: Submission) -> dict:
    return dict(record.consent or {"status": "not_required"})


async def set_review_status(
    store: SubmissionStore,
    object_store: ObjectPutter,
    submission_id: str,
    status: str,
    reason: Optional[str] = None,
    details: Optional[str] = None,
) -> Submission:
    """
    Move a submitted record to verified, rejected or discrepancy.
    Drafts are not reviewable and verified records are final.
    Verification issues the certificate number and a blank consent document.
    """
    if status not in REVIEW_STATUSES:
        raise ValueError(f"Not a review status: {status!r}")
    record = await store.get_by_id(submission_id)
    if record.status == "draft":
        raise Forbidden("Drafts cannot be reviewed")
    if record.status == "verified":
        raise Forbidden("Verified submissions are final")

    now = datetime.now(timezone.utc)
    values: dict = {"status": status, "reviewed_at": now}
    if status == "rejected":
        values["rejection_reason"] = reason or details
    elif status == "discrepancy":
        values["discrepancy_details"] = details or reason
    else:
        number = consent_number(record.id)
        blank_url = await object_store.put(
            render_consent_document(record),
            "application/pdf",
            f"consents/{record.id}",
            f"{number}_blank.pdf",
        )
        values.update(
            certificate_number=certificate_number(record.id),
            certificate_generated_at=now,
            consent={
                "status": "pending",
                "consent_number": number,
                "blank_pdf_url": blank_url,
                "investor_signed_pdf_url": None,
                "fully_executed_pdf_url": None,
                "generated_at": now.isoformat(),
            },
        )

    logger.info("Submission %s reviewed: %s -> %s", record.id, record.status, status)
    return await store.update(record.id, values)


async def upload_investor_consent(
    store: SubmissionStore,
    object_store: ObjectPutter,
    submission_id: str,
    owner_id: str,
    filename: str,
    content_type: str,
    data: bytes,
) -> Submission:
    check_upload(filename, content_type, len(data), allowed_extensions=PDF_ONLY)
    record = await store.get_owned(submission_id, owner_id)
    consent = consent_state(record)
    if consent["status"] != "pending":
        raise Forbidden("Consent document is not awaiting the investor signature")
    consent["investor_signed_pdf_url"] = await object_store.put(
        data, "application/pdf", f"consents/{record.id}", f"{consent['consent_number']}_investor_signed.pdf"
    )
    consent["status"] = "investor_signed"
    consent["investor_signed_at"] = datetime.now(timezone.utc).isoformat()
    return await store.update(record.id, {"consent": consent})


async def upload_executed_consent(
    store: SubmissionStore,
    object_store: ObjectPutter,
    submission_id: str,
    filename: str,
    content_type: str,
    data: bytes,
) -> Submission:
    check_upload(filename, content_type, len(data), allowed_extensions=PDF_ONLY)
    record = await store.get_by_id(submission_id)
    consent = consent_state(record)
    if consent["status"] != "investor_signed":
        raise Forbidden("Consent document has not been signed by the investor yet")
    consent["fully_executed_pdf_url"] = await object_store.put(
        data, "application/pdf", f"consents/{record.id}", f"{consent['consent_number']}_fully_executed.pdf"
    )
    consent["status"] = "fully_executed"
    consent["executed_at"] = datetime.now(timezone.utc).isoformat()
    return await store.update(record.id, {"consent": consent})


async def certificate_pdf(store: SubmissionStore, submission_id: str, owner_id: str) -> tuple[str, bytes]:
    """(filename, pdf bytes) of the verification certificate of a verified submission."""
    record = await store.get_owned(submission_id, owner_id)
    if record.status != "verified":
        raise Forbidden("The certificate is available once the submission is verified")
    number = record.certificate_number or certificate_number(record.id)
    return f"{number}.pdf", render_certificate(record)
