from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Query
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from api.deps import document_uploads, get_current_investor, get_store
from models import Investor, Submission
from schemas.submission import SectionValidationRequest, SubmissionForm
from services import lifecycle
from services.documents import Upload, attach_documents
from services.navigation import advance_section, resume_section
from services.errors import Forbidden, InvalidSectionError
from services.review import certificate_pdf
from services.storage import ObjectStore, get_object_store
from services.submission_store import SubmissionStore, total_pages
from services.validation import TOTAL_SECTIONS, validate_all
from utils.case import dict_keys_to_camel

router = APIRouter(prefix="/api/user", tags=["submissions"])


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def submission_to_response(s: Submission) -> dict[str, Any]:
    """Serialize a submission with camelCase keys for the frontend."""
    completed = sorted(set(s.completed_sections or []))
    return {
        "id": s.id,
        "ownerId": s.owner_id,
        "status": s.status,
        "courtAgreementNumber": s.court_agreement_number,
        "personalInfo": dict_keys_to_camel(s.personal_info or {}),
        "bankDetails": dict_keys_to_camel(s.bank_details or {}),
        "investmentDetails": dict_keys_to_camel(s.investment_details or {}),
        "dividendHistory": dict_keys_to_camel(s.dividend_history or {}),
        "documents": dict_keys_to_camel(s.documents or {}),
        "remarks": dict_keys_to_camel(s.remarks or {}),
        "declaration": dict_keys_to_camel(s.declaration or {}),
        "completedSections": completed,
        "progress": f"{len(completed)}/{TOTAL_SECTIONS}",
        "resumeSection": resume_section(completed),
        "rejectionReason": s.rejection_reason,
        "discrepancyDetails": s.discrepancy_details,
        "certificateNumber": s.certificate_number,
        "certificateGeneratedAt": _iso(s.certificate_generated_at),
        "consent": dict_keys_to_camel(s.consent) if s.consent else {"status": "not_required"},
        "createdAt": _iso(s.created_at),
        "updatedAt": _iso(s.updated_at),
        "submittedAt": _iso(s.submitted_at),
        "reviewedAt": _iso(s.reviewed_at),
    }


def _errors_response(errors: dict[str, str]) -> JSONResponse:
    return JSONResponse(status_code=422, content={"errors": errors})


def _parse_form(form_data: str) -> SubmissionForm:
    try:
        return SubmissionForm.model_validate_json(form_data)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail="formData is not a valid submission form") from e


@router.get("/submissions")
async def list_submissions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    investor: Investor = Depends(get_current_investor),
    store: SubmissionStore = Depends(get_store),
):
    records, total = await store.list_by_owner(investor.id, page=page, page_size=limit, search=search)
    return {
        "submissions": [submission_to_response(s) for s in records],
        "total": total,
        "page": page,
        "totalPages": total_pages(total, limit),
        "stats": await store.status_counts(investor.id),
    }


@router.post("/submissions/draft", status_code=201)
async def create_draft(
    body: SubmissionForm,
    investor: Investor = Depends(get_current_investor),
    store: SubmissionStore = Depends(get_store),
):
    record = await lifecycle.persist_draft(store, investor.id, body)
    return submission_to_response(record)


@router.put("/submissions/draft/{submission_id}")
async def save_draft(
    submission_id: str,
    body: SubmissionForm,
    investor: Investor = Depends(get_current_investor),
    store: SubmissionStore = Depends(get_store),
):
    record = await lifecycle.persist_draft(store, investor.id, body, submission_id)
    return submission_to_response(record)


@router.post("/submissions/validate-section")
async def validate_section(body: SectionValidationRequest, investor: Investor = Depends(get_current_investor)):
    try:
        step = advance_section(body.form, body.section)
    except InvalidSectionError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return {"section": step.section, "errors": step.errors, "valid": step.valid}


@router.get("/certificates")
async def list_certificates(
    investor: Investor = Depends(get_current_investor),
    store: SubmissionStore = Depends(get_store),
):
    records, _ = await store.list_by_owner(investor.id, page=1, page_size=100, status="verified")
    return [
        {
            "id": s.id,
            "certificateNumber": s.certificate_number,
            "certificateGeneratedAt": _iso(s.certificate_generated_at),
            "investorName": s.investor_name,
            "courtAgreementNumber": s.court_agreement_number,
            "amount": (s.investment_details or {}).get("amount"),
            "consent": dict_keys_to_camel(s.consent) if s.consent else {"status": "not_required"},
        }
        for s in records
    ]


@router.get("/submissions/{submission_id}")
async def get_submission(
    submission_id: str,
    investor: Investor = Depends(get_current_investor),
    store: SubmissionStore = Depends(get_store),
):
    return submission_to_response(await store.get_owned(submission_id, investor.id))


@router.put("/submissions/{submission_id}")
async def update_submission(
    submission_id: str,
    form_data: str = Form(..., alias="formData"),
    investor: Investor = Depends(get_current_investor),
    uploads: list[Upload] = Depends(document_uploads),
    store: SubmissionStore = Depends(get_store),
    object_store: ObjectStore = Depends(get_object_store),
):
    """Corrected resubmission of a rejected or discrepancy record, multipart like /submit."""
    form = _parse_form(form_data)
    lifecycle.ensure_resubmittable(await store.get_owned(submission_id, investor.id))
    errors = validate_all(form)
    if errors:
        return _errors_response(errors)

    references = await attach_documents(object_store, f"submissions/{investor.id}", uploads)
    outcome = await lifecycle.update_submission(store, investor.id, submission_id, form, references)
    if not outcome.ok:
        return _errors_response(outcome.errors)
    return submission_to_response(outcome.submission)


@router.delete("/submissions/{submission_id}")
async def delete_submission(
    submission_id: str,
    investor: Investor = Depends(get_current_investor),
    store: SubmissionStore = Depends(get_store),
):
    await lifecycle.delete_submission(store, submission_id, investor.id)
    return {"success": True}


@router.get("/submissions/{submission_id}/certificate")
async def download_certificate(
    submission_id: str,
    investor: Investor = Depends(get_current_investor),
    store: SubmissionStore = Depends(get_store),
):
    filename, pdf = await certificate_pdf(store, submission_id, investor.id)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/submit", status_code=201)
async def submit_form(
    form_data: str = Form(..., alias="formData"),
    draft_id: Optional[str] = Form(None, alias="draftId"),
    investor: Investor = Depends(get_current_investor),
    uploads: list[Upload] = Depends(document_uploads),
    store: SubmissionStore = Depends(get_store),
    object_store: ObjectStore = Depends(get_object_store),
):
    """
    Final submission: form JSON plus at most one file per document slot.
    Uploads are checked first, then the form; files are stored only for a
    valid form, and the draft (if any) becomes pending. Document slots are
    filled from the stored draft and the new uploads only.
    """
    form = _parse_form(form_data)
    errors = validate_all(form)
    if errors:
        return _errors_response(errors)
    if draft_id:
        record = await store.get_owned(draft_id, investor.id)
        if record.status != "draft":
            raise Forbidden(lifecycle.MSG_ALREADY_SUBMITTED)

    references = await attach_documents(object_store, f"submissions/{investor.id}", uploads)
    outcome = await lifecycle.finalize_submission(store, investor.id, form, draft_id or None, references)
    if not outcome.ok:
        return _errors_response(outcome.errors)
    return submission_to_response(outcome.submission)
