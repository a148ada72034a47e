from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile

from api.deps import get_current_investor, get_store, read_upload, require_admin
from api.submissions import submission_to_response
from models import Investor
from schemas.submission import ReviewStatusUpdate, SubmissionStatus
from services import review
from services.storage import ObjectStore, get_object_store
from services.submission_store import SubmissionStore, total_pages
from utils.case import dict_keys_to_camel

router = APIRouter(prefix="/api/submissions", tags=["review"])


@router.get("", dependencies=[Depends(require_admin)])
async def list_for_review(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[SubmissionStatus] = None,
    store: SubmissionStore = Depends(get_store),
):
    records, total = await store.list_all(page=page, page_size=limit, status=status)
    return {
        "submissions": [submission_to_response(s) for s in records],
        "total": total,
        "page": page,
        "totalPages": total_pages(total, limit),
    }


@router.patch("/{submission_id}/status", dependencies=[Depends(require_admin)])
async def update_status(
    submission_id: str,
    body: ReviewStatusUpdate,
    store: SubmissionStore = Depends(get_store),
    object_store: ObjectStore = Depends(get_object_store),
):
    record = await review.set_review_status(
        store, object_store, submission_id, body.status, reason=body.reason, details=body.details
    )
    return submission_to_response(record)


@router.get("/{submission_id}/consent")
async def get_consent(
    submission_id: str,
    investor: Investor = Depends(get_current_investor),
    store: SubmissionStore = Depends(get_store),
):
    record = await store.get_owned(submission_id, investor.id)
    return dict_keys_to_camel(review.consent_state(record))


@router.post("/{submission_id}/consent/investor-upload")
async def upload_investor_consent(
    submission_id: str,
    consent_pdf: UploadFile = File(..., alias="consentPdf"),
    investor: Investor = Depends(get_current_investor),
    store: SubmissionStore = Depends(get_store),
    object_store: ObjectStore = Depends(get_object_store),
):
    upload = await read_upload("consentPdf", consent_pdf, review.PDF_ONLY)
    record = await review.upload_investor_consent(
        store, object_store, submission_id, investor.id, upload.filename, upload.content_type, upload.data
    )
    return dict_keys_to_camel(review.consent_state(record))


@router.post("/{submission_id}/consent/executed", dependencies=[Depends(require_admin)])
async def upload_executed_consent(
    submission_id: str,
    consent_pdf: UploadFile = File(..., alias="consentPdf"),
    store: SubmissionStore = Depends(get_store),
    object_store: ObjectStore = Depends(get_object_store),
):
    upload = await read_upload("consentPdf", consent_pdf, review.PDF_ONLY)
    record = await review.upload_executed_consent(
        store, object_store, submission_id, upload.filename, upload.content_type, upload.data
    )
    return dict_keys_to_camel(review.consent_state(record))
