import hmac
from typing import Optional

from fastapi import Depends, File, Header, UploadFile
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from models import Investor
from services.auth import LoggingOtpSender, OtpSender, decode_token, get_investor
from services.documents import DOCUMENT_SLOTS, Upload, check_uploads
from services.errors import AuthError, Forbidden
from services.storage import check_upload
from services.submission_store import SubmissionStore

_bearer = HTTPBearer(auto_error=False)


def get_store(db: AsyncSession = Depends(get_db)) -> SubmissionStore:
    return SubmissionStore(db)


def get_otp_sender() -> OtpSender:
    return LoggingOtpSender()


async def get_current_investor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    db: AsyncSession = Depends(get_db),
) -> Investor:
    if credentials is None or not credentials.credentials:
        raise AuthError("Not authenticated")
    return await get_investor(db, decode_token(credentials.credentials))


def require_admin(x_admin_key: Optional[str] = Header(None, alias="X-Admin-Key")) -> None:
    if not x_admin_key:
        raise AuthError("Admin key required")
    if not hmac.compare_digest(x_admin_key, settings.admin_api_key):
        raise Forbidden("Invalid admin key")


async def read_upload(slot: str, file: UploadFile, allowed_extensions: Optional[set[str]] = None) -> Upload:
    """Size and type are checked against the declared size before the body is read."""
    content_type = file.content_type or "application/octet-stream"
    if file.size is not None:
        check_upload(file.filename, content_type, file.size, allowed_extensions)
    return Upload(slot=slot, filename=file.filename or "", content_type=content_type, data=await file.read())


async def document_uploads(
    agreement_copy: Optional[UploadFile] = File(None, alias="agreementCopy"),
    payment_proof: Optional[UploadFile] = File(None, alias="paymentProof"),
    dividend_receipts: Optional[UploadFile] = File(None, alias="dividendReceipts"),
    other_documents: Optional[UploadFile] = File(None, alias="otherDocuments"),
) -> list[Upload]:
    """At most one file per document slot; the whole batch is rejected on the first bad file."""
    uploads = []
    for slot, file in zip(DOCUMENT_SLOTS, (agreement_copy, payment_proof, dividend_receipts, other_documents)):
        if file is not None and file.filename:
            uploads.append(await read_upload(slot, file))
    check_uploads(uploads)
    return uploads
