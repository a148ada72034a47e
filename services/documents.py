"""
Attaching uploaded files to a submission's documents section.
Only the reference returned by the object store is recorded; file content is never inspected here.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from schemas.submission import SubmissionForm
from services.errors import UploadRejected
from services.storage import check_upload
from utils.case import to_snake_key

DOCUMENT_SLOTS = ("agreementCopy", "paymentProof", "dividendReceipts", "otherDocuments")


class ObjectPutter(Protocol):
    async def put(self, data: bytes, content_type: str, key_hint: str, filename: str | None = None) -> str:
        ...


@dataclass
class Upload:
    slot: str
    filename: str
    content_type: str
    data: bytes


def check_uploads(uploads: list[Upload]) -> None:
    """Reject the whole batch before anything is stored."""
    seen: set[str] = set()
    for upload in uploads:
        if upload.slot not in DOCUMENT_SLOTS:
            raise UploadRejected(f"Unknown document slot: {upload.slot}")
        if upload.slot in seen:
            raise UploadRejected(f"Only one file is allowed for {upload.slot}")
        seen.add(upload.slot)
        check_upload(upload.filename, upload.content_type, len(upload.data))


async def attach_documents(store: ObjectPutter, key_hint: str, uploads: list[Upload]) -> dict[str, str]:
    """Store each upload and return {slot: reference}."""
    check_uploads(uploads)
    references: dict[str, str] = {}
    for upload in uploads:
        references[upload.slot] = await store.put(
            upload.data, upload.content_type, f"{key_hint}/{upload.slot}", upload.filename
        )
    return references


def with_documents(form: SubmissionForm, references: dict[str, str]) -> SubmissionForm:
    """Copy of the form whose document slots point at the new references; other slots are kept."""
    if not references:
        return form
    documents = form.documents.model_copy(
        update={to_snake_key(slot): ref for slot, ref in references.items()}
    )
    return form.model_copy(update={"documents": documents})
