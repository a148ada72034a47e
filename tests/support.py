"""Shared fixtures for the test modules: in-memory databases, a fake object store, sample forms."""
from __future__ import annotations

import copy
from typing import Any, Optional

from sqlalchemy.ext.asyncio import create_async_engine

import models  # noqa: F401  (registers tables on Base.metadata)
from database import engine_kwargs, init_db, session_factory
from schemas.submission import SubmissionForm

MEMORY_URL = "sqlite+aiosqlite://"

VALID_FORM: dict[str, Any] = {
    "courtAgreementNumber": "CA-2024-117",
    "personalInfo": {
        "fullName": "Jane Doe",
        "email": "jane@x.com",
        "phoneCode": "+971",
        "phone": "501234567",
        "country": "UAE",
        "city": "Dubai",
    },
    "bankDetails": {
        "bankName": "Emirates NBD",
        "accountNumber": "1012345678",
        "accountHolderName": "Jane Doe",
    },
    "investmentDetails": {
        "referenceNumber": "INV-0042",
        "amount": "250000",
        "investmentDate": "2021-03-15",
        "duration": "24 months",
        "annualDividendPercentage": "12",
        "dividendFrequency": "quarterly",
        "status": "active",
        "paymentMethod": {"method": "bank transfer", "paidByCheque": False},
    },
    "dividendHistory": {"totalReceived": "30000", "hasPending": False},
    "remarks": {"additionalDetails": "Closure requested"},
    "declaration": {"confirmed": True, "signature": "Jane Doe"},
}


def form_data(**sections: dict) -> dict[str, Any]:
    """Deep copy of VALID_FORM with the given sections' fields overridden."""
    data = copy.deepcopy(VALID_FORM)
    for name, fields in sections.items():
        if isinstance(data.get(name), dict):
            data[name].update(fields)
        else:
            data[name] = fields
    return data


def valid_form(**sections: dict) -> SubmissionForm:
    return SubmissionForm.model_validate(form_data(**sections))


async def memory_session_factory():
    engine = create_async_engine(MEMORY_URL, **engine_kwargs(MEMORY_URL))
    await init_db(engine)
    return engine, session_factory(engine)


class FakeObjectStore:
    """In-memory stand-in for the S3 object store."""

    def __init__(self, fail: bool = False):
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.fail = fail

    async def put(self, data: bytes, content_type: str, key_hint: str, filename: Optional[str] = None) -> str:
        if self.fail:
            from services.errors import TransientStoreError

            raise TransientStoreError("File storage temporarily unavailable, please try again")
        key = f"{key_hint}/{filename or 'file'}"
        self.objects[key] = (data, content_type)
        return f"https://files.test/{key}"


class CapturingOtpSender:
    def __init__(self):
        self.sent: list[tuple[str, str, str]] = []

    async def send(self, phone: str, code: str, purpose: str) -> None:
        self.sent.append((phone, code, purpose))

    @property
    def last_code(self) -> str:
        return self.sent[-1][1]
