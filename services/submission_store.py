"""
Persistence for investor submissions.
Each write replaces the stored sections as a whole; the enclosing request
transaction (database.get_db) commits or rolls back everything at once.
"""
from __future__ import annotations

import logging
import math
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from models import Submission
from schemas.submission import SubmissionForm
from services.errors import NotFound, TransientStoreError

logger = logging.getLogger(__name__)

MSG_SUBMISSION_NOT_FOUND = "Submission not found"

SECTION_COLUMNS = (
    "personal_info",
    "bank_details",
    "investment_details",
    "dividend_history",
    "documents",
    "remarks",
    "declaration",
)


def form_to_columns(form: SubmissionForm) -> dict[str, Any]:
    """Flatten a form into Submission column values, including the search columns."""
    values: dict[str, Any] = {name: getattr(form, name).model_dump(by_alias=False) for name in SECTION_COLUMNS}
    values["court_agreement_number"] = form.court_agreement_number or None
    values["completed_sections"] = sorted(set(form.completed_sections))
    info = form.personal_info
    values["investor_name"] = info.full_name or None
    values["email"] = info.email or None
    values["phone"] = info.full_phone or info.phone or None
    values["reference_number"] = form.investment_details.reference_number or None
    return values


@asynccontextmanager
async def _store_call(operation: str):
    try:
        yield
    except (OperationalError, InterfaceError) as e:
        logger.warning("Submission store unavailable during %s: %s", operation, e)
        raise TransientStoreError("Service temporarily unavailable, please try again") from e


class SubmissionStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, record: Submission) -> str:
        now = datetime.now(timezone.utc)
        record.created_at = record.created_at or now
        record.updated_at = now
        async with _store_call("create"):
            self.session.add(record)
            await self.session.flush()
        return record.id

    async def get_by_id(self, submission_id: str) -> Submission:
        async with _store_call("get"):
            result = await self.session.execute(select(Submission).where(Submission.id == submission_id))
            record = result.scalar_one_or_none()
        if record is None:
            raise NotFound(MSG_SUBMISSION_NOT_FOUND)
        return record

    async def get_owned(self, submission_id: str, owner_id: str) -> Submission:
        """Like get_by_id, but records of other investors are reported as missing."""
        record = await self.get_by_id(submission_id)
        if record.owner_id != owner_id:
            raise NotFound(MSG_SUBMISSION_NOT_FOUND)
        return record

    async def list_by_owner(
        self,
        owner_id: str,
        page: int = 1,
        page_size: int = 10,
        search: Optional[str] = None,
        status: Optional[str] = None,
    ) -> tuple[list[Submission], int]:
        conditions = [Submission.owner_id == owner_id]
        if status:
            conditions.append(Submission.status == status)
        if search and search.strip():
            term = f"%{search.strip()}%"
            conditions.append(or_(
                Submission.investor_name.ilike(term),
                Submission.court_agreement_number.ilike(term),
                Submission.email.ilike(term),
                Submission.phone.ilike(term),
                Submission.reference_number.ilike(term),
            ))
        return await self._page(conditions, page, page_size)

    async def list_all(
        self,
        page: int = 1,
        page_size: int = 20,
        status: Optional[str] = None,
    ) -> tuple[list[Submission], int]:
        conditions = [Submission.status == status] if status else [Submission.status != "draft"]
        return await self._page(conditions, page, page_size)

    async def _page(self, conditions: list, page: int, page_size: int) -> tuple[list[Submission], int]:
        page = max(page, 1)
        page_size = max(page_size, 1)
        async with _store_call("list"):
            total = (await self.session.execute(
                select(func.count(Submission.id)).where(*conditions)
            )).scalar() or 0
            result = await self.session.execute(
                select(Submission)
                .where(*conditions)
                .order_by(Submission.updated_at.desc(), Submission.created_at.desc())
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
            records = list(result.scalars().all())
        return records, total

    async def status_counts(self, owner_id: str) -> dict[str, int]:
        async with _store_call("count"):
            result = await self.session.execute(
                select(Submission.status, func.count(Submission.id))
                .where(Submission.owner_id == owner_id)
                .group_by(Submission.status)
            )
            counts = {status: count for status, count in result.all()}
        return {
            "total": sum(counts.values()),
            "draft": counts.get("draft", 0),
            "pending": counts.get("pending", 0),
            "verified": counts.get("verified", 0),
            "rejected": counts.get("rejected", 0),
            "discrepancy": counts.get("discrepancy", 0),
        }

    async def update(self, submission_id: str, values: dict[str, Any]) -> Submission:
        record = await self.get_by_id(submission_id)
        async with _store_call("update"):
            for column, value in values.items():
                setattr(record, column, value)
            record.updated_at = datetime.now(timezone.utc)
            await self.session.flush()
        return record

    async def delete(self, submission_id: str) -> None:
        record = await self.get_by_id(submission_id)
        async with _store_call("delete"):
            await self.session.delete(record)
            await self.session.flush()


def total_pages(total: int, page_size: int) -> int:
    return max(1, math.ceil(total / max(page_size, 1)))
