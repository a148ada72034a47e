"""
Periodic background saving of an in-progress form as a draft.

One DraftAutosave per EditingSession. A trigger that arrives while a save is
still running is dropped, not queued. Failures are kept on `status` /
`last_error` for the UI indicator until a later save succeeds.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Literal, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config import settings
from database import transaction
from services.editing import EditingSession
from services.lifecycle import persist_draft
from services.submission_store import SubmissionStore
from services.validation import is_blank

logger = logging.getLogger(__name__)

AutosaveStatus = Literal["idle", "saving", "saved", "error"]
SaveFn = Callable[[EditingSession], Awaitable[Optional[str]]]


class DraftAutosave:
    def __init__(self, editing: EditingSession, save: SaveFn, interval: Optional[float] = None):
        self.editing = editing
        self.interval = settings.autosave_interval_seconds if interval is None else interval
        self.status: AutosaveStatus = "idle"
        self.last_error: Optional[str] = None
        self.last_saved_at: Optional[datetime] = None
        self._save = save
        self._in_flight = False
        self._task: Optional[asyncio.Task] = None

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def should_save(self) -> bool:
        """Only unsubmitted forms with an investor name or agreement number are worth saving."""
        if self.editing.submitted:
            return False
        form = self.editing.form
        return not (is_blank(form.personal_info.full_name) and is_blank(form.court_agreement_number))

    async def trigger(self) -> bool:
        """Run one save now. Returns True only when a save ran and succeeded."""
        if self._in_flight or not self.should_save():
            return False
        self._in_flight = True
        self.status = "saving"
        try:
            submission_id = await self._save(self.editing)
        except Exception as e:
            self.status = "error"
            self.last_error = str(e) or e.__class__.__name__
            logger.warning("Autosave failed for draft %s: %s", self.editing.submission_id, self.last_error)
            return False
        finally:
            self._in_flight = False

        if submission_id:
            self.editing.submission_id = submission_id
        self.status = "saved"
        self.last_error = None
        self.last_saved_at = datetime.now(timezone.utc)
        return True

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await self.trigger()


def store_saver(session_factory: async_sessionmaker[AsyncSession], owner_id: str) -> SaveFn:
    """Save callable that persists the session's form as a draft in its own transaction."""

    async def save(editing: EditingSession) -> Optional[str]:
        async with transaction(session_factory) as session:
            record = await persist_draft(SubmissionStore(session), owner_id, editing.form, editing.submission_id)
        return record.id

    return save
