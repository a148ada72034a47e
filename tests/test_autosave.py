"""
Draft autosave: save predicate, dropped overlapping triggers, error indicator, timer loop.
Run from project root: python -m pytest tests/test_autosave.py -v
"""
import asyncio
import unittest

from schemas.submission import SubmissionForm
from services.autosave import DraftAutosave, store_saver
from services.editing import EditingSession
from services.submission_store import SubmissionStore
from support import memory_session_factory


def _named_session(name: str = "Jane Doe") -> EditingSession:
    return EditingSession(form=SubmissionForm.model_validate({"personalInfo": {"fullName": name}}))


class TestDraftAutosave(unittest.IsolatedAsyncioTestCase):
    async def test_nothing_to_save_without_identifying_field(self):
        calls = []

        async def save(editing):
            calls.append(editing)
            return "sub-1"

        autosave = DraftAutosave(EditingSession(), save, interval=60)
        self.assertFalse(autosave.should_save())
        self.assertFalse(await autosave.trigger())
        self.assertEqual(calls, [])
        self.assertEqual(autosave.status, "idle")

    async def test_agreement_number_alone_is_enough(self):
        editing = EditingSession(form=SubmissionForm(court_agreement_number="CA-1"))
        autosave = DraftAutosave(editing, save=None, interval=60)
        self.assertTrue(autosave.should_save())

    async def test_submitted_form_is_not_autosaved(self):
        editing = _named_session()
        editing.status = "pending"
        autosave = DraftAutosave(editing, save=None, interval=60)
        self.assertFalse(autosave.should_save())

    async def test_successful_save_records_id(self):
        async def save(editing):
            return "sub-abc"

        editing = _named_session()
        autosave = DraftAutosave(editing, save, interval=60)
        self.assertTrue(await autosave.trigger())
        self.assertEqual(autosave.status, "saved")
        self.assertEqual(editing.submission_id, "sub-abc")
        self.assertIsNotNone(autosave.last_saved_at)

    async def test_overlapping_trigger_is_dropped(self):
        release = asyncio.Event()
        calls = 0

        async def slow_save(editing):
            nonlocal calls
            calls += 1
            await release.wait()
            return "sub-1"

        autosave = DraftAutosave(_named_session(), slow_save, interval=60)
        first = asyncio.create_task(autosave.trigger())
        await asyncio.sleep(0)
        self.assertTrue(autosave.in_flight)
        self.assertEqual(autosave.status, "saving")

        self.assertFalse(await autosave.trigger())
        release.set()
        self.assertTrue(await first)
        self.assertEqual(calls, 1)
        self.assertFalse(autosave.in_flight)

    async def test_error_stays_until_next_success(self):
        outcomes = [RuntimeError("store down"), "sub-1"]

        async def flaky_save(editing):
            result = outcomes.pop(0)
            if isinstance(result, Exception):
                raise result
            return result

        autosave = DraftAutosave(_named_session(), flaky_save, interval=60)
        self.assertFalse(await autosave.trigger())
        self.assertEqual(autosave.status, "error")
        self.assertEqual(autosave.last_error, "store down")
        self.assertFalse(autosave.in_flight)

        self.assertTrue(await autosave.trigger())
        self.assertEqual(autosave.status, "saved")
        self.assertIsNone(autosave.last_error)

    async def test_timer_saves_periodically(self):
        saved = asyncio.Event()

        async def save(editing):
            saved.set()
            return "sub-1"

        autosave = DraftAutosave(_named_session(), save, interval=0.01)
        autosave.start()
        try:
            await asyncio.wait_for(saved.wait(), timeout=2)
        finally:
            await autosave.stop()
        self.assertEqual(autosave.status, "saved")


class TestStoreSaver(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.engine, self.factory = await memory_session_factory()

    async def asyncTearDown(self):
        await self.engine.dispose()

    async def test_saves_then_updates_same_draft(self):
        editing = _named_session()
        autosave = DraftAutosave(editing, store_saver(self.factory, "inv-1"), interval=60)

        self.assertTrue(await autosave.trigger())
        draft_id = editing.submission_id
        self.assertIsNotNone(draft_id)

        editing.form = SubmissionForm.model_validate({"personalInfo": {"fullName": "Jane Q. Doe"}})
        self.assertTrue(await autosave.trigger())
        self.assertEqual(editing.submission_id, draft_id)

        async with self.factory() as session:
            records, total = await SubmissionStore(session).list_by_owner("inv-1")
        self.assertEqual(total, 1)
        self.assertEqual(records[0].personal_info["full_name"], "Jane Q. Doe")
        self.assertEqual(records[0].status, "draft")


if __name__ == "__main__":
    unittest.main()
