"""
Reviewer transitions, consent document flow and certificate rendering.
Run from project root: python -m pytest tests/test_review.py -v
"""
import unittest

from services import lifecycle, review
from services.certificates import format_amount, format_date, render_certificate
from services.errors import Forbidden, UploadRejected
from services.submission_store import SubmissionStore
from support import FakeObjectStore, memory_session_factory, valid_form

OWNER = "inv-owner"
PDF = b"%PDF-1.4 signed"


class TestReview(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.engine, self.factory = await memory_session_factory()
        self.session = self.factory()
        self.store = SubmissionStore(self.session)
        self.files = FakeObjectStore()

    async def asyncTearDown(self):
        await self.session.close()
        await self.engine.dispose()

    async def _pending(self):
        outcome = await lifecycle.finalize_submission(self.store, OWNER, valid_form())
        return outcome.submission

    async def test_draft_cannot_be_reviewed(self):
        draft = await lifecycle.persist_draft(self.store, OWNER, valid_form())
        with self.assertRaises(Forbidden):
            await review.set_review_status(self.store, self.files, draft.id, "verified")

    async def test_reject_with_reason(self):
        record = await self._pending()
        updated = await review.set_review_status(
            self.store, self.files, record.id, "rejected", reason="Agreement copy unreadable"
        )
        self.assertEqual(updated.status, "rejected")
        self.assertEqual(updated.rejection_reason, "Agreement copy unreadable")
        self.assertIsNotNone(updated.reviewed_at)
        self.assertEqual(self.files.objects, {})

    async def test_discrepancy_then_verified(self):
        record = await self._pending()
        updated = await review.set_review_status(
            self.store, self.files, record.id, "discrepancy", details="Amount differs from ledger"
        )
        self.assertEqual(updated.discrepancy_details, "Amount differs from ledger")

        verified = await review.set_review_status(self.store, self.files, record.id, "verified")
        self.assertEqual(verified.status, "verified")
        self.assertEqual(verified.certificate_number, f"CERT-{record.id[-8:].upper()}")
        self.assertEqual(verified.consent["status"], "pending")
        self.assertEqual(verified.consent["consent_number"], f"CONSENT-{record.id[-8:].upper()}")
        self.assertTrue(verified.consent["blank_pdf_url"].startswith("https://files.test/consents/"))
        [(data, content_type)] = self.files.objects.values()
        self.assertTrue(data.startswith(b"%PDF"))
        self.assertEqual(content_type, "application/pdf")

    async def test_verified_is_final(self):
        record = await self._pending()
        await review.set_review_status(self.store, self.files, record.id, "verified")
        with self.assertRaises(Forbidden):
            await review.set_review_status(self.store, self.files, record.id, "rejected")

    async def test_consent_signing_flow(self):
        record = await self._pending()
        with self.assertRaises(Forbidden):
            await review.upload_investor_consent(
                self.store, self.files, record.id, OWNER, "signed.pdf", "application/pdf", PDF
            )
        await review.set_review_status(self.store, self.files, record.id, "verified")

        with self.assertRaises(Forbidden):
            await review.upload_executed_consent(
                self.store, self.files, record.id, "executed.pdf", "application/pdf", PDF
            )
        with self.assertRaises(UploadRejected):
            await review.upload_investor_consent(
                self.store, self.files, record.id, OWNER, "signed.png", "image/png", PDF
            )

        signed = await review.upload_investor_consent(
            self.store, self.files, record.id, OWNER, "signed.pdf", "application/pdf", PDF
        )
        self.assertEqual(signed.consent["status"], "investor_signed")
        self.assertIsNotNone(signed.consent["investor_signed_pdf_url"])

        executed = await review.upload_executed_consent(
            self.store, self.files, record.id, "executed.pdf", "application/pdf", PDF
        )
        self.assertEqual(executed.consent["status"], "fully_executed")
        self.assertIsNotNone(executed.consent["fully_executed_pdf_url"])

    async def test_certificate_only_when_verified(self):
        record = await self._pending()
        with self.assertRaises(Forbidden):
            await review.certificate_pdf(self.store, record.id, OWNER)
        await review.set_review_status(self.store, self.files, record.id, "verified")
        filename, pdf = await review.certificate_pdf(self.store, record.id, OWNER)
        self.assertEqual(filename, f"CERT-{record.id[-8:].upper()}.pdf")
        self.assertTrue(pdf.startswith(b"%PDF"))


class TestCertificateFormatting(unittest.TestCase):
    def test_format_amount(self):
        self.assertEqual(format_amount("250000"), "250,000.00")
        self.assertEqual(format_amount("1,500.5"), "1,500.50")
        self.assertEqual(format_amount(None), "0.00")
        self.assertEqual(format_amount("nan"), "0.00")

    def test_format_date(self):
        self.assertEqual(format_date("2021-03-15"), "15 Mar 2021")
        self.assertEqual(format_date(None), "N/A")

    def test_render_with_sparse_sections(self):
        class Sparse:
            id = "sub-0000abcd1234"
            certificate_number = None
            court_agreement_number = None
            personal_info = {}
            bank_details = None
            investment_details = {}
            submitted_at = None
            reviewed_at = None

        self.assertTrue(render_certificate(Sparse()).startswith(b"%PDF"))


if __name__ == "__main__":
    unittest.main()
