"""
PDF rendering for verified submissions: the verification certificate and the
consent document the investor signs. Single-pass canvas drawing on A4; the
input is a stored Submission, nothing is fetched or validated here.
"""
from __future__ import annotations

import io
import math
from datetime import date, datetime, timezone
from typing import Any, Optional

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from config import settings

GOLD = HexColor("#D4AF37")
BLACK = HexColor("#0A0A0A")
GRAY = HexColor("#555555")
LIGHT = HexColor("#F0F0F0")

PAGE_W, PAGE_H = A4
MARGIN = 18 * mm

CONSENT_TERMS = (
    "The investor confirms that the investment details stated in this document are true and complete.",
    "The investor consents to the closure of the investment described above on the terms verified by the company.",
    "Settlement of the verified amount will be made to the bank account registered in the submission.",
    "Upon settlement, the investor releases the company from further claims relating to this investment.",
    "This document becomes effective once signed by the investor and countersigned by the company.",
)


def format_date(value: Any) -> str:
    if not value:
        return "N/A"
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    if isinstance(value, (datetime, date)):
        return value.strftime("%d %b %Y")
    return str(value)


def format_amount(value: Any) -> str:
    try:
        number = float(str(value).replace(",", ""))
    except (TypeError, ValueError):
        return "0.00"
    return f"{number:,.2f}" if math.isfinite(number) else "0.00"


def certificate_number(submission_id: str) -> str:
    return f"CERT-{submission_id[-8:].upper()}"


def consent_number(submission_id: str) -> str:
    return f"CONSENT-{submission_id[-8:].upper()}"


def _text(value: Any) -> str:
    return str(value) if value not in (None, "") else "N/A"


class _Page:
    """Cursor-based drawing helper; `y` moves down the page as content is added."""

    def __init__(self, c: canvas.Canvas):
        self.c = c
        self.y = PAGE_H - 25 * mm

    def border(self) -> None:
        self.c.setStrokeColor(GOLD)
        self.c.setLineWidth(1.2)
        self.c.rect(8 * mm, 8 * mm, PAGE_W - 16 * mm, PAGE_H - 16 * mm)
        self.c.setLineWidth(0.4)
        self.c.rect(10 * mm, 10 * mm, PAGE_W - 20 * mm, PAGE_H - 20 * mm)

    def header(self, title: str, reference: str) -> None:
        c = self.c
        c.setFillColor(GOLD)
        c.setFont("Helvetica-Bold", 20)
        c.drawCentredString(PAGE_W / 2, self.y, settings.company_name.upper())
        self.y -= 6 * mm
        c.setFillColor(BLACK)
        c.setFont("Helvetica", 9)
        c.drawCentredString(PAGE_W / 2, self.y, settings.company_subtitle)
        self.y -= 12 * mm
        c.setFont("Helvetica-Bold", 15)
        c.drawCentredString(PAGE_W / 2, self.y, title)
        self.y -= 7 * mm
        c.setFont("Helvetica", 9)
        c.setFillColor(GRAY)
        c.drawCentredString(PAGE_W / 2, self.y, f"Reference No: {reference}")
        self.y -= 5 * mm
        c.drawCentredString(PAGE_W / 2, self.y, f"Date of Issue: {format_date(datetime.now(timezone.utc))}")
        self.y -= 10 * mm

    def section(self, title: str, rows: list[tuple[str, str]]) -> None:
        c = self.c
        c.setFillColor(LIGHT)
        c.rect(MARGIN, self.y - 2 * mm, PAGE_W - 2 * MARGIN, 7 * mm, stroke=0, fill=1)
        c.setFillColor(BLACK)
        c.setFont("Helvetica-Bold", 10)
        c.drawString(MARGIN + 2 * mm, self.y, title)
        self.y -= 9 * mm
        for label, value in rows:
            c.setFont("Helvetica-Bold", 9)
            c.setFillColor(GRAY)
            c.drawString(MARGIN + 2 * mm, self.y, label)
            c.setFont("Helvetica", 9)
            c.setFillColor(BLACK)
            c.drawString(MARGIN + 60 * mm, self.y, value)
            self.y -= 6 * mm
        self.y -= 4 * mm

    def paragraph(self, text: str, size: int = 9, indent: float = 0) -> None:
        self.c.setFont("Helvetica", size)
        self.c.setFillColor(BLACK)
        width = PAGE_W - 2 * MARGIN - indent
        for line in simpleSplit(text, "Helvetica", size, width):
            self.c.drawString(MARGIN + indent, self.y, line)
            self.y -= size * 0.45 * mm + 2 * mm

    def signature_line(self, label: str, x: float, width: float = 70 * mm) -> None:
        self.c.setStrokeColor(BLACK)
        self.c.setLineWidth(0.5)
        self.c.line(x, self.y, x + width, self.y)
        self.c.setFont("Helvetica", 8)
        self.c.setFillColor(GRAY)
        self.c.drawString(x, self.y - 4 * mm, label)

    def footer(self) -> None:
        c = self.c
        c.setFont("Helvetica", 8)
        c.setFillColor(GRAY)
        c.drawCentredString(PAGE_W / 2, 16 * mm, settings.company_address)
        c.drawCentredString(PAGE_W / 2, 12 * mm, f"{settings.company_email}  |  {settings.company_website}")


def _investor_rows(submission: Any) -> list[tuple[str, str]]:
    info = submission.personal_info or {}
    bank = submission.bank_details or {}
    return [
        ("Investor Name", _text(info.get("full_name"))),
        ("Email", _text(info.get("email"))),
        ("Phone", _text(info.get("full_phone") or info.get("phone"))),
        ("Country", _text(info.get("country"))),
        ("Bank", _text(bank.get("bank_name"))),
        ("Account Holder", _text(bank.get("account_holder_name"))),
    ]


def _investment_rows(submission: Any) -> list[tuple[str, str]]:
    inv = submission.investment_details or {}
    return [
        ("Court Agreement No.", _text(submission.court_agreement_number)),
        ("Reference Number", _text(inv.get("reference_number"))),
        ("Investment Amount", format_amount(inv.get("amount"))),
        ("Investment Date", format_date(inv.get("investment_date"))),
        ("Duration", _text(inv.get("duration"))),
        ("Annual Dividend", f"{_text(inv.get('annual_dividend_percentage'))}%"),
        ("Dividend Frequency", _text(inv.get("dividend_frequency"))),
    ]


def _finish(c: canvas.Canvas, buf: io.BytesIO) -> bytes:
    c.showPage()
    c.save()
    return buf.getvalue()


def render_certificate(submission: Any, verified_at: Optional[datetime] = None) -> bytes:
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    c.setTitle(f"Verification Certificate {certificate_number(submission.id)}")
    page = _Page(c)
    page.border()
    page.header("INVESTMENT VERIFICATION CERTIFICATE", submission.certificate_number or certificate_number(submission.id))
    page.paragraph(
        "This is to certify that the investment described below has been reviewed and verified "
        f"by {settings.company_name} against its records."
    )
    page.y -= 4 * mm
    page.section("INVESTOR INFORMATION", _investor_rows(submission))
    page.section("INVESTMENT DETAILS", _investment_rows(submission))
    page.section("VERIFICATION", [
        ("Status", "VERIFIED"),
        ("Submitted On", format_date(submission.submitted_at)),
        ("Verified On", format_date(verified_at or submission.reviewed_at)),
    ])
    page.y -= 10 * mm
    page.signature_line("Authorized Signatory", MARGIN)
    page.footer()
    return _finish(c, buf)


def render_consent_document(submission: Any) -> bytes:
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    number = consent_number(submission.id)
    c.setTitle(f"Consent Document {number}")
    page = _Page(c)
    page.border()
    page.header("INVESTMENT CONSENT DOCUMENT", number)
    page.section("INVESTOR INFORMATION", _investor_rows(submission))
    page.section("INVESTMENT DETAILS", _investment_rows(submission))

    c.setFont("Helvetica-Bold", 10)
    c.drawString(MARGIN, page.y, "TERMS & CONDITIONS")
    page.y -= 6 * mm
    for i, term in enumerate(CONSENT_TERMS, start=1):
        page.paragraph(f"{i}. {term}", indent=3 * mm)
    page.footer()
    c.showPage()

    # Signatures
    page = _Page(c)
    page.border()
    c.setFont("Helvetica-Bold", 13)
    c.setFillColor(BLACK)
    c.drawCentredString(PAGE_W / 2, page.y, "CONSENT DOCUMENT - SIGNATURES")
    page.y -= 6 * mm
    c.setFont("Helvetica", 9)
    c.drawCentredString(PAGE_W / 2, page.y, f"Reference: {number}")
    page.y -= 14 * mm
    c.setFont("Helvetica-Bold", 10)
    c.drawString(MARGIN, page.y, "INVESTOR DECLARATION & SIGNATURE")
    page.y -= 7 * mm
    name = (submission.personal_info or {}).get("full_name") or "___________________________"
    page.paragraph(
        f"I, {name}, confirm that I have read and understood this consent document and agree to its terms."
    )
    page.y -= 18 * mm
    page.signature_line("Investor Signature", MARGIN)
    page.signature_line("Date", PAGE_W / 2 + 10 * mm, width=50 * mm)
    page.y -= 25 * mm
    c.setFont("Helvetica-Bold", 10)
    c.drawString(MARGIN, page.y, "COMPANY AUTHORIZATION")
    page.y -= 6 * mm
    c.setFont("Helvetica-Oblique", 8)
    c.setFillColor(GRAY)
    c.drawString(MARGIN, page.y, f"For Official Use Only - To be completed by {settings.company_name}")
    page.y -= 20 * mm
    page.signature_line("Authorized Signatory", MARGIN)
    page.signature_line("Company Seal", PAGE_W / 2 + 10 * mm, width=50 * mm)
    page.y -= 18 * mm
    page.signature_line("Designation", MARGIN)
    page.signature_line("Date", PAGE_W / 2 + 10 * mm, width=50 * mm)
    page.footer()
    return _finish(c, buf)
