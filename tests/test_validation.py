"""
Section validation: required fields, numeric fields, conditional requirements, declaration.
Run from project root: python -m pytest tests/test_validation.py -v
"""
import unittest

from schemas.submission import SubmissionForm
from services.errors import InvalidSectionError
from services.validation import validate_all, validate_section
from support import valid_form


class TestSectionValidation(unittest.TestCase):
    def test_complete_form_passes_every_section(self):
        form = valid_form()
        for section in range(1, 8):
            self.assertEqual(validate_section(section, form), {}, f"section {section}")

    def test_personal_info_missing_country(self):
        """Omitting country yields exactly the country error."""
        form = valid_form(personalInfo={"country": ""})
        self.assertEqual(validate_section(1, form), {"personalInfo.country": "Required"})

    def test_whitespace_counts_as_empty(self):
        form = valid_form(bankDetails={"bankName": "   "})
        self.assertEqual(validate_section(2, form), {"bankDetails.bankName": "Required"})

    def test_blank_form_reports_all_required_fields(self):
        form = SubmissionForm()
        self.assertEqual(
            set(validate_section(1, form)),
            {"personalInfo.fullName", "personalInfo.email", "personalInfo.phone", "personalInfo.country"},
        )
        self.assertEqual(len(validate_section(3, form)), 6)
        self.assertEqual(validate_section(5, form), {})
        self.assertEqual(validate_section(6, form), {})

    def test_amount_must_be_numeric(self):
        form = valid_form(investmentDetails={"amount": "a lot", "annualDividendPercentage": 12.5})
        self.assertEqual(validate_section(3, form), {"investmentDetails.amount": "Must be a number"})

    def test_non_finite_and_underscored_numbers_rejected(self):
        for raw in ("nan", "inf", "-inf", "Infinity", "1_000"):
            form = valid_form(investmentDetails={"amount": raw, "annualDividendPercentage": raw})
            self.assertEqual(
                validate_section(3, form),
                {
                    "investmentDetails.amount": "Must be a number",
                    "investmentDetails.annualDividendPercentage": "Must be a number",
                },
                raw,
            )

    def test_non_finite_float_rejected(self):
        form = valid_form(investmentDetails={"amount": float("inf")})
        self.assertEqual(validate_section(3, form), {"investmentDetails.amount": "Must be a number"})

    def test_amount_with_thousands_separator_is_numeric(self):
        form = valid_form(investmentDetails={"amount": "250,000"})
        self.assertEqual(validate_section(3, form), {})

    def test_cheque_fields_required_when_paid_by_cheque(self):
        form = valid_form(investmentDetails={"paymentMethod": {"paidByCheque": True, "chequeNumber": "000123"}})
        errors = validate_section(3, form, strict_conditional=True)
        self.assertEqual(errors, {"investmentDetails.paymentMethod.chequeDate": "Required when paid by cheque"})

    def test_cheque_fields_not_enforced_when_lenient(self):
        form = valid_form(investmentDetails={"paymentMethod": {"paidByCheque": True}})
        self.assertEqual(validate_section(3, form, strict_conditional=False), {})

    def test_pending_amount_required_when_dividends_pending(self):
        form = valid_form(dividendHistory={"hasPending": True, "pendingAmount": ""})
        self.assertEqual(
            validate_section(4, form, strict_conditional=True),
            {"dividendHistory.pendingAmount": "Required when dividends are pending"},
        )
        form = valid_form(dividendHistory={"hasPending": True, "pendingAmount": "1500"})
        self.assertEqual(validate_section(4, form, strict_conditional=True), {})

    def test_unconfirmed_declaration(self):
        form = valid_form(declaration={"confirmed": False})
        self.assertEqual(
            validate_section(7, form),
            {"declaration.confirmed": "You must confirm the declaration"},
        )

    def test_missing_signature(self):
        form = valid_form(declaration={"signature": ""})
        self.assertEqual(validate_section(7, form), {"declaration.signature": "Signature is required"})

    def test_invalid_section_is_a_usage_error(self):
        with self.assertRaises(InvalidSectionError):
            validate_section(0, SubmissionForm())
        with self.assertRaises(InvalidSectionError):
            validate_section(8, SubmissionForm())

    def test_validate_all_is_union_of_sections(self):
        form = valid_form(personalInfo={"email": ""}, declaration={"confirmed": False})
        self.assertEqual(
            validate_all(form),
            {
                "personalInfo.email": "Required",
                "declaration.confirmed": "You must confirm the declaration",
            },
        )


if __name__ == "__main__":
    unittest.main()
