from __future__ import annotations

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

SubmissionStatus = Literal["draft", "pending", "verified", "rejected", "discrepancy"]
ReviewStatus = Literal["verified", "rejected", "discrepancy"]

# Free-form numeric inputs arrive either as numbers or as the raw text the investor typed.
NumberInput = Optional[Union[float, str]]


class _Section(BaseModel):
    model_config = {"populate_by_name": True, "alias_generator": to_camel}


class PersonalInfoSchema(_Section):
    full_name: Optional[str] = ""
    email: Optional[str] = ""
    phone_code: Optional[str] = "+971"
    phone: Optional[str] = ""
    mobile_code: Optional[str] = "+971"
    mobile: Optional[str] = ""
    country: Optional[str] = ""
    address: Optional[str] = ""
    city: Optional[str] = ""
    state: Optional[str] = ""
    pincode: Optional[str] = ""
    # Derived when the submission is finalized
    full_phone: Optional[str] = None
    full_mobile: Optional[str] = None


class BankDetailsSchema(_Section):
    bank_name: Optional[str] = ""
    account_number: Optional[str] = ""
    account_holder_name: Optional[str] = ""
    branch_name: Optional[str] = ""
    iban: Optional[str] = ""


class PaymentMethodSchema(_Section):
    method: Optional[str] = ""
    paid_by_cheque: bool = False
    cheque_number: Optional[str] = ""
    cheque_date: Optional[str] = ""
    cheque_bank_name: Optional[str] = ""


class InvestmentDetailsSchema(_Section):
    reference_number: Optional[str] = ""
    amount: NumberInput = ""
    investment_date: Optional[str] = ""
    duration: Optional[str] = ""
    annual_dividend_percentage: NumberInput = ""
    dividend_frequency: Optional[str] = ""
    status: Optional[str] = ""
    payment_method: PaymentMethodSchema = Field(default_factory=PaymentMethodSchema)


class DividendHistorySchema(_Section):
    total_received: NumberInput = ""
    last_received_date: Optional[str] = ""
    last_amount: NumberInput = ""
    has_pending: bool = False
    pending_amount: NumberInput = ""


class DocumentsSchema(_Section):
    agreement_copy: Optional[str] = None
    payment_proof: Optional[str] = None
    dividend_receipts: Optional[str] = None
    other_documents: Optional[str] = None


class RemarksSchema(_Section):
    discrepancies: Optional[str] = ""
    additional_details: Optional[str] = ""
    contact_person: Optional[str] = ""


class DeclarationSchema(_Section):
    confirmed: bool = False
    signature: Optional[str] = ""


class SubmissionForm(_Section):
    """The investor-editable part of a submission: all seven sections plus the agreement number."""

    court_agreement_number: Optional[str] = ""
    personal_info: PersonalInfoSchema = Field(default_factory=PersonalInfoSchema)
    bank_details: BankDetailsSchema = Field(default_factory=BankDetailsSchema)
    investment_details: InvestmentDetailsSchema = Field(default_factory=InvestmentDetailsSchema)
    dividend_history: DividendHistorySchema = Field(default_factory=DividendHistorySchema)
    documents: DocumentsSchema = Field(default_factory=DocumentsSchema)
    remarks: RemarksSchema = Field(default_factory=RemarksSchema)
    declaration: DeclarationSchema = Field(default_factory=DeclarationSchema)
    completed_sections: list[int] = Field(default_factory=list)

    @classmethod
    def from_record(cls, record: Any) -> "SubmissionForm":
        """Rebuild the form from a stored Submission row (snake_case JSON columns)."""
        return cls.model_validate({
            "court_agreement_number": record.court_agreement_number or "",
            "personal_info": record.personal_info or {},
            "bank_details": record.bank_details or {},
            "investment_details": record.investment_details or {},
            "dividend_history": record.dividend_history or {},
            "documents": record.documents or {},
            "remarks": record.remarks or {},
            "declaration": record.declaration or {},
            "completed_sections": record.completed_sections or [],
        })


class SectionValidationRequest(BaseModel):
    section: int
    form: SubmissionForm


class ReviewStatusUpdate(BaseModel):
    status: ReviewStatus
    reason: Optional[str] = None
    details: Optional[str] = None
