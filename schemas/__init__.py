from schemas.auth import LoginRequest, RegisterRequest, SendOtpRequest, VerifyOtpRequest
from schemas.submission import (
    BankDetailsSchema,
    DeclarationSchema,
    DividendHistorySchema,
    DocumentsSchema,
    InvestmentDetailsSchema,
    PaymentMethodSchema,
    PersonalInfoSchema,
    RemarksSchema,
    ReviewStatusUpdate,
    SectionValidationRequest,
    SubmissionForm,
)

__all__ = [
    "LoginRequest",
    "RegisterRequest",
    "SendOtpRequest",
    "VerifyOtpRequest",
    "BankDetailsSchema",
    "DeclarationSchema",
    "DividendHistorySchema",
    "DocumentsSchema",
    "InvestmentDetailsSchema",
    "PaymentMethodSchema",
    "PersonalInfoSchema",
    "RemarksSchema",
    "ReviewStatusUpdate",
    "SectionValidationRequest",
    "SubmissionForm",
]
