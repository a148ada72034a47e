from models.investor import Investor, OtpCode
from models.submission import Submission

__all__ = [
    "Investor",
    "OtpCode",
    "Submission",
]
