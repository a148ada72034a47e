from typing import Literal, Optional

from pydantic import BaseModel, Field

OtpPurpose = Literal["login", "register"]


class SendOtpRequest(BaseModel):
    phone: str = Field(..., min_length=6, max_length=20)
    purpose: OtpPurpose = "login"


class LoginRequest(BaseModel):
    phone: str = Field(..., min_length=6, max_length=20)


class VerifyOtpRequest(BaseModel):
    phone: str
    otp: str = Field(..., min_length=6, max_length=6)


class RegisterRequest(BaseModel):
    full_name: str = Field(..., alias="fullName", min_length=1)
    email: Optional[str] = None
    phone: str
    otp: str = Field(..., min_length=6, max_length=6)

    model_config = {"populate_by_name": True}
