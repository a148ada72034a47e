from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_investor, get_otp_sender
from database import get_db
from models import Investor
from schemas.auth import LoginRequest, RegisterRequest, SendOtpRequest, VerifyOtpRequest
from services import auth
from services.auth import OtpSender

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _investor_to_response(i: Investor) -> dict[str, Any]:
    return {
        "id": i.id,
        "fullName": i.full_name,
        "email": i.email,
        "phone": i.phone,
        "lastLoginAt": i.last_login_at.isoformat() if i.last_login_at else None,
    }


@router.post("/send-otp")
async def send_otp(
    body: SendOtpRequest,
    db: AsyncSession = Depends(get_db),
    sender: OtpSender = Depends(get_otp_sender),
):
    await auth.request_otp(db, body.phone, body.purpose, sender)
    return {"success": True, "message": "OTP sent"}


@router.post("/login")
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
    sender: OtpSender = Depends(get_otp_sender),
):
    """Request a login code; same as send-otp with purpose "login"."""
    await auth.request_otp(db, body.phone, "login", sender)
    return {"success": True, "message": "OTP sent"}


@router.post("/verify-otp")
async def verify_otp(body: VerifyOtpRequest, db: AsyncSession = Depends(get_db)):
    token, investor = await auth.verify_otp(db, body.phone, body.otp)
    return {"token": token, "user": _investor_to_response(investor)}


@router.post("/register", status_code=201)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    token, investor = await auth.register(db, body.full_name, body.email, body.phone, body.otp)
    return {"token": token, "user": _investor_to_response(investor)}


@router.get("/me")
async def me(investor: Investor = Depends(get_current_investor)):
    return _investor_to_response(investor)
