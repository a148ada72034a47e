"""
Phone OTP authentication and session tokens.

Codes are six digits, stored only as a salted sha256 hash, expire after
OTP_TTL_SECONDS and are single-use. Delivery is delegated to an OtpSender;
the default one only logs the code, SMS delivery is plugged in by deployments.
"""
from __future__ import annotations

import hashlib
import hmac
import logging
import re
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol

import jwt
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from models import Investor, OtpCode
from services.errors import AuthError, Forbidden, NotFound

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
MSG_INVALID_OTP = "Invalid or expired OTP"


class OtpSender(Protocol):
    async def send(self, phone: str, code: str, purpose: str) -> None:
        ...


class LoggingOtpSender:
    async def send(self, phone: str, code: str, purpose: str) -> None:
        logger.info("OTP for %s (%s): %s", phone, purpose, code)


def normalize_phone(phone: str) -> str:
    """'+971 50-123 4567' -> '+971501234567'."""
    phone = (phone or "").strip()
    digits = re.sub(r"\D", "", phone)
    if not 6 <= len(digits) <= 15:
        raise AuthError("Invalid phone number")
    return f"+{digits}" if phone.startswith("+") else digits


def _hash_code(phone: str, code: str) -> str:
    return hashlib.sha256(f"{settings.jwt_secret}:{phone}:{code}".encode()).hexdigest()


def _aware(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


async def find_investor(session: AsyncSession, phone: str) -> Optional[Investor]:
    result = await session.execute(select(Investor).where(Investor.phone == phone))
    return result.scalar_one_or_none()


async def get_investor(session: AsyncSession, investor_id: str) -> Investor:
    result = await session.execute(select(Investor).where(Investor.id == investor_id))
    investor = result.scalar_one_or_none()
    if investor is None:
        raise AuthError("Account no longer exists")
    return investor


async def request_otp(session: AsyncSession, phone: str, purpose: str, sender: OtpSender) -> None:
    phone = normalize_phone(phone)
    investor = await find_investor(session, phone)
    if purpose == "login" and investor is None:
        raise NotFound("No account found for this phone number")
    if purpose == "register" and investor is not None:
        raise Forbidden("This phone number is already registered")

    now = datetime.now(timezone.utc)
    await session.execute(
        update(OtpCode)
        .where(OtpCode.phone == phone, OtpCode.purpose == purpose, OtpCode.consumed_at.is_(None))
        .values(consumed_at=now)
    )
    code = f"{secrets.randbelow(10**6):06d}"
    session.add(OtpCode(
        id=f"otp-{uuid.uuid4().hex[:12]}",
        phone=phone,
        purpose=purpose,
        code_hash=_hash_code(phone, code),
        attempts=0,
        expires_at=now + timedelta(seconds=settings.otp_ttl_seconds),
        created_at=now,
    ))
    await session.flush()
    await sender.send(phone, code, purpose)
    logger.info("OTP issued for %s (%s)", phone, purpose)


async def _consume_otp(session: AsyncSession, phone: str, code: str, purpose: str) -> None:
    result = await session.execute(
        select(OtpCode)
        .where(OtpCode.phone == phone, OtpCode.purpose == purpose, OtpCode.consumed_at.is_(None))
        .order_by(OtpCode.created_at.desc())
        .limit(1)
    )
    otp = result.scalar_one_or_none()
    now = datetime.now(timezone.utc)
    if otp is None or _aware(otp.expires_at) < now:
        raise AuthError(MSG_INVALID_OTP)
    if otp.attempts >= settings.otp_max_attempts:
        raise AuthError("Too many attempts, please request a new OTP")
    if not hmac.compare_digest(otp.code_hash, _hash_code(phone, code)):
        otp.attempts += 1
        # The request fails, but the attempt must still count.
        await session.commit()
        raise AuthError(MSG_INVALID_OTP)
    otp.consumed_at = now
    await session.flush()


async def verify_otp(session: AsyncSession, phone: str, code: str) -> tuple[str, Investor]:
    phone = normalize_phone(phone)
    await _consume_otp(session, phone, code, "login")
    investor = await find_investor(session, phone)
    if investor is None:
        raise NotFound("No account found for this phone number")
    investor.last_login_at = datetime.now(timezone.utc)
    await session.flush()
    return issue_token(investor.id), investor


async def register(
    session: AsyncSession,
    full_name: str,
    email: Optional[str],
    phone: str,
    code: str,
) -> tuple[str, Investor]:
    phone = normalize_phone(phone)
    await _consume_otp(session, phone, code, "register")
    if await find_investor(session, phone) is not None:
        raise Forbidden("This phone number is already registered")
    now = datetime.now(timezone.utc)
    investor = Investor(
        id=f"inv-{uuid.uuid4().hex[:12]}",
        full_name=full_name.strip(),
        email=(email or "").strip() or None,
        phone=phone,
        last_login_at=now,
        created_at=now,
    )
    session.add(investor)
    await session.flush()
    logger.info("Investor %s registered", investor.id)
    return issue_token(investor.id), investor


def issue_token(investor_id: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": investor_id,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_ttl_minutes),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> str:
    """Return the investor id carried by a valid token."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise AuthError("Session expired, please log in again") from e
    except jwt.PyJWTError as e:
        raise AuthError("Invalid token") from e
    sub = payload.get("sub")
    if not sub:
        raise AuthError("Invalid token")
    return sub
