"""
Phone OTP login/registration and session tokens.
Run from project root: python -m pytest tests/test_auth.py -v
"""
import unittest
from datetime import datetime, timedelta, timezone

import jwt
from sqlalchemy import select

from config import settings
from models import OtpCode
from services import auth
from services.errors import AuthError, Forbidden, NotFound
from support import CapturingOtpSender, memory_session_factory

PHONE = "+971 50-123 4567"
NORMALIZED = "+971501234567"


class TestPhoneAndTokens(unittest.TestCase):
    def test_normalize_phone(self):
        self.assertEqual(auth.normalize_phone(PHONE), NORMALIZED)
        self.assertEqual(auth.normalize_phone("0501234567"), "0501234567")
        with self.assertRaises(AuthError):
            auth.normalize_phone("12-34")

    def test_token_round_trip(self):
        token = auth.issue_token("inv-abc")
        self.assertEqual(auth.decode_token(token), "inv-abc")

    def test_tampered_token(self):
        token = jwt.encode({"sub": "inv-abc"}, "another-secret", algorithm="HS256")
        with self.assertRaises(AuthError):
            auth.decode_token(token)

    def test_expired_token(self):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode(
            {"sub": "inv-abc", "iat": past, "exp": past + timedelta(minutes=1)},
            settings.jwt_secret,
            algorithm="HS256",
        )
        with self.assertRaises(AuthError) as ctx:
            auth.decode_token(token)
        self.assertIn("expired", ctx.exception.message)


class TestOtpFlow(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.engine, self.factory = await memory_session_factory()
        self.session = self.factory()
        self.sender = CapturingOtpSender()

    async def asyncTearDown(self):
        await self.session.close()
        await self.engine.dispose()

    async def _register(self):
        await auth.request_otp(self.session, PHONE, "register", self.sender)
        return await auth.register(self.session, "Jane Doe", "jane@x.com", PHONE, self.sender.last_code)

    async def test_login_unknown_phone(self):
        with self.assertRaises(NotFound):
            await auth.request_otp(self.session, PHONE, "login", self.sender)
        self.assertEqual(self.sender.sent, [])

    async def test_register_then_login(self):
        token, investor = await self._register()
        self.assertEqual(investor.phone, NORMALIZED)
        self.assertEqual(auth.decode_token(token), investor.id)

        await auth.request_otp(self.session, PHONE, "login", self.sender)
        phone, code, purpose = self.sender.sent[-1]
        self.assertEqual((phone, purpose), (NORMALIZED, "login"))
        self.assertRegex(code, r"^\d{6}$")

        token, same = await auth.verify_otp(self.session, PHONE, code)
        self.assertEqual(same.id, investor.id)
        self.assertIsNotNone(same.last_login_at)

    async def test_register_twice_is_forbidden(self):
        await self._register()
        with self.assertRaises(Forbidden):
            await auth.request_otp(self.session, PHONE, "register", self.sender)

    async def test_code_is_single_use(self):
        await self._register()
        await auth.request_otp(self.session, PHONE, "login", self.sender)
        code = self.sender.last_code
        await auth.verify_otp(self.session, PHONE, code)
        with self.assertRaises(AuthError):
            await auth.verify_otp(self.session, PHONE, code)

    async def test_new_code_replaces_old_one(self):
        await self._register()
        await auth.request_otp(self.session, PHONE, "login", self.sender)
        old = self.sender.last_code
        await auth.request_otp(self.session, PHONE, "login", self.sender)
        new = self.sender.last_code
        if old != new:
            with self.assertRaises(AuthError):
                await auth.verify_otp(self.session, PHONE, old)
        await auth.verify_otp(self.session, PHONE, new)

    async def test_code_is_not_stored_in_clear(self):
        await auth.request_otp(self.session, PHONE, "register", self.sender)
        otp = (await self.session.execute(select(OtpCode))).scalar_one()
        self.assertNotEqual(otp.code_hash, self.sender.last_code)
        self.assertEqual(len(otp.code_hash), 64)

    async def test_wrong_code_counts_attempts(self):
        await self._register()
        await auth.request_otp(self.session, PHONE, "login", self.sender)
        code = self.sender.last_code
        wrong = "000000" if code != "000000" else "111111"
        for _ in range(settings.otp_max_attempts):
            with self.assertRaises(AuthError):
                await auth.verify_otp(self.session, PHONE, wrong)

        with self.assertRaises(AuthError) as ctx:
            await auth.verify_otp(self.session, PHONE, code)
        self.assertIn("Too many attempts", ctx.exception.message)

    async def test_expired_code(self):
        await self._register()
        await auth.request_otp(self.session, PHONE, "login", self.sender)
        result = await self.session.execute(
            select(OtpCode).where(OtpCode.purpose == "login", OtpCode.consumed_at.is_(None))
        )
        otp = result.scalar_one()
        otp.expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)
        await self.session.flush()
        with self.assertRaises(AuthError):
            await auth.verify_otp(self.session, PHONE, self.sender.last_code)


if __name__ == "__main__":
    unittest.main()
