from sqlalchemy import Column, DateTime, Integer, String, func

from database import Base


class Investor(Base):
    __tablename__ = "investors"

    id = Column(String(64), primary_key=True, index=True)
    full_name = Column(String(256), nullable=False)
    email = Column(String(256), nullable=True)
    phone = Column(String(32), unique=True, nullable=False, index=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class OtpCode(Base):
    __tablename__ = "otp_codes"

    id = Column(String(64), primary_key=True, index=True)
    phone = Column(String(32), nullable=False, index=True)
    purpose = Column(String(16), nullable=False, default="login")
    code_hash = Column(String(64), nullable=False)
    attempts = Column(Integer, nullable=False, default=0)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    consumed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
