from sqlalchemy import JSON, Column, DateTime, String, Text, func

from database import Base


class Submission(Base):
    __tablename__ = "submissions"

    id = Column(String(64), primary_key=True, index=True)
    owner_id = Column(String(64), nullable=False, index=True)
    status = Column(String(32), nullable=False, default="draft", index=True)
    court_agreement_number = Column(String(128), nullable=True, index=True)
    # Form sections (snake_case keys)
    personal_info = Column(JSON, nullable=False, default=dict)
    bank_details = Column(JSON, nullable=False, default=dict)
    investment_details = Column(JSON, nullable=False, default=dict)
    dividend_history = Column(JSON, nullable=False, default=dict)
    documents = Column(JSON, nullable=False, default=dict)
    remarks = Column(JSON, nullable=False, default=dict)
    declaration = Column(JSON, nullable=False, default=dict)
    completed_sections = Column(JSON, nullable=False, default=list)
    # Denormalized copies of section fields used for listing search
    investor_name = Column(String(256), nullable=True, index=True)
    email = Column(String(256), nullable=True)
    phone = Column(String(64), nullable=True)
    reference_number = Column(String(128), nullable=True)
    # Reviewer side
    rejection_reason = Column(Text, nullable=True)
    discrepancy_details = Column(Text, nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    certificate_number = Column(String(32), nullable=True)
    certificate_generated_at = Column(DateTime(timezone=True), nullable=True)
    consent = Column(JSON, nullable=True)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
