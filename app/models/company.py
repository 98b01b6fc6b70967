"""
Company and single-use company access code models.
"""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.base import Base


class Company(Base):
    """Company holding a credit balance for access codes."""

    __tablename__ = "companies"

    id = Column(String(64), primary_key=True, index=True)
    name = Column(String, nullable=False)
    contact_email = Column(String, nullable=True)
    contact_name = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    credits = Column(Integer, nullable=False, default=0)
    used_credits = Column(Integer, nullable=False, default=0)
    status = Column(String, nullable=False, default="active")  # active, inactive

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    codes = relationship("CompanyCode", back_populates="company", cascade="all, delete-orphan")

    @property
    def remaining_credits(self) -> int:
        return (self.credits or 0) - (self.used_credits or 0)  # type: ignore


class CompanyCode(Base):
    """Access code; the ID is the code without separators (7 characters)."""

    __tablename__ = "company_codes"

    id = Column(String(7), primary_key=True, index=True)
    code = Column(String(9), nullable=False)  # XXX-XX-XX
    company_id = Column(String(64), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    email = Column(String(320), nullable=True)
    status = Column(String, nullable=False, default="active")  # active, used, expired
    used_by = Column(String, nullable=True)
    used_at = Column(DateTime(timezone=True), nullable=True)
    formation_ids = Column(JSON, nullable=False, default=list)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    company = relationship("Company", back_populates="codes")
