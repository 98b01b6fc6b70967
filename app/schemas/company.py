"""
Pydantic schemas for companies and access codes.
"""
from datetime import datetime
from typing import Any, List, Optional, Union

from pydantic import Field

from app.schemas.common import CamelModel


class VerifyCodeRequest(CamelModel):
    code: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)


class VerifyCodeResponse(CamelModel):
    valid: bool
    company_id: str
    code_id: str
    company_name: str


class MarkCodeUsedRequest(CamelModel):
    code_id: str = Field(..., min_length=1)
    user_id: Union[str, int]
    formation_ids: Optional[List[Any]] = None


class CodeEmail(CamelModel):
    """Items are checked one by one, so both fields are optional here."""

    email: Optional[str] = None
    code: Optional[str] = None


class SendCompanyCodesRequest(CamelModel):
    company_id: str = Field(..., min_length=1)
    codes: List[CodeEmail] = Field(..., min_length=1)


class SendCodeResult(CamelModel):
    email: str
    code: str
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class SendSummary(CamelModel):
    total: int
    success: int
    failed: int


class SendCompanyCodesResponse(CamelModel):
    success: bool
    summary: SendSummary
    results: List[SendCodeResult]


class CompanyCreate(CamelModel):
    name: str = Field(..., min_length=1)
    contact_email: Optional[str] = None
    contact_name: Optional[str] = None
    notes: Optional[str] = None
    credits: int = Field(default=0, ge=0)
    status: str = "active"


class CompanyUpdate(CamelModel):
    name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_name: Optional[str] = None
    notes: Optional[str] = None
    credits: Optional[int] = Field(default=None, ge=0)
    status: Optional[str] = None


class Company(CamelModel):
    id: str
    name: str
    contact_email: Optional[str] = None
    contact_name: Optional[str] = None
    notes: Optional[str] = None
    credits: int
    used_credits: int
    remaining_credits: int
    status: str
    created_at: Optional[datetime] = None


class AddCreditsRequest(CamelModel):
    amount: int = Field(..., gt=0)


class GenerateCodesRequest(CamelModel):
    """Emails as newline-separated text or a list."""

    emails: Union[str, List[str]]


class GeneratedCode(CamelModel):
    code: str
    email: str
    code_id: str


class CompanyCode(CamelModel):
    id: str
    code: str
    company_id: str
    email: Optional[str] = None
    status: str
    used_by: Optional[str] = None
    used_at: Optional[datetime] = None
    formation_ids: List[Any] = Field(default_factory=list)
    expires_at: Optional[datetime] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
