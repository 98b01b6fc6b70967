"""
Registration endpoints: account lookup and company access codes.
"""
import logging
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.base import get_db
from app.models.user import User
from app.schemas.common import SuccessResponse
from app.schemas.company import MarkCodeUsedRequest, VerifyCodeRequest, VerifyCodeResponse
from app.schemas.user import CheckEmailRequest, CheckEmailResponse
from app.services import company_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/check-email", response_model=CheckEmailResponse)
def check_email(body: CheckEmailRequest, db: Session = Depends(get_db)) -> Any:
    """
    Check whether an account already exists for an email.

    Args:
        body: Email to look up
        db: Database session

    Returns:
        ``exists`` and the matching ``userId`` when found
    """
    user = db.query(User).filter(User.email == body.email.strip().lower()).first()
    if not user:
        return CheckEmailResponse(exists=False)
    return CheckEmailResponse(exists=True, user_id=user.id)  # type: ignore


@router.post("/verify-company-code", response_model=VerifyCodeResponse)
def verify_company_code(body: VerifyCodeRequest, db: Session = Depends(get_db)) -> Any:
    """
    Check a company access code before account creation.

    The code is upper-cased and stripped of spaces and dashes before lookup.

    Raises:
        HTTPException: 400 bad format or unusable code/company,
            403 code bound to another email, 404 unknown code or company
    """
    return company_service.verify_code(db, body.code, body.email)


@router.post("/mark-code-used", response_model=SuccessResponse)
def mark_code_used(body: MarkCodeUsedRequest, db: Session = Depends(get_db)) -> Any:
    """
    Redeem a code for a newly created account and consume one company credit.
    """
    company_service.redeem_code(db, body.code_id, str(body.user_id), body.formation_ids)
    return SuccessResponse(success=True)
