"""
Company administration: companies, credits, access codes and code emailing.
"""
import logging
from typing import Any, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.dependencies import get_current_admin, get_mail_service
from app.db.base import get_db
from app.models.company import Company
from app.models.user import User
from app.schemas.company import (
    AddCreditsRequest,
    Company as CompanySchema,
    CompanyCode as CompanyCodeSchema,
    CompanyCreate,
    CompanyUpdate,
    GenerateCodesRequest,
    GeneratedCode,
    SendCodeResult,
    SendCompanyCodesRequest,
    SendCompanyCodesResponse,
    SendSummary,
)
from app.schemas.user import User as UserSchema
from app.services import company_service
from app.services.mail import MailDeliveryError, MailService

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(get_current_admin)])


@router.post("/send-company-codes", response_model=SendCompanyCodesResponse)
async def send_company_codes(
    body: SendCompanyCodesRequest,
    db: Session = Depends(get_db),
    mailer: MailService = Depends(get_mail_service),
) -> Any:
    """
    Email access codes to learners of a company.

    Every item is sent independently; a bad address or a failed send is
    reported in ``results`` and never stops the batch.

    Raises:
        HTTPException: 404 if the company does not exist
    """
    company = company_service.get_company(db, body.company_id)
    company_name = company.name or ""

    results: List[SendCodeResult] = []
    for item in body.codes:
        if not item.email or not item.code:
            results.append(SendCodeResult(
                email=item.email or "N/A",
                code=item.code or "N/A",
                success=False,
                error="Email or code missing",
            ))
            continue

        if "@" not in item.email:
            results.append(SendCodeResult(email=item.email, code=item.code, success=False, error="Invalid email"))
            continue

        try:
            message_id = await mailer.send_company_code(item.email, item.code, company_name)  # type: ignore
            results.append(SendCodeResult(email=item.email, code=item.code, success=True, message_id=message_id))
        except MailDeliveryError as e:
            results.append(SendCodeResult(email=item.email, code=item.code, success=False, error=str(e)))

    succeeded = sum(1 for r in results if r.success)
    logger.info(f"Company codes sent for {body.company_id}: {succeeded}/{len(body.codes)}")

    return SendCompanyCodesResponse(
        success=True,
        summary=SendSummary(total=len(body.codes), success=succeeded, failed=len(results) - succeeded),
        results=results,
    )


# ============= Companies =============

@router.get("/admin/companies", response_model=List[CompanySchema])
def list_companies(db: Session = Depends(get_db)) -> Any:
    return db.query(Company).order_by(Company.created_at.desc()).all()


@router.post("/admin/companies", response_model=CompanySchema, status_code=status.HTTP_201_CREATED)
def create_company(body: CompanyCreate, db: Session = Depends(get_db)) -> Any:
    return company_service.create_company(db, body.model_dump())


@router.get("/admin/companies/{company_id}", response_model=CompanySchema)
def get_company(company_id: str, db: Session = Depends(get_db)) -> Any:
    return company_service.get_company(db, company_id)


@router.patch("/admin/companies/{company_id}", response_model=CompanySchema)
def update_company(company_id: str, body: CompanyUpdate, db: Session = Depends(get_db)) -> Any:
    return company_service.update_company(db, company_id, body.model_dump(exclude_unset=True))


@router.post("/admin/companies/{company_id}/credits", response_model=CompanySchema)
def add_credits(company_id: str, body: AddCreditsRequest, db: Session = Depends(get_db)) -> Any:
    """Add credits to the company balance."""
    return company_service.add_credits(db, company_id, body.amount)


# ============= Codes =============

@router.post(
    "/admin/companies/{company_id}/codes",
    response_model=List[GeneratedCode],
    status_code=status.HTTP_201_CREATED,
)
def generate_codes(
    company_id: str,
    body: GenerateCodesRequest,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
) -> Any:
    """
    Generate one code per email. Emails may be sent as newline-separated text.
    """
    return company_service.generate_codes(db, company_id, body.emails, created_by=str(current_admin.id))


@router.get("/admin/companies/{company_id}/codes", response_model=List[CompanyCodeSchema])
def list_codes(company_id: str, db: Session = Depends(get_db)) -> Any:
    return company_service.list_codes(db, company_id)


@router.get("/admin/companies/{company_id}/users", response_model=List[UserSchema])
def list_company_users(company_id: str, db: Session = Depends(get_db)) -> Any:
    """Get the accounts attached to a company."""
    company_service.get_company(db, company_id)
    return db.query(User).filter(User.company_id == company_id).order_by(User.created_at.desc()).all()
