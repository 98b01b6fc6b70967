"""
Companies and their single-use access codes.

A code is redeemed during account creation. Redemption marks the code used and
consumes one company credit inside a single transaction, so the two writes
either both land or neither does.
"""
import logging
import random
import re
import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.models.company import Company, CompanyCode

logger = logging.getLogger(__name__)

# Letters only, without the ambiguous I and O
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ"
CODE_LENGTH = 7
MAX_CODE_GENERATION_TRIES = 10

_SEPARATORS = re.compile(r"[\s\-]+")


def generate_company_code() -> str:
    """Random code in the ``XXX-XX-XX`` format, e.g. ``DTR-XG-YS``."""
    part1 = "".join(random.choices(CODE_ALPHABET, k=3))
    part2 = "".join(random.choices(CODE_ALPHABET, k=2))
    part3 = "".join(random.choices(CODE_ALPHABET, k=2))
    return f"{part1}-{part2}-{part3}"


def normalize_code(code: str) -> str:
    """Upper-case a code and strip whitespace and dashes; the result is the code ID."""
    return _SEPARATORS.sub("", (code or "").upper())


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _not_found(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


# ============= Companies =============

def get_company(db: Session, company_id: str) -> Company:
    company = db.query(Company).filter(Company.id == company_id).first()
    if not company:
        raise _not_found("Company not found")
    return company


def create_company(db: Session, data: Dict[str, Any]) -> Company:
    company = Company(
        id=f"company-{int(time.time() * 1000)}",
        name=data["name"],
        contact_email=data.get("contact_email"),
        contact_name=data.get("contact_name"),
        notes=data.get("notes"),
        credits=data.get("credits") or 0,
        used_credits=0,
        status=data.get("status") or "active",
    )
    db.add(company)
    db.commit()
    db.refresh(company)
    logger.info(f"Company {company.id} created with {company.credits} credits")
    return company


def update_company(db: Session, company_id: str, updates: Dict[str, Any]) -> Company:
    company = get_company(db, company_id)
    for field in ("name", "contact_email", "contact_name", "notes", "credits", "status"):
        if field in updates and updates[field] is not None:
            setattr(company, field, updates[field])
    db.commit()
    db.refresh(company)
    return company


def add_credits(db: Session, company_id: str, amount: int) -> Company:
    company = get_company(db, company_id)
    company.credits = (company.credits or 0) + amount  # type: ignore
    db.commit()
    db.refresh(company)
    logger.info(f"Added {amount} credits to company {company_id}")
    return company


# ============= Codes =============

def _parse_emails(emails: Union[str, Iterable[str]]) -> List[str]:
    candidates = emails.split("\n") if isinstance(emails, str) else list(emails)
    return [e.strip() for e in candidates if e and "@" in e.strip()]


def generate_codes(
    db: Session,
    company_id: str,
    emails: Union[str, Iterable[str]],
    created_by: Optional[str] = None,
) -> List[Dict[str, str]]:
    """
    Generate one unique code per email.

    Args:
        db: Database session
        company_id: Owning company
        emails: Newline-separated text or a list; entries without ``@`` are ignored
        created_by: ID of the admin creating the codes

    Returns:
        List of ``{"code", "email", "codeId"}``
    """
    email_list = _parse_emails(emails)
    if not email_list:
        raise _bad_request("No valid email provided")

    get_company(db, company_id)

    created: List[Dict[str, str]] = []
    reserved = set()
    for email in email_list:
        code = code_id = None
        for _ in range(MAX_CODE_GENERATION_TRIES):
            candidate = generate_company_code()
            candidate_id = normalize_code(candidate)
            if candidate_id not in reserved and db.get(CompanyCode, candidate_id) is None:
                code, code_id = candidate, candidate_id
                break

        if code is None:
            logger.error(f"Could not generate a unique code after {MAX_CODE_GENERATION_TRIES} tries")
            continue

        reserved.add(code_id)
        db.add(CompanyCode(
            id=code_id,
            code=code,
            company_id=company_id,
            email=email.lower(),
            status="active",
            formation_ids=[],
            created_by=created_by,
        ))
        created.append({"code": code, "email": email, "codeId": code_id})  # type: ignore

    db.commit()
    logger.info(f"Generated {len(created)} codes for company {company_id}")
    return created


def list_codes(db: Session, company_id: str) -> List[CompanyCode]:
    get_company(db, company_id)
    return (
        db.query(CompanyCode)
        .filter(CompanyCode.company_id == company_id)
        .order_by(CompanyCode.created_at.desc())
        .all()
    )


def _check_code_usable(db: Session, code: CompanyCode) -> None:
    if code.status != "active":
        raise _bad_request("This code has already been used or has expired")

    if code.expires_at is not None and _as_utc(code.expires_at) < datetime.now(timezone.utc):  # type: ignore
        code.status = "expired"  # type: ignore
        db.commit()
        logger.info(f"Code {code.id} expired")
        raise _bad_request("This code has expired")


def _check_company_usable(company: Optional[Company]) -> Company:
    if company is None:
        raise _not_found("Company not found")
    if company.status != "active":
        raise _bad_request("The company is not active")
    if company.remaining_credits <= 0:
        raise _bad_request("The company has no credits left")
    return company


def verify_code(db: Session, code: str, email: str) -> Dict[str, Any]:
    """
    Check that a code can be redeemed by ``email``, without consuming it.

    Raises:
        HTTPException: 400 bad format, inactive/expired code, inactive company
            or no credits; 403 code bound to another email; 404 unknown code
            or company
    """
    code_id = normalize_code(code)
    if len(code_id) != CODE_LENGTH:
        raise _bad_request("Invalid code format")

    code_row = db.get(CompanyCode, code_id)
    if code_row is None:
        raise _not_found("Invalid code")

    if code_row.status != "active":
        raise _bad_request("This code has already been used or has expired")

    if code_row.email and code_row.email.lower() != (email or "").strip().lower():  # type: ignore
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="This code is not valid for this email")

    _check_code_usable(db, code_row)

    company = _check_company_usable(db.get(Company, code_row.company_id))

    return {
        "valid": True,
        "companyId": company.id,
        "codeId": code_row.id,
        "companyName": company.name,
    }


def redeem_code(db: Session, code_id: str, user_id: str, formation_ids: Optional[List[str]] = None) -> CompanyCode:
    """
    Mark a code used by ``user_id`` and consume one company credit atomically.

    Both rows are locked for the duration of the transaction; any failure
    rolls back both writes.
    """
    try:
        code_row = (
            db.query(CompanyCode)
            .filter(CompanyCode.id == normalize_code(code_id))
            .with_for_update()
            .first()
        )
        if code_row is None:
            raise _not_found("Code not found")
        if code_row.status != "active":
            raise _bad_request("Code already used or expired")
        if code_row.expires_at is not None and _as_utc(code_row.expires_at) < datetime.now(timezone.utc):  # type: ignore
            raise _bad_request("This code has expired")

        company = _check_company_usable(
            db.query(Company).filter(Company.id == code_row.company_id).with_for_update().first()
        )

        now = datetime.now(timezone.utc)
        code_row.status = "used"  # type: ignore
        code_row.used_by = str(user_id)  # type: ignore
        code_row.used_at = now  # type: ignore
        code_row.formation_ids = list(formation_ids or [])  # type: ignore
        company.used_credits = (company.used_credits or 0) + 1  # type: ignore

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(code_row)
    logger.info(f"Code {code_row.id} redeemed by user {user_id}")
    return code_row
