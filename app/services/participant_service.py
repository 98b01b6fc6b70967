"""
Quiz participant management: lookups, upserts, bulk import and retries.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.quiz import QuizParticipant

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["email", "first_name", "last_name", "phone", "birth_date", "address", "postal_code"]
EDITABLE_FIELDS = ("first_name", "last_name", "phone", "birth_date", "address", "postal_code", "allowed_attempts")


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def get_participant(db: Session, email: str) -> Optional[QuizParticipant]:
    return db.query(QuizParticipant).filter(QuizParticipant.email == normalize_email(email)).first()


def save_participant(db: Session, email: str, data: Dict[str, Any], commit: bool = True) -> QuizParticipant:
    """
    Create or merge-update a participant keyed by normalized email.

    Only fields present in ``data`` are written; others keep their value.
    """
    normalized = normalize_email(data.get("email") or email)
    participant = db.query(QuizParticipant).filter(QuizParticipant.email == normalized).first()
    if participant is None:
        participant = QuizParticipant(email=normalized, allowed_attempts=1)
        db.add(participant)

    for field in EDITABLE_FIELDS:
        if field in data and data[field] is not None:
            setattr(participant, field, data[field])

    if commit:
        db.commit()
        db.refresh(participant)
    return participant


def parse_participants_csv(text: str) -> List[Dict[str, Any]]:
    """
    Parse ``email,firstName,lastName,phone,birthDate,address,postalCode`` lines.

    Blank lines and lines without an email are skipped.
    """
    rows = []
    for line in text.strip().splitlines():
        parts = [p.strip() for p in line.split(",")]
        if not parts or not parts[0]:
            continue
        row: Dict[str, Any] = {column: "" for column in CSV_COLUMNS}
        row.update(dict(zip(CSV_COLUMNS, parts)))
        row["allowed_attempts"] = 1
        rows.append(row)
    return rows


def import_participants(db: Session, rows: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Import participants one by one; a bad row never aborts the batch.

    Returns:
        ``{"success": int, "failed": int, "errors": [{"email", "error"}]}``
    """
    results: Dict[str, Any] = {"success": 0, "failed": 0, "errors": []}

    for row in rows:
        raw_email = row.get("email") if isinstance(row, dict) else None
        email = normalize_email(raw_email)
        if not email:
            results["failed"] += 1
            results["errors"].append({"email": raw_email or "N/A", "error": "Email missing"})
            continue

        try:
            save_participant(db, email, {
                **row,
                "email": email,
                "allowed_attempts": row.get("allowed_attempts") or 1,
            })
            results["success"] += 1
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to import participant {email}: {e}")
            results["failed"] += 1
            results["errors"].append({"email": email, "error": str(e)})

    logger.info(f"Participant import: {results['success']} imported, {results['failed']} failed")
    return results


def allow_retry(db: Session, email: str) -> Optional[QuizParticipant]:
    """Grant one more attempt. Returns None when the participant does not exist."""
    participant = get_participant(db, email)
    if participant is None:
        return None
    participant.allowed_attempts = (participant.allowed_attempts or 1) + 1  # type: ignore
    db.commit()
    db.refresh(participant)
    logger.info(f"Participant {participant.email} now allowed {participant.allowed_attempts} attempts")
    return participant
