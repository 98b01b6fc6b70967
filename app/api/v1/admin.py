"""
Administrator endpoints for the quiz: questions, participants, results and mail checks.
"""
import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.dependencies import get_current_admin, get_mail_service
from app.core.quiz import normalize_question, validate_question
from app.core.quiz.timer import utcnow
from app.db.base import get_db
from app.models.quiz import QuizAttempt, QuizParticipant, QuizQuestion
from app.schemas.common import ImportResponse, ImportResults
from app.schemas.participant import ImportParticipantsRequest, Participant, ParticipantUpdate
from app.schemas.quiz import Attempt, Question, QuestionUpdate, SendEmailResponse
from app.services import participant_service
from app.services.mail import MailDeliveryError, MailService
from app.services.question_service import save_question

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(get_current_admin)])


# ============= Questions =============

@router.get("/quiz/questions", response_model=List[Question])
def list_questions(db: Session = Depends(get_db)) -> Any:
    """Get every question, correct answers included, in presentation order."""
    return db.query(QuizQuestion).order_by(QuizQuestion.order.asc(), QuizQuestion.id.asc()).all()


@router.get("/quiz/questions/{question_id}", response_model=Question)
def get_question(question_id: str, db: Session = Depends(get_db)) -> Any:
    question = db.get(QuizQuestion, question_id)
    if not question:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Question not found")
    return question


@router.put("/quiz/questions/{question_id}", response_model=Question)
def put_question(question_id: str, body: QuestionUpdate, db: Session = Depends(get_db)) -> Any:
    """
    Create or update a question.

    The question is normalized and validated the same way as a bulk import.

    Raises:
        HTTPException: 400 with every validation message when the question is invalid
    """
    normalized = normalize_question({**body.model_dump(by_alias=True), "id": question_id})
    validation = validate_question(normalized)
    if not validation["valid"]:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="; ".join(validation["errors"]))

    return save_question(db, question_id, normalized)


# ============= Participants =============

@router.get("/quiz/participants", response_model=List[Participant])
def list_participants(db: Session = Depends(get_db)) -> Any:
    return db.query(QuizParticipant).order_by(QuizParticipant.email.asc()).all()


@router.put("/quiz/participants/{email}", response_model=Participant)
def put_participant(email: str, body: ParticipantUpdate, db: Session = Depends(get_db)) -> Any:
    """
    Create or edit a participant. Fields left out of the body keep their value.
    """
    if not participant_service.normalize_email(email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email is required")
    return participant_service.save_participant(db, email, body.model_dump(exclude_unset=True))


@router.post("/quiz/participants/import", response_model=ImportResponse)
def import_participants(body: ImportParticipantsRequest, db: Session = Depends(get_db)) -> Any:
    """
    Import participants from structured rows or from CSV text.

    CSV lines read ``email,firstName,lastName,phone,birthDate,address,postalCode``.
    """
    if body.participants:
        rows = [p.model_dump() for p in body.participants]
    elif body.csv and body.csv.strip():
        rows = participant_service.parse_participants_csv(body.csv)
    else:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Provide participants or csv")

    results = participant_service.import_participants(db, rows)
    return ImportResponse(
        success=True,
        results=ImportResults(**results),
        message=f"{results['success']} participants imported, {results['failed']} failed",
    )


@router.post("/quiz/participants/{email}/allow-retry", response_model=Participant)
def allow_retry(email: str, db: Session = Depends(get_db)) -> Any:
    """Grant the participant one more attempt."""
    participant = participant_service.allow_retry(db, email)
    if participant is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Participant not found")
    return participant


# ============= Results =============

@router.get("/quiz/attempts", response_model=List[Attempt])
def list_attempts(
    passed: Optional[bool] = None,
    limit: int = Query(default=100, ge=1, le=1000),
    include_in_progress: bool = Query(default=False, alias="includeInProgress"),
    db: Session = Depends(get_db),
) -> Any:
    """
    Get attempts, newest first. Poll this endpoint to follow results as they come in.

    Args:
        passed: Only passed (true) or failed (false) attempts
        limit: Maximum number of attempts returned
        include_in_progress: Also return attempts that are not completed yet
    """
    query = db.query(QuizAttempt)
    if not include_in_progress:
        query = query.filter(QuizAttempt.completed_at.isnot(None))
    if passed is not None:
        query = query.filter(QuizAttempt.passed.is_(passed))
    return query.order_by(QuizAttempt.started_at.desc()).limit(limit).all()


@router.post("/quiz/test-email", response_model=SendEmailResponse)
async def send_test_email(mailer: MailService = Depends(get_mail_service)) -> Any:
    """
    Send a sample result notification to check the mail configuration.
    """
    try:
        message_id = await mailer.send_quiz_results(
            participant_email="test@example.com",
            score=70,
            total=80,
            percentage=87.5,
            passed=True,
            time_spent_seconds=1200,
            completed_at=utcnow(),
        )
    except MailDeliveryError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    return SendEmailResponse(success=True, message_id=message_id)
