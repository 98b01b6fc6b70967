"""
API endpoints for taking the quiz: email gating, attempts, autosave, completion and results.
"""
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.dependencies import get_mail_service, get_quiz_service
from app.core.config import settings
from app.core.quiz import format_time
from app.db.base import get_db
from app.services.mail import MailDeliveryError, MailService
from app.services.question_service import import_questions
from app.services.quiz_service import QuizAttemptService
from app.schemas.common import ImportResponse, ImportResults
from app.schemas.quiz import (
    Attempt,
    AttemptState,
    AutosaveRequest,
    CheckAttemptsResponse,
    CompleteAttemptRequest,
    CompleteAttemptResponse,
    EmailRequest,
    ImportQuestionsRequest,
    PublicQuestion,
    SendEmailResponse,
    SendResultsEmailRequest,
    StartQuizResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _attempt_state(service: QuizAttemptService, attempt) -> AttemptState:
    remaining = service.remaining_seconds(attempt)
    return AttemptState(
        attempt=Attempt.model_validate(attempt),
        remaining_seconds=remaining,
        remaining_label=format_time(remaining),
        expired=not attempt.is_completed and remaining == 0,
    )


# ============= Questions =============

@router.get("/questions", response_model=list[PublicQuestion])
def get_questions(service: QuizAttemptService = Depends(get_quiz_service)) -> Any:
    """
    Get the quiz questions in presentation order.
    Correct answers and explanations are not included.
    """
    return service.list_questions()


@router.post("/import-questions", response_model=ImportResponse)
def import_quiz_questions(body: ImportQuestionsRequest, db: Session = Depends(get_db)) -> Any:
    """
    Import questions from a JSON array.

    Each question is normalized then validated; an invalid question is
    reported in ``results.errors`` without aborting the others.
    """
    results = import_questions(db, body.questions)
    return ImportResponse(success=True, results=ImportResults(**results))


# ============= Attempts =============

@router.post("/check-attempts", response_model=CheckAttemptsResponse)
def check_attempts(body: EmailRequest, service: QuizAttemptService = Depends(get_quiz_service)) -> Any:
    """
    List every attempt made with an email, newest first.
    """
    return CheckAttemptsResponse(
        attempts=[Attempt.model_validate(a) for a in service.attempts_for_email(body.email)]
    )


@router.post("/start", response_model=StartQuizResponse, status_code=status.HTTP_201_CREATED)
def start_quiz(body: EmailRequest, service: QuizAttemptService = Depends(get_quiz_service)) -> Any:
    """
    Start an attempt for an authorized participant.

    The participant must be in the participant list and have attempts left;
    only completed attempts count against the allowance.
    """
    attempt = service.start_attempt(body.email)
    return StartQuizResponse(
        attempt=Attempt.model_validate(attempt),
        questions=[PublicQuestion.model_validate(q) for q in service.list_questions()],
        duration_seconds=service.duration_seconds,
        remaining_seconds=service.remaining_seconds(attempt),
        autosave_interval_seconds=settings.AUTOSAVE_INTERVAL_SECONDS,
    )


@router.get("/attempts/{attempt_id}", response_model=AttemptState)
def get_attempt(attempt_id: str, service: QuizAttemptService = Depends(get_quiz_service)) -> Any:
    """
    Get an attempt with its remaining time.
    """
    return _attempt_state(service, service.get_attempt(attempt_id))


@router.put("/attempts/{attempt_id}/answers", response_model=AttemptState)
async def autosave_answers(
    attempt_id: str,
    body: AutosaveRequest,
    service: QuizAttemptService = Depends(get_quiz_service),
) -> Any:
    """
    Save the current answers of an in-progress attempt.

    Clients call this every ``autosaveIntervalSeconds`` while answers exist.
    Once the timer has run out the attempt is submitted automatically.
    """
    answers = [a.model_dump(by_alias=True) for a in body.answers]
    attempt = await service.autosave(attempt_id, answers)
    return _attempt_state(service, attempt)


@router.post("/attempts/{attempt_id}/complete", response_model=CompleteAttemptResponse)
async def complete_attempt(
    attempt_id: str,
    body: CompleteAttemptRequest,
    service: QuizAttemptService = Depends(get_quiz_service),
) -> Any:
    """
    Submit an attempt and get the final score.

    When ``answers`` is omitted the last autosaved answers are scored.
    """
    answers = None if body.answers is None else [a.model_dump(by_alias=True) for a in body.answers]
    attempt = await service.complete(attempt_id, answers)
    return CompleteAttemptResponse(
        attempt_id=attempt.id,  # type: ignore
        score=attempt.score,  # type: ignore
        total=attempt.total,  # type: ignore
        percentage=attempt.percentage,  # type: ignore
        passed=attempt.passed,  # type: ignore
        time_spent_seconds=attempt.time_spent_seconds,  # type: ignore
        completed_at=attempt.completed_at,  # type: ignore
        auto_submitted=attempt.auto_submitted,  # type: ignore
    )


# ============= Notifications =============

@router.post("/send-results-email", response_model=SendEmailResponse)
async def send_results_email(
    body: SendResultsEmailRequest,
    mailer: MailService = Depends(get_mail_service),
) -> Any:
    """
    Send a quiz result notification to the administrator.
    """
    logger.info(f"Result email requested for {body.participant_email}")
    try:
        message_id = await mailer.send_quiz_results(
            participant_email=body.participant_email,
            score=int(body.score),
            total=int(body.total),
            percentage=body.percentage,
            passed=body.passed,
            time_spent_seconds=int(body.time_spent_seconds),
            completed_at=body.completed_at,
        )
    except MailDeliveryError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    return SendEmailResponse(success=True, message_id=message_id)
