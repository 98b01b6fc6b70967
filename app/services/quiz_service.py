"""
Quiz attempt lifecycle: gate check, start, autosave, completion and notification.

An attempt moves not-started -> in-progress -> completed and never leaves the
completed state. Retries are new attempts authorized by the eligibility gate.
"""
import logging
import random
import string
import time
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.quiz import (
    EligibilityChecker,
    calculate_score,
    is_time_expired,
    time_remaining,
    time_spent,
)
from app.core.quiz.timer import DEFAULT_DURATION_SECONDS, utcnow
from app.models.quiz import QuizAttempt, QuizQuestion
from app.services.mail import MailDeliveryError, MailService
from app.services.participant_service import get_participant, normalize_email

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_attempt_id() -> str:
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"attempt_{int(time.time() * 1000)}_{suffix}"


def build_answer_snapshot(questions: List[Dict[str, Any]], answers: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """
    One ``{questionId, answer}`` entry per question, in question order.

    Unanswered questions get a null answer; answers to unknown questions are dropped.
    """
    by_question: Dict[Any, Any] = {}
    for item in answers or []:
        if isinstance(item, dict) and isinstance(item.get("questionId"), (str, int)):
            by_question[item["questionId"]] = item.get("answer")
    return [{"questionId": q["id"], "answer": by_question.get(q["id"])} for q in questions]


class QuizAttemptService:
    """
    Orchestrates a participant's quiz attempts.

    The database session and the mail service are injected; nothing is looked
    up from module globals.
    """

    def __init__(self, db: Session, mailer: MailService, duration_seconds: int = DEFAULT_DURATION_SECONDS):
        self.db = db
        self.mailer = mailer
        self.duration_seconds = duration_seconds
        self.checker = EligibilityChecker()

    # ============= Reads =============

    def list_questions(self) -> List[QuizQuestion]:
        return self.db.query(QuizQuestion).order_by(QuizQuestion.order.asc(), QuizQuestion.id.asc()).all()

    def attempts_for_email(self, email: str) -> List[QuizAttempt]:
        return (
            self.db.query(QuizAttempt)
            .filter(QuizAttempt.email == normalize_email(email))
            .order_by(QuizAttempt.started_at.desc())
            .all()
        )

    def get_attempt(self, attempt_id: str) -> QuizAttempt:
        attempt = self.db.query(QuizAttempt).filter(QuizAttempt.id == attempt_id).first()
        if not attempt:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Attempt not found")
        return attempt

    def remaining_seconds(self, attempt: QuizAttempt) -> int:
        if attempt.is_completed:
            return 0
        return time_remaining(attempt.started_at, self.duration_seconds)  # type: ignore

    # ============= Transitions =============

    def start_attempt(self, email: str) -> QuizAttempt:
        """
        Start a new attempt for an authorized participant.

        Raises:
            HTTPException 403: Email is not in the participant list
            HTTPException 400: No questions yet, or the attempt allowance is used up
        """
        normalized = normalize_email(email)
        participant = get_participant(self.db, normalized)
        if participant is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Your email is not authorized to take this quiz",
            )

        decision = self.checker.check(participant.allowed_attempts, self.attempts_for_email(normalized))  # type: ignore
        if not decision.eligible:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=decision.message)

        if self.db.query(QuizQuestion).count() == 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Questions are not available yet. Please try again later.",
            )

        attempt = QuizAttempt(
            id=generate_attempt_id(),
            email=normalized,
            attempt_number=decision.attempt_number,
            allowed_by_admin=decision.allowed_attempts > 1,
            answers=[],
            started_at=utcnow(),
        )
        self.db.add(attempt)
        self.db.commit()
        self.db.refresh(attempt)

        logger.info(f"Attempt {attempt.id} started for {normalized} (#{attempt.attempt_number})")
        return attempt

    async def autosave(self, attempt_id: str, answers: List[Dict[str, Any]]) -> QuizAttempt:
        """
        Persist the in-progress answer snapshot.

        Completed attempts are returned untouched and an expired attempt is
        auto-submitted; an empty payload then scores the last saved snapshot.
        Write failures are logged and swallowed.
        """
        attempt = self.get_attempt(attempt_id)

        if attempt.is_completed:
            logger.info(f"Ignoring autosave for completed attempt {attempt_id}")
            return attempt

        if is_time_expired(attempt.started_at, self.duration_seconds):  # type: ignore
            logger.info(f"Attempt {attempt_id} ran out of time, auto-submitting")
            return await self.complete(attempt_id, answers or None, auto_submitted=True)

        try:
            attempt.answers = build_answer_snapshot([q.to_dict() for q in self.list_questions()], answers)  # type: ignore
            self.db.commit()
            self.db.refresh(attempt)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error auto-saving attempt {attempt_id}: {e}")
        return attempt

    async def complete(
        self,
        attempt_id: str,
        answers: Optional[List[Dict[str, Any]]] = None,
        auto_submitted: bool = False,
    ) -> QuizAttempt:
        """
        Finalize an attempt: score it, record elapsed time and notify the administrator.

        Args:
            attempt_id: Attempt to complete
            answers: Final answers; the last autosaved snapshot is used when omitted
            auto_submitted: True when triggered by the timer running out

        Raises:
            HTTPException 404: Unknown attempt
            HTTPException 400: Attempt already completed
        """
        attempt = self.get_attempt(attempt_id)
        if attempt.is_completed:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Attempt already completed")

        questions = [q.to_dict() for q in self.list_questions()]
        snapshot = build_answer_snapshot(questions, answers if answers is not None else attempt.answers)  # type: ignore
        result = calculate_score(snapshot, questions)
        completed_at = utcnow()

        attempt.answers = snapshot  # type: ignore
        attempt.score = result["score"]
        attempt.total = result["total"]
        attempt.percentage = result["percentage"]
        attempt.passed = result["passed"]
        attempt.time_spent_seconds = time_spent(attempt.started_at, completed_at)  # type: ignore
        attempt.auto_submitted = auto_submitted  # type: ignore
        attempt.completed_at = completed_at  # type: ignore
        self.db.commit()
        self.db.refresh(attempt)

        logger.info(
            f"Attempt {attempt.id} completed: {result['score']}/{result['total']} "
            f"({result['percentage']}%, {'passed' if result['passed'] else 'failed'})"
        )

        await self.notify_result(attempt)
        return attempt

    async def notify_result(self, attempt: QuizAttempt) -> Optional[str]:
        """Email the result to the administrator. A failed send never fails completion."""
        try:
            return await self.mailer.send_quiz_results(
                participant_email=attempt.email,  # type: ignore
                score=attempt.score,  # type: ignore
                total=attempt.total,  # type: ignore
                percentage=attempt.percentage,  # type: ignore
                passed=attempt.passed,  # type: ignore
                time_spent_seconds=attempt.time_spent_seconds,  # type: ignore
                completed_at=attempt.completed_at,  # type: ignore
            )
        except MailDeliveryError as e:
            logger.error(f"Result notification for attempt {attempt.id} failed: {e}")
            return None
