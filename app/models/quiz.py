"""
Models for quiz questions, participants and attempts.
"""
from typing import Any, Dict

from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String, Text
from sqlalchemy.sql import func

from app.db.base import Base


class QuizQuestion(Base):
    """Quiz question model."""

    __tablename__ = "quiz_questions"

    id = Column(String(64), primary_key=True, index=True)
    question = Column(Text, nullable=False, default="")
    type = Column(String(32), nullable=False, default="qcm")  # qcm, qcm_multiple, true_false, text
    options = Column(JSON, nullable=False, default=list)
    correct_answer = Column(JSON, nullable=True)  # index, list of indices or boolean
    order = Column(Integer, nullable=False, default=0, index=True)
    explanation = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def to_dict(self) -> Dict[str, Any]:
        """Question in the shape used by the scoring engine."""
        return {
            "id": self.id,
            "question": self.question,
            "type": self.type,
            "options": list(self.options or []),  # type: ignore
            "correctAnswer": self.correct_answer,
            "order": self.order,
            "explanation": self.explanation,
        }


class QuizParticipant(Base):
    """Participant authorized to take the quiz, keyed by normalized email."""

    __tablename__ = "quiz_participants"

    email = Column(String(320), primary_key=True, index=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    birth_date = Column(String, nullable=True)
    address = Column(String, nullable=True)
    postal_code = Column(String, nullable=True)
    allowed_attempts = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class QuizAttempt(Base):
    """One participant's pass through the quiz. Completed iff completed_at is set."""

    __tablename__ = "quiz_attempts"

    id = Column(String(64), primary_key=True, index=True)
    email = Column(String(320), nullable=False, index=True)
    attempt_number = Column(Integer, nullable=False, default=1)
    allowed_by_admin = Column(Boolean, default=False)

    answers = Column(JSON, nullable=False, default=list)  # [{questionId, answer}]

    started_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    score = Column(Integer, nullable=True)
    total = Column(Integer, nullable=True)
    percentage = Column(Integer, nullable=True)
    passed = Column(Boolean, nullable=True)
    time_spent_seconds = Column(Integer, nullable=True)
    auto_submitted = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None
