"""
Pydantic schemas for quiz questions, attempts and results.
"""
from datetime import datetime
from typing import Any, List, Optional, Union

from pydantic import EmailStr, Field, StrictBool, StrictFloat, StrictInt

from app.schemas.common import CamelModel


class QuestionBase(CamelModel):
    """Question as edited by administrators."""

    question: str = ""
    type: str = "qcm"
    options: List[str] = Field(default_factory=list)
    correct_answer: Any = None
    order: int = 0
    explanation: Optional[str] = None


class QuestionUpdate(QuestionBase):
    """Schema for saving a question."""

    pass


class Question(QuestionBase):
    """Question with its correct answer (admin view)."""

    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PublicQuestion(CamelModel):
    """Question as shown to participants: no correct answer, no explanation."""

    id: str
    question: str
    type: str
    options: List[str] = Field(default_factory=list)
    order: int = 0


class ImportQuestionsRequest(CamelModel):
    """
    Raw questions to import.

    Items are kept loose on purpose: each one is normalized and validated
    individually so a malformed record only fails itself.
    """

    questions: List[Any]


class AnswerItem(CamelModel):
    """A submitted answer: an index, a list of indices, a boolean or free text."""

    question_id: Union[str, int]
    answer: Any = None


class EmailRequest(CamelModel):
    email: EmailStr


class Attempt(CamelModel):
    """Quiz attempt as returned by the API."""

    id: str
    email: str
    attempt_number: int
    allowed_by_admin: bool = False
    answers: List[Any] = Field(default_factory=list)
    started_at: datetime
    completed_at: Optional[datetime] = None
    score: Optional[int] = None
    total: Optional[int] = None
    percentage: Optional[int] = None
    passed: Optional[bool] = None
    time_spent_seconds: Optional[int] = None
    auto_submitted: bool = False


class CheckAttemptsResponse(CamelModel):
    attempts: List[Attempt]


class StartQuizResponse(CamelModel):
    attempt: Attempt
    questions: List[PublicQuestion]
    duration_seconds: int
    remaining_seconds: int
    autosave_interval_seconds: int


class AttemptState(CamelModel):
    """Attempt plus timer state."""

    attempt: Attempt
    remaining_seconds: int
    remaining_label: str
    expired: bool


class AutosaveRequest(CamelModel):
    answers: List[AnswerItem] = Field(default_factory=list)


class CompleteAttemptRequest(CamelModel):
    answers: Optional[List[AnswerItem]] = None


class ScoreResult(CamelModel):
    score: int
    total: int
    percentage: int
    passed: bool


class CompleteAttemptResponse(ScoreResult):
    attempt_id: str
    time_spent_seconds: int
    completed_at: datetime
    auto_submitted: bool = False


class SendResultsEmailRequest(CamelModel):
    """Result notification payload; numbers must be JSON numbers and ``passed`` a boolean."""

    participant_email: str = Field(..., min_length=1)
    score: Union[StrictInt, StrictFloat]
    total: Union[StrictInt, StrictFloat]
    percentage: Union[StrictInt, StrictFloat]
    passed: StrictBool
    time_spent_seconds: Union[StrictInt, StrictFloat]
    completed_at: Optional[str] = None


class SendEmailResponse(CamelModel):
    success: bool
    message_id: Optional[str] = None
