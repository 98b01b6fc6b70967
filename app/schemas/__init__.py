"""Schemas module - Import all schemas."""
from app.schemas.user import User, Token, CheckEmailRequest, CheckEmailResponse
from app.schemas.quiz import (
    Question,
    QuestionUpdate,
    PublicQuestion,
    ImportQuestionsRequest,
    AnswerItem,
    Attempt,
    AttemptState,
    StartQuizResponse,
    CompleteAttemptResponse,
    SendResultsEmailRequest,
)
from app.schemas.participant import Participant, ParticipantUpdate, ImportParticipantsRequest
from app.schemas.company import (
    Company,
    CompanyCreate,
    CompanyUpdate,
    CompanyCode,
    VerifyCodeRequest,
    VerifyCodeResponse,
    MarkCodeUsedRequest,
    SendCompanyCodesRequest,
    SendCompanyCodesResponse,
)
from app.schemas.common import ErrorResponse, SuccessResponse, ImportResults, ImportResponse

__all__ = [
    "User",
    "Token",
    "CheckEmailRequest",
    "CheckEmailResponse",
    "Question",
    "QuestionUpdate",
    "PublicQuestion",
    "ImportQuestionsRequest",
    "AnswerItem",
    "Attempt",
    "AttemptState",
    "StartQuizResponse",
    "CompleteAttemptResponse",
    "SendResultsEmailRequest",
    "Participant",
    "ParticipantUpdate",
    "ImportParticipantsRequest",
    "Company",
    "CompanyCreate",
    "CompanyUpdate",
    "CompanyCode",
    "VerifyCodeRequest",
    "VerifyCodeResponse",
    "MarkCodeUsedRequest",
    "SendCompanyCodesRequest",
    "SendCompanyCodesResponse",
    "ErrorResponse",
    "SuccessResponse",
    "ImportResults",
    "ImportResponse",
]
