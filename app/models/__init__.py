"""Models module - Import all models here so create_all sees every table."""
from app.db.base import Base
from app.models.user import User
from app.models.company import Company, CompanyCode
from app.models.quiz import QuizQuestion, QuizParticipant, QuizAttempt

__all__ = ["Base", "User", "Company", "CompanyCode", "QuizQuestion", "QuizParticipant", "QuizAttempt"]
