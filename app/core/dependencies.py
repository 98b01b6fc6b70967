"""
Dependency injection for FastAPI endpoints.
"""
from typing import Optional, cast

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import decode_token
from app.db.base import get_db
from app.models.user import User
from app.services.mail import MailService
from app.services.quiz_service import QuizAttemptService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_PREFIX}/auth/login")


def get_current_user(
    db: Session = Depends(get_db), token: str = Depends(oauth2_scheme)
) -> User:
    """
    Get current authenticated user from JWT token.

    Args:
        db: Database session
        token: JWT token

    Returns:
        Current user

    Raises:
        HTTPException: If token is invalid or user not found
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_token(token)
    if payload is None:
        raise credentials_exception

    user_id: Optional[str] = payload.get("sub")
    if user_id is None or not str(user_id).isdigit():
        raise credentials_exception

    user = db.query(User).filter(User.id == int(user_id)).first()
    if user is None or not cast(bool, user.is_active):
        raise credentials_exception

    return user


def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    """
    Require the authenticated user to carry the admin flag.

    Raises:
        HTTPException: 401 if the user is not an administrator
    """
    if not cast(bool, current_user.is_admin):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Administrator access required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return current_user


def get_mail_service(request: Request) -> MailService:
    """Mail service built at startup and held on the application state."""
    return request.app.state.mail_service


def get_quiz_service(
    db: Session = Depends(get_db), mailer: MailService = Depends(get_mail_service)
) -> QuizAttemptService:
    return QuizAttemptService(db, mailer, duration_seconds=settings.QUIZ_DURATION_SECONDS)
