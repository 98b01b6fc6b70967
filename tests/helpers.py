import unittest
from typing import Any, Dict, List, Optional

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.dependencies import get_mail_service
from app.core.security import create_access_token
from app.db.base import get_db
from app.main import app
from app.models import Base, QuizParticipant, QuizQuestion, User
from app.services.mail import MailDeliveryError

API = "/api/v1"


class FakeMailService:
    """Records messages instead of sending them; fails for addresses in ``fail_for``."""

    def __init__(self, fail_for: Optional[List[str]] = None) -> None:
        self.fail_for = set(fail_for or [])
        self.sent: List[Dict[str, Any]] = []
        self.admin_email = "admin@example.com"

    def _record(self, recipient: str, kind: str, **data: Any) -> str:
        if recipient in self.fail_for:
            raise MailDeliveryError(f"Mail provider rejected {recipient}")
        self.sent.append({"kind": kind, "to": recipient, **data})
        return f"<msg-{len(self.sent)}@test>"

    async def send_quiz_results(self, participant_email, score, total, percentage, passed,
                                time_spent_seconds, completed_at=None) -> str:
        if not participant_email or "@" not in participant_email:
            raise MailDeliveryError("Invalid participant email")
        return self._record(
            participant_email,
            "results",
            score=score,
            total=total,
            percentage=percentage,
            passed=passed,
            time_spent_seconds=time_spent_seconds,
        )

    async def send_company_code(self, email, code, company_name="") -> str:
        return self._record(email, "company_code", code=code, company_name=company_name)


def make_session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return engine, sessionmaker(autocommit=False, autoflush=False, bind=engine)


def add_questions(db, count: int, correct_answer: Any = 0, question_type: str = "qcm") -> List[QuizQuestion]:
    questions = []
    for i in range(count):
        question = QuizQuestion(
            id=f"q{i + 1}",
            question=f"Question {i + 1}",
            type=question_type,
            options=["A", "B", "C"] if question_type in ("qcm", "qcm_multiple") else [],
            correct_answer=correct_answer,
            order=i + 1,
        )
        db.add(question)
        questions.append(question)
    db.commit()
    return questions


def add_participant(db, email: str, allowed_attempts: int = 1) -> QuizParticipant:
    participant = QuizParticipant(email=email, allowed_attempts=allowed_attempts)
    db.add(participant)
    db.commit()
    return participant


class DatabaseTestCase(unittest.TestCase):
    """Fresh in-memory database per test."""

    def setUp(self) -> None:
        self.engine, self.Session = make_session_factory()
        self.db = self.Session()

    def tearDown(self) -> None:
        self.db.close()
        Base.metadata.drop_all(bind=self.engine)
        self.engine.dispose()


class ApiTestCase(DatabaseTestCase):
    """Test client wired to the in-memory database and a fake mail service."""

    def setUp(self) -> None:
        super().setUp()
        self.mailer = FakeMailService()

        def override_get_db():
            db = self.Session()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_mail_service] = lambda: self.mailer
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        super().tearDown()

    def create_user(self, email: str = "admin@example.com", is_admin: bool = True,
                    hashed_password: Optional[str] = None) -> User:
        user = User(email=email, full_name="Admin", hashed_password=hashed_password,
                    is_admin=is_admin, is_active=True)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def auth_headers(self, user: Optional[User] = None) -> Dict[str, str]:
        user = user or self.create_user()
        return {"Authorization": f"Bearer {create_access_token(subject=user.id)}"}
