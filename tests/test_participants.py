import unittest

from app.models import QuizParticipant, QuizQuestion
from app.services.participant_service import (
    allow_retry,
    import_participants,
    normalize_email,
    parse_participants_csv,
    save_participant,
)
from app.services.question_service import import_authoring_questions, import_questions
from tests.helpers import DatabaseTestCase


class ParseCsvTests(unittest.TestCase):
    def test_columns_and_defaults(self) -> None:
        rows = parse_participants_csv(" a@example.com , Ann ,Lee\n,skipped\n")

        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["email"], "a@example.com")
        self.assertEqual(rows[0]["first_name"], "Ann")
        self.assertEqual(rows[0]["last_name"], "Lee")
        self.assertEqual(rows[0]["postal_code"], "")
        self.assertEqual(rows[0]["allowed_attempts"], 1)

    def test_normalize_email(self) -> None:
        self.assertEqual(normalize_email("  Foo@Bar.COM "), "foo@bar.com")
        self.assertEqual(normalize_email(None), "")


class ParticipantServiceTests(DatabaseTestCase):
    def test_save_merges_existing(self) -> None:
        save_participant(self.db, "a@example.com", {"first_name": "Ann", "allowed_attempts": 3})
        save_participant(self.db, "A@example.com", {"phone": "0600"})

        participant = self.db.get(QuizParticipant, "a@example.com")
        self.assertEqual((participant.first_name, participant.phone, participant.allowed_attempts), ("Ann", "0600", 3))
        self.assertEqual(self.db.query(QuizParticipant).count(), 1)

    def test_import_counts(self) -> None:
        results = import_participants(self.db, [{"email": "x@example.com"}, {"email": "  "}, {"email": "y@example.com"}])

        self.assertEqual((results["success"], results["failed"]), (2, 1))
        self.assertEqual(self.db.get(QuizParticipant, "x@example.com").allowed_attempts, 1)

    def test_allow_retry_increments(self) -> None:
        save_participant(self.db, "a@example.com", {})

        self.assertEqual(allow_retry(self.db, "a@example.com").allowed_attempts, 2)
        self.assertEqual(allow_retry(self.db, "a@example.com").allowed_attempts, 3)
        self.assertIsNone(allow_retry(self.db, "nobody@example.com"))


class QuestionImportTests(DatabaseTestCase):
    def test_non_object_items_fail(self) -> None:
        results = import_questions(self.db, ["junk", {"question": "Q", "type": "text"}])

        self.assertEqual((results["success"], results["failed"]), (1, 1))
        self.assertEqual(results["errors"][0]["error"], "Question must be an object")

    def test_authoring_format(self) -> None:
        items = [
            {"id": "1", "question": "Vrai ou faux ?", "choices": [{"text": "Vrai", "isCorrect": True}, {"text": "Faux"}]},
            {"id": "2", "question": "Pick two", "type": "multiple",
             "choices": [{"text": "A", "isCorrect": True}, {"text": "B", "isCorrect": True}, {"text": "C"}]},
            {"id": "3", "question": "No choices"},
        ]

        results = import_authoring_questions(self.db, items)

        self.assertEqual((results["success"], results["failed"]), (2, 1))
        self.assertEqual(results["errors"][0]["id"], "3")
        stored = {q.order: q for q in self.db.query(QuizQuestion).all()}
        self.assertEqual(stored[1].type, "true_false")
        self.assertIs(stored[1].correct_answer, True)
        self.assertEqual(stored[2].correct_answer, [0, 1])
        self.assertTrue(stored[2].id.startswith("q_2_"))


if __name__ == "__main__":
    unittest.main()
