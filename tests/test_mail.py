import unittest
from datetime import datetime
from unittest.mock import AsyncMock

from app.core.config import Settings
from app.services.mail import MailDeliveryError, MailService, build_connection_config


def make_service() -> MailService:
    conf = Settings(
        MAIL_SUPPRESS_SEND=True,
        MAIL_FROM="quiz@example.org",
        ADMIN_NOTIFICATION_EMAIL="boss@example.org",
        APP_URL="https://learn.example.org/",
    )
    return MailService.from_settings(conf)


def recipient_of(message) -> str:
    recipient = message.recipients[0]
    return getattr(recipient, "email", recipient)


class MailServiceTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.service = make_service()
        self.service._fm.send_message = AsyncMock()

    def test_suppress_send_flag(self) -> None:
        conf = build_connection_config(Settings(MAIL_SUPPRESS_SEND=True))
        self.assertTrue(conf.SUPPRESS_SEND)

    async def test_quiz_results_go_to_admin(self) -> None:
        message_id = await self.service.send_quiz_results(
            participant_email="alice@example.com",
            score=7,
            total=10,
            percentage=70,
            passed=True,
            time_spent_seconds=754,
            completed_at=datetime(2024, 5, 1, 14, 30),
        )

        message = self.service._fm.send_message.await_args.args[0]
        self.assertEqual(recipient_of(message), "boss@example.org")
        self.assertEqual(message.subject, "Quiz result - alice@example.com - Passed")
        self.assertEqual(message.headers["X-Message-Ref"], message_id)
        self.assertTrue(message_id.endswith("@example.org>"))
        self.assertIn("Score: 7 / 10", message.alternative_body)
        self.assertIn("12:34", message.alternative_body)
        self.assertIn("01/05/2024 14:30", message.alternative_body)
        self.assertIn("alice@example.com", message.body)

    async def test_failed_result_subject(self) -> None:
        await self.service.send_quiz_results("bob@example.com", 3, 10, 30, False, 60, "2024-05-01")

        message = self.service._fm.send_message.await_args.args[0]
        self.assertTrue(message.subject.endswith("- Failed"))

    async def test_invalid_participant_email(self) -> None:
        with self.assertRaises(MailDeliveryError):
            await self.service.send_quiz_results("nobody", 1, 1, 100, True, 10)
        self.service._fm.send_message.assert_not_awaited()

    async def test_company_code(self) -> None:
        await self.service.send_company_code("learner@example.com", "DTR-XG-YS", "Acme")

        message = self.service._fm.send_message.await_args.args[0]
        self.assertEqual(recipient_of(message), "learner@example.com")
        self.assertIn("DTR-XG-YS", message.alternative_body)
        self.assertIn("Acme", message.alternative_body)
        self.assertIn("https://learn.example.org/inscription", message.alternative_body)

    async def test_provider_error_is_wrapped(self) -> None:
        self.service._fm.send_message = AsyncMock(side_effect=ConnectionError("smtp unreachable"))

        with self.assertRaises(MailDeliveryError) as ctx:
            await self.service.send_company_code("learner@example.com", "DTR-XG-YS")

        self.assertIn("smtp unreachable", str(ctx.exception))

    def test_html_is_escaped(self) -> None:
        html = self.service.render("company_code.html", {
            "code": "ABC-DE-FG",
            "company_name": "<script>",
            "signup_url": "https://x",
        })
        self.assertIn("&lt;script&gt;", html)


if __name__ == "__main__":
    unittest.main()
