import logging
from datetime import datetime
from email.utils import make_msgid
from pathlib import Path
from typing import Any, Optional, Union

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType, MultipartSubtypeEnum
from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import SecretStr

from app.core.config import Settings, settings
from app.utils.time import format_duration, format_duration_readable

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"
jinja_env = Environment(
    loader=FileSystemLoader(TEMPLATES_DIR),
    autoescape=select_autoescape(["html", "xml"])
)


class MailDeliveryError(Exception):
    """Raised when a message could not be handed to the mail provider."""


def build_connection_config(conf: Settings = settings) -> ConnectionConfig:
    return ConnectionConfig(
        MAIL_USERNAME=conf.MAIL_USERNAME,
        MAIL_PASSWORD=SecretStr(conf.MAIL_PASSWORD),
        MAIL_FROM=conf.MAIL_FROM,
        MAIL_FROM_NAME=conf.MAIL_FROM_NAME,
        MAIL_SERVER=conf.MAIL_SERVER,
        MAIL_PORT=conf.MAIL_PORT,
        MAIL_STARTTLS=conf.MAIL_STARTTLS,
        MAIL_SSL_TLS=conf.MAIL_SSL_TLS,
        USE_CREDENTIALS=conf.USE_CREDENTIALS,
        VALIDATE_CERTS=conf.VALIDATE_CERTS,
        SUPPRESS_SEND=1 if conf.MAIL_SUPPRESS_SEND else 0,
    )


class MailService:
    """
    Transactional mail sender.

    Built once at application startup and handed to whoever needs it; each
    send renders an HTML body and a plain-text alternative from templates.
    """

    def __init__(self, conf: ConnectionConfig, admin_email: str, app_url: str):
        self._conf = conf
        self._fm = FastMail(conf)
        self.admin_email = admin_email
        self.app_url = app_url.rstrip("/")

    @classmethod
    def from_settings(cls, conf: Settings = settings) -> "MailService":
        return cls(build_connection_config(conf), conf.ADMIN_NOTIFICATION_EMAIL, conf.APP_URL)

    def render(self, template_name: str, context: dict[str, Any]) -> str:
        template = jinja_env.get_template(template_name)
        return template.render(**context)

    async def send_message(self, recipient: str, subject: str, template_base: str, context: dict[str, Any]) -> str:
        """
        Render ``<template_base>.html`` and ``<template_base>.txt`` and send them.

        Returns:
            The Message-ID reference stamped on the outgoing message

        Raises:
            MailDeliveryError: If the provider rejects the message
        """
        message_id = make_msgid(domain=self._conf.MAIL_FROM.split("@")[-1])
        message = MessageSchema(
            subject=subject,
            recipients=[recipient],
            body=self.render(f"{template_base}.html", context),
            alternative_body=self.render(f"{template_base}.txt", context),
            subtype=MessageType.html,
            multipart_subtype=MultipartSubtypeEnum.alternative,
            headers={"X-Message-Ref": message_id},
        )
        try:
            await self._fm.send_message(message)
        except Exception as e:
            logger.error(f"Failed to send '{subject}' to {recipient}: {e}")
            raise MailDeliveryError(str(e)) from e

        logger.info(f"Sent '{subject}' to {recipient} ({message_id})")
        return message_id

    async def send_quiz_results(
        self,
        participant_email: str,
        score: int,
        total: int,
        percentage: Union[int, float],
        passed: bool,
        time_spent_seconds: int,
        completed_at: Optional[Union[str, datetime]] = None,
    ) -> str:
        """Notify the administrator of a participant's result."""
        if not participant_email or "@" not in participant_email:
            raise MailDeliveryError("Invalid participant email")

        if isinstance(completed_at, datetime):
            completed_label = completed_at.strftime("%d/%m/%Y %H:%M")
        else:
            completed_label = completed_at or datetime.now().strftime("%d/%m/%Y %H:%M")

        subject = f"Quiz result - {participant_email} - {'Passed' if passed else 'Failed'}"
        context = {
            "participant_email": participant_email,
            "score": score,
            "total": total,
            "percentage": percentage,
            "passed": passed,
            "time_spent": format_duration(time_spent_seconds),
            "time_spent_readable": format_duration_readable(time_spent_seconds),
            "completed_at": completed_label,
        }
        return await self.send_message(self.admin_email, subject, "quiz_results", context)

    async def send_company_code(self, email: str, code: str, company_name: str = "") -> str:
        """Send a company access code to a learner."""
        context = {
            "code": code,
            "company_name": company_name,
            "signup_url": f"{self.app_url}/inscription",
        }
        return await self.send_message(email, "Your access code for the training platform", "company_code", context)
