"""
backend/fundiconnect/core/email.py

Email Sending Utilities

Handles sending transactional emails for the quote lifecycle:
- New quote received (to the client)
- Quote accepted (to the provider)
- Quote rejected (to the provider)

Emails are a best-effort side effect: callers catch `EmailDeliveryError`
and never let a failed send affect a committed lifecycle change.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import EmailStr
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import From, Mail, To

from fundiconnect.core.config import settings
from fundiconnect.core.exceptions import EmailDeliveryError

# Logger configuration
logger = logging.getLogger(__name__)

# Jinja2 template environment setup
jinja_env: Environment | None = None
template_dir = settings.mail_templates_path
if template_dir.is_dir():
    jinja_env = Environment(
        loader=FileSystemLoader(template_dir),
        autoescape=select_autoescape(["html", "xml"]),
    )
    logger.info(f"Jinja2 environment initialized with templates in: {template_dir}")
else:
    logger.error(f"Template directory not found: {template_dir}")


def _render_template(template_name: str, context: dict[str, Any]) -> str:
    """
    Renders an email template using Jinja2 with provided context.
    Args:
        template_name (str): Name of the template file.
        context (dict[str, Any]): Variables to pass to the template.
    Returns:
        str: Rendered HTML content.
    """
    if not jinja_env:
        logger.error("Jinja2 environment not available")
        raise EmailDeliveryError("Email template environment not initialized")

    template = jinja_env.get_template(template_name)
    full_context = {
        "year": datetime.now().year,
        "company_name": settings.MAIL_FROM_NAME or settings.APP_NAME,
        "app_name": settings.APP_NAME,
        "base_url": str(settings.BASE_URL).rstrip("/"),
        "support_email": str(settings.SUPPORT_EMAIL),
        **context,
    }
    rendered_content = template.render(full_context)
    logger.debug(f"Successfully rendered template: {template_name}")
    return rendered_content


def _post_to_sendgrid(message: Mail) -> Any:
    sg = SendGridAPIClient(settings.SENDGRID_API_KEY)
    return sg.client.mail.send.post(request_body=message.get())


async def _send_email(to_email: EmailStr, subject: str, html_content: str) -> None:
    """
    Sends an email using SendGrid API.
    Args:
        to_email (EmailStr): Recipient's email address.
        subject (str): Email subject line.
        html_content (str): HTML content of the email.
    Raises:
        EmailDeliveryError: Configuration missing or provider rejected the message.
    """
    if not settings.EMAILS_ENABLED:
        logger.warning(
            f"Email sending disabled. Skipping send to {to_email} for subject '{subject}'"
        )
        return

    if not all([settings.SENDGRID_API_KEY, settings.MAIL_FROM]):
        logger.error("SendGrid API Key or MAIL_FROM setting is missing")
        raise EmailDeliveryError("Email service configuration missing")

    message = Mail(
        from_email=From(
            email=str(settings.MAIL_FROM), name=settings.MAIL_FROM_NAME or settings.APP_NAME
        ),
        to_emails=To(str(to_email)),
        subject=subject,
        html_content=html_content,
    )

    try:
        # The SendGrid client is synchronous
        response = await asyncio.to_thread(_post_to_sendgrid, message)
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {str(e)}")
        raise EmailDeliveryError(f"Failed to send email to {to_email}") from e

    logger.info(
        f"Email sent to {to_email} for subject '{subject}' with status code {response.status_code}"
    )
    if response.status_code >= 300:
        logger.error(f"SendGrid API error: Status={response.status_code}, Body={response.body}")
        raise EmailDeliveryError("Failed to send email via provider")


# ---------------------------------------------------
# Email Dispatcher
# ---------------------------------------------------
class EmailDispatcher:
    """Renders and sends the quote lifecycle emails."""

    async def send_new_quote_received(
        self,
        to_email: EmailStr,
        job_title: str,
        provider_name: str,
        amount: float,
        currency: str,
        job_id: Any,
    ) -> None:
        subject = f"New quote for '{job_title}' - {settings.APP_NAME}"
        context = {
            "job_title": job_title,
            "provider_name": provider_name,
            "amount": f"{amount:,.2f}",
            "currency": currency,
            "job_link": f"{str(settings.BASE_URL).rstrip('/')}/jobs/{job_id}",
        }
        html_content = _render_template("new_quote_received.html", context)
        await _send_email(to_email, subject, html_content)
        logger.info(f"New quote email sent to {to_email}")

    async def send_quote_accepted(
        self,
        to_email: EmailStr,
        job_title: str,
        client_name: str,
        amount: float,
        currency: str,
        chat_id: str | None = None,
    ) -> None:
        subject = f"Your quote for '{job_title}' was accepted - {settings.APP_NAME}"
        base_url = str(settings.BASE_URL).rstrip("/")
        context = {
            "job_title": job_title,
            "client_name": client_name,
            "amount": f"{amount:,.2f}",
            "currency": currency,
            "chat_link": f"{base_url}/messages/{chat_id}" if chat_id else None,
        }
        html_content = _render_template("quote_accepted.html", context)
        await _send_email(to_email, subject, html_content)
        logger.info(f"Quote accepted email sent to {to_email}")

    async def send_quote_rejected(
        self,
        to_email: EmailStr,
        job_title: str,
        client_name: str,
    ) -> None:
        subject = f"Update on your quote for '{job_title}' - {settings.APP_NAME}"
        context = {"job_title": job_title, "client_name": client_name}
        html_content = _render_template("quote_rejected.html", context)
        await _send_email(to_email, subject, html_content)
        logger.info(f"Quote rejected email sent to {to_email}")
