"""Email delivery for bookmark reminders through the Resend REST API."""
import html
import logging
from dataclasses import dataclass

import httpx

from core.config import get_settings

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"
SEND_TIMEOUT = 10.0


class NotificationError(Exception):
    """Raised when an email could not be handed to the provider."""

    pass


@dataclass
class EmailResult:
    """Outcome of a successful send. `mock` is True when no provider is configured."""

    message_id: str | None
    mock: bool = False


def build_subject(bookmark_title: str | None) -> str:
    """Subject line for a reminder email."""
    return f"Reminder: {bookmark_title or 'Your saved link'}"


def build_html(bookmark_title: str | None, bookmark_url: str, message: str | None) -> str:
    """Render the reminder email body. User-supplied text is escaped."""
    title = html.escape(bookmark_title or "Untitled")
    url = html.escape(bookmark_url, quote=True)
    message_block = (
        f'<p style="margin: 12px 0 0; color: #64748b;">{html.escape(message)}</p>'
        if message
        else ""
    )
    return (
        "<!DOCTYPE html>"
        '<html><head><meta charset="utf-8"></head>'
        '<body style="font-family: sans-serif; background-color: #f8fafc;">'
        '<div style="max-width: 480px; margin: 40px auto; padding: 32px; background: white;">'
        '<h1 style="font-size: 24px; color: #1e293b;">Time to revisit!</h1>'
        '<p style="font-size: 12px; text-transform: uppercase; color: #94a3b8;">Your saved link</p>'
        f'<p style="font-size: 18px; font-weight: 600; color: #1e293b;">{title}</p>'
        f"{message_block}"
        f'<p><a href="{url}">Open link</a></p>'
        "</div></body></html>"
    )


async def send_reminder_email(
    to: str,
    bookmark_title: str | None,
    bookmark_url: str,
    message: str | None = None,
) -> EmailResult:
    """
    Send a reminder email for a saved link.

    Without a RESEND_API_KEY the email is only logged and a mock result is
    returned, so local development and tests never reach the network.

    Raises:
        NotificationError: On transport errors or a non-2xx provider response.
    """
    settings = get_settings()
    if not settings.resend_api_key:
        logger.info(
            "Email delivery not configured; would send reminder to %s for %s",
            to, bookmark_title or bookmark_url,
        )
        return EmailResult(message_id=None, mock=True)

    payload = {
        "from": settings.email_from,
        "to": [to],
        "subject": build_subject(bookmark_title),
        "html": build_html(bookmark_title, bookmark_url, message),
    }
    try:
        async with httpx.AsyncClient(timeout=SEND_TIMEOUT) as client:
            response = await client.post(
                RESEND_API_URL,
                json=payload,
                headers={"Authorization": f"Bearer {settings.resend_api_key}"},
            )
    except httpx.HTTPError as e:
        logger.error("Email transport error sending to %s: %s", to, e)
        raise NotificationError(f"Email transport error: {e}") from e

    if not response.is_success:
        logger.error(
            "Email provider rejected reminder to %s: HTTP %s %s",
            to, response.status_code, response.text,
        )
        raise NotificationError(f"Email provider returned HTTP {response.status_code}")

    try:
        message_id = response.json().get("id")
    except ValueError:
        message_id = None
    return EmailResult(message_id=message_id)
