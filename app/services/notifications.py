"""Notification service (Mailgun email).

Sending is fire-and-forget from the point of view of the onboarding flow:
callers hand over the message after their transaction has committed and
treat NotificationError as advisory.
"""
import logging
from urllib.parse import urlencode

import httpx

from app.config import Settings, get_settings
from app.errors import NotificationError

logger = logging.getLogger(__name__)

MAILGUN_US_BASE = "https://api.mailgun.net"
MAILGUN_EU_BASE = "https://api.eu.mailgun.net"


def mailgun_configured(settings: Settings | None = None) -> bool:
    s = settings or get_settings()
    return bool(s.mailgun_api_key and s.mailgun_domain)


def send_email(to_email: str, subject: str, html_content: str, text_content: str | None = None, settings: Settings | None = None) -> bool:
    """Send email via Mailgun. Returns True if the provider accepted the message."""
    settings = settings or get_settings()
    if not mailgun_configured(settings):
        logger.warning(
            "Email NOT SENT to=%s subject=%s: MAILGUN_API_KEY=%s MAILGUN_DOMAIN=%s",
            to_email,
            subject,
            "set" if settings.mailgun_api_key else "MISSING",
            "set" if settings.mailgun_domain else "MISSING",
        )
        return False
    return _send_email_mailgun(to_email, subject, html_content, text_content=text_content, settings=settings)


def _send_email_mailgun(to_email: str, subject: str, html_content: str, text_content: str | None, settings: Settings) -> bool:
    base = (settings.mailgun_base_url or MAILGUN_US_BASE).strip().rstrip("/")
    domain = (settings.mailgun_domain or "").strip().lower()
    from_addr = (settings.mailgun_from_email or "").strip()
    from_domain = from_addr.split("@")[-1].lower() if "@" in from_addr else ""
    if domain and from_domain != domain:
        from_addr = f"noreply@{domain}"
        logger.info("Mailgun using from=%s (must match domain %s for delivery)", from_addr, domain)
    data = {
        "from": f"{settings.mailgun_from_name} <{from_addr}>",
        "to": to_email,
        "subject": subject,
        "text": text_content or "",
        "html": html_content or "",
    }
    try:
        with httpx.Client(timeout=10.0) as client:
            r = client.post(f"{base}/v3/{domain}/messages", auth=("api", settings.mailgun_api_key), data=data)
            if 200 <= r.status_code < 300:
                logger.info("Mailgun accepted message to=%s status=%s", to_email, r.status_code)
                return True
            if r.status_code == 401 and base == MAILGUN_US_BASE:
                logger.info("Mailgun 401 with US endpoint, retrying with EU endpoint")
                r2 = client.post(f"{MAILGUN_EU_BASE}/v3/{domain}/messages", auth=("api", settings.mailgun_api_key), data=data)
                if 200 <= r2.status_code < 300:
                    logger.info("Mailgun (EU) accepted message to=%s", to_email)
                    return True
                logger.warning("Mailgun EU request failed: status=%s body=%s", r2.status_code, r2.text[:500])
                return False
            logger.warning("Mailgun API failed: status=%s to=%s body=%s", r.status_code, to_email, r.text[:500])
            return False
    except httpx.HTTPError as e:
        logger.warning("Mailgun request error to=%s: %s: %s", to_email, type(e).__name__, e)
        return False


def build_verification_link(token: str, settings: Settings | None = None) -> str:
    s = settings or get_settings()
    return f"{s.frontend_base_url.rstrip('/')}/verify-email?{urlencode({'token': token})}"


def send_verification_email(to_email: str, token: str, settings: Settings | None = None) -> bool:
    """Send the email-ownership link for a freshly issued token."""
    s = settings or get_settings()
    link = build_verification_link(token, s)
    hours = s.email_verification_token_expire_hours
    subject = f"[{s.app_name}] Verify your email address"
    text_content = f"Confirm your email address by opening this link: {link}\nThe link expires in {hours} hours."
    html_content = f"""
    <p>Hello,</p>
    <p>Please confirm your email address to continue registration:</p>
    <p><a href="{link}">Verify my email</a></p>
    <p>This link expires in {hours} hours. If you did not sign up, you can ignore this email.</p>
    """
    return send_email(to_email, subject, html_content, text_content=text_content, settings=s)


def send_account_verified_email(to_email: str, settings: Settings | None = None) -> bool:
    """Tell the user their account was granted verified status."""
    s = settings or get_settings()
    subject = f"[{s.app_name}] Your account is verified"
    text = "Your documents have been reviewed and your account is now fully verified."
    html = f"<p>Hello,</p><p>{text}</p>"
    return send_email(to_email, subject, html, text_content=text, settings=s)


class EmailNotifier:
    """Injectable wrapper over the send_* functions. Raises NotificationError when a message is not sent."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    def send_verification(self, to_email: str, token: str) -> None:
        if not send_verification_email(to_email, token, settings=self.settings):
            raise NotificationError(f"verification email to {to_email} was not sent")

    def send_account_verified(self, to_email: str) -> None:
        if not send_account_verified_email(to_email, settings=self.settings):
            raise NotificationError(f"account verified email to {to_email} was not sent")
