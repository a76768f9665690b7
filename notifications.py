"""
Approval e-mails.

Bodies are rendered from ``templates/email``. Delivery is best-effort and
happens after the database transaction has committed: ``dispatch`` retries a
few times, logs the final failure and never raises into the caller.
"""
from __future__ import annotations

import logging
import smtplib
import time
from dataclasses import dataclass, field
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Callable, Optional, Protocol

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

import config
from errors import UpstreamError
from models import AssetRequest, User

logger = logging.getLogger(__name__)

_env = Environment(
    loader=FileSystemLoader(str(config.TEMPLATE_DIR / "email")),
    autoescape=select_autoescape(["html"]),
)


class Mailer(Protocol):
    def send(self, to: str, subject: str, html: str) -> bool: ...


@dataclass(frozen=True)
class Notification:
    to: str
    subject: str
    template: str
    context: dict[str, Any] = field(default_factory=dict)

    def render(self) -> str:
        return _env.get_template(self.template).render(**self.context)


class SmtpMailer:
    def __init__(
        self,
        *,
        enabled: bool = config.MAIL_ENABLED,
        server: str = config.SMTP_SERVER,
        port: int = config.SMTP_PORT,
        username: str = config.SMTP_USERNAME,
        password: str = config.SMTP_PASSWORD,
        sender: str = config.MAIL_FROM,
        timeout: float = 10.0,
    ):
        self.enabled = enabled
        self.server = server
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.timeout = timeout

    def send(self, to: str, subject: str, html: str) -> bool:
        """Deliver one message. Returns False when mail is disabled and nothing was sent."""
        if not self.enabled:
            logger.info("mail disabled, not sending to=%s subject=%r", to, subject)
            return False

        msg = MIMEMultipart()
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.attach(MIMEText(html, "html"))

        try:
            with smtplib.SMTP(self.server, self.port, timeout=self.timeout) as server:
                server.starttls()
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.send_message(msg, to_addrs=[to])
        except (smtplib.SMTPException, OSError) as e:
            raise UpstreamError(f"mail delivery failed: {e}") from e
        return True


def dispatch(
    mailer: Mailer,
    notification: Notification,
    *,
    attempts: int = config.MAIL_RETRY_ATTEMPTS,
    backoff: float = config.MAIL_RETRY_BACKOFF_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """Render and send ``notification``. True only when a message actually went out."""
    try:
        html = notification.render()
    except TemplateError:
        logger.exception("notification template failed template=%s to=%s", notification.template, notification.to)
        return False

    for attempt in range(1, attempts + 1):
        try:
            delivered = mailer.send(notification.to, notification.subject, html)
        except UpstreamError as e:
            logger.warning(
                "notification attempt %s/%s failed to=%s: %s",
                attempt,
                attempts,
                notification.to,
                e.message,
            )
            if attempt < attempts:
                sleep(backoff * attempt)
            continue
        if delivered is False:
            logger.info("notification skipped to=%s subject=%r", notification.to, notification.subject)
            return False
        logger.info("notification sent to=%s subject=%r", notification.to, notification.subject)
        return True

    logger.error("notification dropped to=%s subject=%r", notification.to, notification.subject)
    return False


def request_approved(user: User, request: AssetRequest) -> Notification:
    return Notification(
        to=user.email,
        subject="Asset Request Approved",
        template="request_approved.html",
        context={"user": user, "request": request},
    )


def request_sent_by_admin(user: User, request: AssetRequest) -> Notification:
    return Notification(
        to=user.email,
        subject="Asset Sent by Admin",
        template="request_sent_by_admin.html",
        context={"user": user, "request": request},
    )


def for_approval(user: Optional[User], request: AssetRequest) -> Optional[Notification]:
    """Notification for a freshly approved request, or None when the requester has no account."""
    if user is None or not user.email:
        return None
    if request.sent_by_admin:
        return request_sent_by_admin(user, request)
    return request_approved(user, request)
