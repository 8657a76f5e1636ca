"""
Mailer: sends a generated poster to a member over SMTP.

Subject and body are tailored to the member's designation family
(health / wealth / other). Sending returns True/False; retries are left to
the caller.
"""

from __future__ import annotations

import asyncio
import logging
import mimetypes
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path

import aiosmtplib
from jinja2 import Environment, select_autoescape

from config import settings
from posterkit.members import Member

logger = logging.getLogger(__name__)

_env = Environment(autoescape=select_autoescape(default=True, default_for_string=True))

_EMAIL_TEMPLATE = _env.from_string(
    """\
<div style="font-family: Arial, sans-serif; max-width: 640px; margin: 0 auto; background-color: #ffffff; padding: 24px; border-radius: 10px; border: 1px solid #e0e0e0;">
  <h2 style="color: #2b2b2b; text-align: center;">Hello {{ member.name }},</h2>
  <p style="font-size: 16px; line-height: 1.6; color: #444;">{{ intro }}</p>
  <p style="font-size: 16px; line-height: 1.6; color: #444;">
    We've created a professional visual personalized just for you, to <strong>spark client conversations and build trust</strong>.
  </p>
  <p style="font-size: 16px; line-height: 1.6; color: #444;">{{ benefit }}</p>
  <p style="font-size: 16px; line-height: 1.6; color: #444;">
    Forward it to your customers, share it on WhatsApp, or use it during client meetings.
  </p>
  <div style="font-size: 14px; color: #666; line-height: 1.6; margin-top: 20px;">
    <strong>Your Info:</strong><br/>
    Name: {{ member.name }}<br/>
    Designation: {{ member.designation }}<br/>
    Phone: {{ member.phone }}<br/>
    Email: {{ member.email }}<br/>
    Company: <strong>{{ brand }}</strong>
  </div>
  <p style="font-size: 14px; color: #888; text-align: center; margin-top: 30px;">
    Stay consistent. Share with confidence. Build stronger relationships.<br/>
    <strong>{{ brand }} Team</strong>
  </p>
</div>
"""
)

_COPY = {
    "health": {
        "subject": "Reach More Families: Build Trust in Health Planning",
        "intro": "Your expertise in protecting families is more valuable than ever.",
        "benefit": (
            "This message reminds families of the power of proactive health planning. "
            "When shared consistently, it builds confidence and connections."
        ),
    },
    "wealth": {
        "subject": "This Simple Step Can Boost Your Wealth Advisory Reach",
        "intro": "Financial confidence begins with trust, and you are the bridge to that confidence.",
        "benefit": (
            "This message highlights smart monthly income and long-term growth, "
            "a perfect conversation starter with new and existing clients."
        ),
    },
    "other": {
        "subject": "Your Clients Trust You: Here's a Way to Grow That Trust",
        "intro": "You help your clients build both security and prosperity. Now it's time to amplify your impact.",
        "benefit": (
            "This message touches both financial growth and health security, "
            "a tool that opens doors for deeper client relationships."
        ),
    },
}


def _family(designation: str | None) -> str:
    low = str(designation or "").lower()
    if "health" in low:
        return "health"
    if "wealth" in low:
        return "wealth"
    return "other"


def generate_subject(designation: str | None) -> str:
    return _COPY[_family(designation)]["subject"]


def render_email_html(member: Member, brand: str) -> str:
    copy = _COPY[_family(member.designation)]
    return _EMAIL_TEMPLATE.render(member=member, brand=brand, intro=copy["intro"], benefit=copy["benefit"])


class Mailer:
    """SMTP mailer (STARTTLS) built on aiosmtplib."""

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        from_email: str | None = None,
        from_name: str | None = None,
        timeout: float = 30,
    ):
        self.host = host or settings.SMTP_HOST
        self.port = port or settings.SMTP_PORT
        self.username = settings.SMTP_USER if username is None else username
        self.password = settings.SMTP_PASSWORD if password is None else password
        self.from_email = from_email or settings.EMAIL_FROM or self.username
        self.from_name = from_name or settings.EMAIL_FROM_NAME
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.username and self.password and self.from_email)

    def _build_message(self, recipient: str, subject: str, html: str, attachment_path: Path | None):
        message = MIMEMultipart("mixed")
        message["From"] = f"{self.from_name} <{self.from_email}>"
        message["To"] = recipient
        message["Subject"] = subject
        message.attach(MIMEText(html, "html", "utf-8"))

        if attachment_path is not None:
            path = Path(attachment_path)
            ctype = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
            maintype, subtype = ctype.split("/", 1)
            part = MIMEBase(maintype, subtype)
            part.set_payload(path.read_bytes())
            encoders.encode_base64(part)
            part.add_header("Content-Disposition", "attachment", filename=f"poster{path.suffix.lower()}")
            message.attach(part)
        return message

    def _smtp_kwargs(self) -> dict:
        return dict(
            hostname=self.host,
            port=self.port,
            username=self.username,
            password=self.password,
            start_tls=self.port != 465,
            use_tls=self.port == 465,
            timeout=self.timeout,
        )

    def send(self, recipient: str, subject: str, html: str, attachment_path: Path | None = None) -> bool:
        """Send one message. Returns True on success, False otherwise."""
        if not self.is_configured:
            logger.warning("Email not configured (SMTP_USER/SMTP_PASSWORD); skipping send")
            return False

        try:
            message = self._build_message(recipient, subject, html, attachment_path)
            asyncio.run(aiosmtplib.send(message, **self._smtp_kwargs()))
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {recipient}: {e}")
            return False

        logger.info(f"Email sent to {recipient}")
        return True

    def send_poster(self, member: Member, poster_path: Path, brand: str) -> bool:
        return self.send(
            member.email,
            generate_subject(member.designation),
            render_email_html(member, brand),
            poster_path,
        )

    def verify(self) -> bool:
        """Connect and authenticate without sending anything."""
        if not self.is_configured:
            return False

        async def _check():
            kwargs = self._smtp_kwargs()
            kwargs.pop("username")
            kwargs.pop("password")
            client = aiosmtplib.SMTP(**kwargs)
            await client.connect()
            try:
                await client.login(self.username, self.password)
            finally:
                await client.quit()

        try:
            asyncio.run(_check())
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"Email configuration error: {e}")
            return False
        return True
