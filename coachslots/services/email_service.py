import logging
import smtplib
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

from coachslots.core.config import settings
from coachslots.scheduling.intervals import resolve_timezone, to_utc

logger = logging.getLogger(__name__)


def _send_email_sync(to_email: str, subject: str, html_body: str) -> None:
    """Send email via SMTP (blocking). Use from background task."""
    if not settings.email_enabled:
        logger.debug("Email disabled (SMTP not configured), skipping send")
        return
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.from_name} <{settings.from_email}>"
    msg["To"] = to_email
    msg.attach(MIMEText(html_body, "html", "utf-8"))
    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as server:
            server.starttls()
            server.login(settings.smtp_user, settings.smtp_password)
            server.sendmail(settings.from_email, [to_email], msg.as_string())
        logger.info("Email sent to %s", to_email)
    except Exception as e:
        logger.exception("Failed to send email to %s: %s", to_email, e)


def build_intake_confirmation_html(
    prospect_name: str,
    call_name: str,
    start: datetime,
    end: datetime,
    timezone: str | None,
) -> str:
    """Build HTML body for an intake call confirmation, shown in the prospect's timezone."""
    tz = resolve_timezone(timezone)
    local_start = to_utc(start).astimezone(tz)
    local_end = to_utc(end).astimezone(tz)
    date_str = local_start.strftime("%A, %B %d, %Y")
    time_str = f"{local_start.strftime('%I:%M %p')} – {local_end.strftime('%I:%M %p')} ({tz.zone})"
    return f"""
<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>{escape(call_name)} confirmed</title>
</head>
<body style="margin:0;padding:0;font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,sans-serif;background-color:#f3f4f6;">
  <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="max-width:560px;margin:40px auto;background:#ffffff;border-radius:12px;">
    <tr>
      <td style="padding:32px;">
        <h1 style="margin:0 0 8px 0;font-size:22px;font-weight:600;color:#111827;">You're booked!</h1>
        <p style="margin:0 0 24px 0;font-size:15px;color:#6b7280;">Hi {escape(prospect_name) or 'there'}, your {escape(call_name)} is confirmed.</p>
        <p style="margin:0 0 8px 0;font-size:12px;text-transform:uppercase;color:#6b7280;">Date</p>
        <p style="margin:0;font-size:16px;font-weight:600;color:#111827;">{date_str}</p>
        <p style="margin:12px 0 0 0;font-size:12px;text-transform:uppercase;color:#6b7280;">Time</p>
        <p style="margin:0;font-size:16px;font-weight:600;color:#111827;">{time_str}</p>
      </td>
    </tr>
    <tr>
      <td style="padding:24px 32px;background:#f9fafb;border-top:1px solid #e5e7eb;">
        <p style="margin:0;font-size:13px;color:#6b7280;">{escape(settings.site_name)} {escape(settings.contact_email)}</p>
      </td>
    </tr>
  </table>
</body>
</html>
"""


def send_intake_confirmation_email(
    to_email: str,
    prospect_name: str,
    call_name: str,
    start: datetime,
    end: datetime,
    timezone: str | None = None,
) -> None:
    """Compose and send the intake call confirmation (call from background task)."""
    subject = f"{settings.site_name} – {call_name} confirmed"
    html = build_intake_confirmation_html(
        prospect_name=prospect_name,
        call_name=call_name,
        start=start,
        end=end,
        timezone=timezone,
    )
    _send_email_sync(to_email, subject, html)
