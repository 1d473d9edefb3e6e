import logging
import smtplib
from email.message import EmailMessage

from .. import config

logger = logging.getLogger(__name__)


def smtp_configured() -> bool:
    return bool(config.SMTP_HOST and config.SMTP_USER and config.SMTP_PASS and config.SMTP_FROM)


def send_email(*, to_email: str, subject: str, body: str) -> None:
    """
    Send a plain-text email over SMTP.

    Env vars:
      SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASS, SMTP_FROM, SMTP_TLS
    """
    if not smtp_configured():
        raise RuntimeError("SMTP is not configured (missing SMTP_HOST/SMTP_USER/SMTP_PASS/SMTP_FROM).")

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = config.SMTP_FROM
    msg["To"] = to_email
    msg.set_content(body)

    logger.debug("Connecting to %s:%s (TLS=%s)", config.SMTP_HOST, config.SMTP_PORT, config.SMTP_TLS)
    with smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT, timeout=15) as smtp:
        smtp.ehlo()
        if config.SMTP_TLS:
            smtp.starttls()
            smtp.ehlo()
        smtp.login(config.SMTP_USER, config.SMTP_PASS)
        smtp.send_message(msg)
    logger.info("Email sent to %s: %s", to_email, subject)


def send_access_request_notice(
    *,
    to_email: str,
    request_type: str,
    requester_email: str,
    requested_role: str | None,
    note: str | None,
) -> None:
    kind = "Password reset" if request_type == "reset_password" else "Account"

    lines: list[str] = []
    lines.append(f"{kind} request received from {requester_email}.")
    if requested_role:
        lines.append(f"Requested role: {requested_role}")
    if note:
        lines.append("")
        lines.append("Note:")
        lines.append(note)
    lines.append("")
    lines.append("Review it under Access Requests in the AEI portal.")

    send_email(
        to_email=to_email,
        subject=f"AEI portal: {kind.lower()} request from {requester_email}",
        body="\n".join(lines),
    )
