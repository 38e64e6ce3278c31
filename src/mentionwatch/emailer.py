"""Send the run report via SMTP (Gmail app-password friendly).

The Markdown digest is converted to inline-styled HTML with a plain-text part.
"""

from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import markdown

logger = logging.getLogger(__name__)

_HTML_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"></head>
<body style="margin:0; padding:0; background-color:#f6f6f6;">
<div style="max-width:640px; margin:24px auto; background:#ffffff;
            border:1px solid #e0e0e0; border-radius:8px; padding:28px;
            font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,Arial,sans-serif;
            font-size:15px; line-height:1.6; color:#1a1a1a;">
{body}
</div>
</body>
</html>
"""

_STYLE_OVERRIDES = {
    "h1": (
        "font-size:22px; font-weight:700; margin:0 0 8px 0; "
        "color:#111; border-bottom:2px solid #dc3545; padding-bottom:8px;"
    ),
    "h2": "font-size:18px; font-weight:600; margin:24px 0 8px 0; color:#222;",
    "a": "color:#0d6efd; text-decoration:none;",
    "ul": "padding-left:20px; margin:8px 0;",
    "li": "margin-bottom:6px;",
    "code": "background:#f1f1f1; padding:1px 4px; border-radius:3px;",
}


def md_to_html(md_text: str) -> str:
    """Convert Markdown to email-safe HTML with inline styles."""
    html = markdown.markdown(md_text, extensions=["tables"], output_format="html")
    for tag, style in _STYLE_OVERRIDES.items():
        html = html.replace(f"<{tag}>", f'<{tag} style="{style}">')
        html = html.replace(f"<{tag} ", f'<{tag} style="{style}" ')
    return _HTML_TEMPLATE.format(body=html)


def send_report(
    *,
    smtp_host: str,
    smtp_port: int,
    username: str,
    password: str,
    to_addrs: list[str] | str,
    subject: str,
    body_text: str,
) -> None:
    """Send *body_text* (Markdown) as HTML with a plain-text fallback.

    Uses STARTTLS on *smtp_port* (typically 587).
    """
    recipients = [to_addrs] if isinstance(to_addrs, str) else list(to_addrs)

    msg = MIMEMultipart("alternative")
    msg["From"] = username
    msg["To"] = ", ".join(recipients)
    msg["Subject"] = subject
    msg.attach(MIMEText(body_text, "plain", "utf-8"))
    msg.attach(MIMEText(md_to_html(body_text), "html", "utf-8"))

    logger.info(
        "Sending report to %s via %s:%d …",
        ", ".join(recipients), smtp_host, smtp_port,
    )

    with smtplib.SMTP(smtp_host, smtp_port, timeout=30) as server:
        server.ehlo()
        server.starttls()
        server.ehlo()
        server.login(username, password)
        server.sendmail(username, recipients, msg.as_string())

    logger.info("Report sent to %s", ", ".join(recipients))
