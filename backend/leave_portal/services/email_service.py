import os
import smtplib
import logging
from datetime import datetime
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional

logger = logging.getLogger(__name__)

# Email configuration
SMTP_SERVER = os.getenv("SMTP_SERVER", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", "465"))
SMTP_USERNAME = os.getenv("SMTP_USERNAME", "")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
FROM_EMAIL = os.getenv("FROM_EMAIL", SMTP_USERNAME or "noreply@company.com")
LOGIN_ALERT_RECIPIENT = os.getenv("LOGIN_ALERT_RECIPIENT", "")


def build_login_notification(to_email: str, recipient_name: Optional[str], meta: Optional[dict] = None) -> MIMEMultipart:
    meta = meta or {}
    login_time = meta.get("timestamp") or datetime.utcnow().isoformat()
    ip = meta.get("ip") or "Unknown IP"
    user_agent = meta.get("userAgent") or "Unknown device"

    html = f"""
    <div style="font-family: Arial, Helvetica, sans-serif; line-height:1.5;">
      <h2 style="margin:0 0 12px;">Login Alert</h2>
      <p>Hi {recipient_name or 'there'},</p>
      <p>Your account was just signed in.</p>
      <ul>
        <li><strong>Time</strong>: {login_time}</li>
        <li><strong>IP</strong>: {ip}</li>
        <li><strong>Device</strong>: {user_agent}</li>
      </ul>
      <p>If this was you, no action is needed. If you do not recognize this activity, please reset your password immediately.</p>
      <p style="margin-top:16px;">Leave Management System</p>
    </div>
    """

    msg = MIMEMultipart()
    msg['From'] = f"Leave Management System <{FROM_EMAIL}>"
    msg['To'] = to_email
    msg['Subject'] = "Login Alert - Your account was just signed in"
    msg.attach(MIMEText(html, 'html'))
    return msg


def send_login_notification(to_email: str, recipient_name: Optional[str], meta: Optional[dict] = None) -> bool:
    """Send the login alert; returns False when SMTP is not configured."""
    if not (SMTP_USERNAME and SMTP_PASSWORD):
        logger.info(f"SMTP not configured, skipping login alert for {to_email}")
        return False

    msg = build_login_notification(to_email, recipient_name, meta)
    with smtplib.SMTP_SSL(SMTP_SERVER, SMTP_PORT) as server:
        server.login(SMTP_USERNAME, SMTP_PASSWORD)
        server.sendmail(FROM_EMAIL, [to_email], msg.as_string())
    logger.info(f"Login alert sent to {to_email}")
    return True


def notify_login(to_email: str, recipient_name: Optional[str], meta: Optional[dict] = None):
    """Background-task entry point: failures are logged and never reach the login flow."""
    try:
        send_login_notification(LOGIN_ALERT_RECIPIENT or to_email, recipient_name, meta)
    except Exception as e:
        logger.warning(f"Login email notification failed: {e}")
