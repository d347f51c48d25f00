"""
Transactional email via the Resend HTTP API.

All failures are logged and swallowed so a mail outage never fails the
request that triggered the message. Safe to call when email is disabled or
no API key is configured: returns False without making a request.
"""

import html
import logging
from datetime import datetime, timezone

import httpx

from stowpilot.core.config import settings

logger = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"


async def send_email(to: str, subject: str, body_html: str) -> bool:
    if not settings.email_enabled:
        return False
    if not settings.resend_api_key:
        logger.warning("RESEND_API_KEY not configured, skipping email to %s", to)
        return False
    try:
        async with httpx.AsyncClient(timeout=10) as client:
            resp = await client.post(
                RESEND_URL,
                headers={"Authorization": f"Bearer {settings.resend_api_key}"},
                json={
                    "from": settings.resend_from_email,
                    "to": to,
                    "subject": subject,
                    "html": body_html,
                },
            )
        if resp.status_code >= 400:
            logger.warning("Resend returned %d: %s", resp.status_code, resp.text[:200])
            return False
        return True
    except httpx.HTTPError as exc:
        logger.warning("Email send failed (to=%s): %s", to, exc)
        return False


# ── Templates ─────────────────────────────────────────────────────────────────

def _layout(title: str, inner: str) -> str:
    year = datetime.now(timezone.utc).year
    return f"""<!DOCTYPE html>
<html>
  <head><meta charset="utf-8"></head>
  <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
    <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
      <h1 style="color: #2563eb;">{title}</h1>
      {inner}
      <hr style="border: none; border-top: 1px solid #eee; margin: 30px 0;">
      <p style="color: #666; font-size: 12px;">&copy; {year} StowPilot. All rights reserved.</p>
    </div>
  </body>
</html>"""


def _button(url: str, label: str) -> str:
    url = html.escape(url, quote=True)
    return (
        '<div style="text-align: center; margin: 30px 0;">'
        f'<a href="{url}" style="background-color: #2563eb; color: white; padding: 12px 24px; '
        f'text-decoration: none; border-radius: 5px; display: inline-block;">{label}</a></div>'
        f'<p>Or copy and paste this link into your browser:</p>'
        f'<p style="word-break: break-all; color: #666;">{url}</p>'
    )


def welcome_email(name: str | None) -> str:
    greeting = f"Hi {html.escape(name)}," if name else "Hi,"
    return _layout(
        "Welcome to StowPilot!",
        f"<p>{greeting}</p>"
        "<p>Your account is ready. Add your first facility to start managing units, "
        "customers and rentals.</p>"
        + _button(f"{settings.app_url}/dashboard", "Open StowPilot"),
    )


def invitation_email(invitation_url: str, inviter: str, role: str, business_name: str | None) -> str:
    source = f"<strong>{html.escape(inviter)}</strong>"
    if business_name:
        source += f" from {html.escape(business_name)}"
    return _layout(
        "You've been invited to join StowPilot",
        "<p>Hi there,</p>"
        f"<p>{source} has invited you to join their team on StowPilot as a "
        f"<strong>{html.escape(role)}</strong>.</p>"
        + _button(invitation_url, "Accept Invitation"),
    )


def password_reset_email(reset_url: str, minutes: int) -> str:
    return _layout(
        "Reset your password",
        "<p>Hi,</p>"
        "<p>Someone asked to reset the password for your StowPilot account. "
        "If that was you, choose a new password below.</p>"
        + _button(reset_url, "Reset Password")
        + f"<p>This link expires in {minutes} minutes. If you didn't ask for a reset, "
        "you can ignore this email.</p>",
    )


def invitation_url(invitation_id) -> str:
    return f"{settings.app_url}/auth/accept-invitation?token={invitation_id}"


def password_reset_url(token: str) -> str:
    return f"{settings.app_url}/auth/reset-password?token={token}"


async def send_welcome_email(to: str, name: str | None) -> bool:
    return await send_email(to, "Welcome to StowPilot", welcome_email(name))


async def send_invitation_email(
    to: str, invitation_id, inviter: str, role: str, business_name: str | None
) -> bool:
    body = invitation_email(invitation_url(invitation_id), inviter, role, business_name)
    return await send_email(to, "You've been invited to join a StowPilot team", body)


async def send_password_reset_email(to: str, token: str, minutes: int) -> bool:
    body = password_reset_email(password_reset_url(token), minutes)
    return await send_email(to, "Reset your StowPilot password", body)
