"""
Application notification emails via the Resend HTTP API.

A submitted bursary application is emailed to the applications inbox,
with the applicant in cc and as reply-to.
"""

from dataclasses import dataclass
from datetime import datetime
from html import escape
from typing import Any

import httpx

from app.config import settings
from app.logging_config import get_logger
from app.models import BursaryApplication

logger = get_logger(__name__)

REQUEST_TIMEOUT = 20.0


@dataclass
class EmailResult:
    """Result of an email send."""
    success: bool
    email_id: str | None = None
    error: str | None = None


def _value(value: Any, default: str = "") -> str:
    """HTML-escape a value for interpolation."""
    if value is None or value == "":
        return escape(default)
    return escape(str(value))


def _format_rand(amount: int | None) -> str:
    # en-ZA groups thousands with a space
    return f"{amount or 0:,}".replace(",", " ")


def _render_match(match: dict[str, Any]) -> str:
    score = round(float(match.get("match_score") or 0) * 100)
    return f"""
      <div class="bursary-match">
        <h3>{_value(match.get("name"))} <span class="match-score">{score}% Match</span></h3>
        <div class="field"><span class="label">Funder:</span><span class="value">{_value(match.get("funder"), "N/A")}</span></div>
        <div class="field"><span class="label">Amount:</span><span class="value"><strong>{_value(match.get("amount"), "Varies")}</strong></span></div>
        <div class="field"><span class="label">Deadline:</span><span class="value">{_value(match.get("deadline"), "TBC")}</span></div>
        <div class="field"><span class="label">Reason:</span><span class="value">{_value(match.get("reason"))}</span></div>
      </div>"""


def build_application_html(application: BursaryApplication, submitted_at: datetime | None = None) -> str:
    """
    Render the application summary email.

    Every user-supplied value is HTML-escaped.
    """
    submitted = (submitted_at or application.submitted_at or datetime.utcnow()).strftime(
        "%d %B %Y %H:%M"
    )
    matches = "".join(_render_match(m) for m in (application.matched_bursaries or []))

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <style>
    body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; max-width: 800px; margin: 0 auto; padding: 20px; background-color: #f5f5f5; }}
    .container {{ background: white; border-radius: 10px; overflow: hidden; }}
    .header {{ background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white; padding: 40px 30px; text-align: center; }}
    .content {{ padding: 30px; }}
    .section {{ background: #f8f9fa; padding: 20px; margin: 20px 0; border-radius: 8px; border-left: 4px solid #667eea; }}
    .section-title {{ color: #667eea; font-size: 18px; font-weight: bold; margin: 0 0 15px 0; }}
    .field {{ margin: 12px 0; display: flex; }}
    .label {{ font-weight: 600; color: #555; min-width: 180px; }}
    .value {{ color: #333; flex: 1; }}
    .bursary-match {{ background: white; padding: 20px; margin: 15px 0; border-radius: 8px; border-left: 4px solid #0984e3; }}
    .match-score {{ display: inline-block; background: #0984e3; color: white; padding: 4px 12px; border-radius: 15px; font-size: 14px; }}
    .motivation-text {{ background: white; padding: 15px; border-radius: 6px; font-style: italic; color: #555; }}
    .footer {{ background: #f8f9fa; padding: 20px 30px; text-align: center; color: #666; font-size: 14px; }}
  </style>
</head>
<body>
  <div class="container">
    <div class="header">
      <h1>🎓 New Bursary Application</h1>
      <p><strong>Reference:</strong> {_value(application.application_ref, "PENDING")}</p>
      <p><strong>Submitted:</strong> {submitted}</p>
    </div>
    <div class="content">
      <div class="section">
        <div class="section-title">👤 Personal Information</div>
        <div class="field"><span class="label">Full Name:</span><span class="value"><strong>{_value(application.full_name)}</strong></span></div>
        <div class="field"><span class="label">Email:</span><span class="value">{_value(application.email)}</span></div>
        <div class="field"><span class="label">Phone:</span><span class="value">{_value(application.phone_number or application.wa_id)}</span></div>
        <div class="field"><span class="label">Province:</span><span class="value">{_value(application.province, "Not provided")}</span></div>
      </div>
      <div class="section">
        <div class="section-title">🎓 Academic Profile</div>
        <div class="field"><span class="label">Academic Level:</span><span class="value">{_value(application.academic_level, "Not provided")}</span></div>
        <div class="field"><span class="label">Field of Study:</span><span class="value"><strong>{_value(application.field_of_study)}</strong></span></div>
        <div class="field"><span class="label">Academic Average:</span><span class="value">{_value(application.academic_average)}%</span></div>
      </div>
      <div class="section">
        <div class="section-title">💰 Financial Information</div>
        <div class="field"><span class="label">Household Income:</span><span class="value">R{_format_rand(application.household_income)}/year</span></div>
      </div>
      <div class="section">
        <div class="section-title">✍️ Motivation</div>
        <div class="motivation-text">"{_value(application.motivation_text, "Not provided")}"</div>
      </div>
      <div class="section">
        <div class="section-title">🎁 Matched Bursaries</div>{matches}
      </div>
      <p style="text-align: center; font-size: 16px; color: #667eea; font-weight: bold;">📧 Contact applicant: {_value(application.email)}</p>
    </div>
    <div class="footer">
      <p><strong>TTI Bursaries</strong> - Empowering South African Youth</p>
      <p>Automated Application System</p>
    </div>
  </div>
</body>
</html>
"""


async def send_application_email(application: BursaryApplication) -> EmailResult:
    """
    Email a submitted application to the applications inbox.

    Never raises: delivery failures are logged and returned as an
    unsuccessful EmailResult so the submission itself still stands.

    Args:
        application: Submitted application

    Returns:
        EmailResult with the Resend email id on success
    """
    if not settings.resend_api_key:
        logger.warning("email_not_configured", application_id=str(application.id))
        return EmailResult(success=False, error="Resend API key not configured")

    payload: dict[str, Any] = {
        "from": settings.application_email_from,
        "to": [settings.application_email_to],
        "subject": f"🎓 New Bursary Application - {application.full_name}",
        "html": build_application_html(application),
    }
    if application.email:
        payload["cc"] = [application.email]
        payload["reply_to"] = application.email

    try:
        async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
            response = await client.post(
                f"{settings.resend_api_url}/emails",
                headers={"Authorization": f"Bearer {settings.resend_api_key}"},
                json=payload,
            )
            response.raise_for_status()
            email_id = response.json().get("id")

        logger.info(
            "application_email_sent",
            application_id=str(application.id),
            email_id=email_id,
        )
        return EmailResult(success=True, email_id=email_id)

    except httpx.HTTPStatusError as e:
        logger.error(
            "application_email_rejected",
            application_id=str(application.id),
            status_code=e.response.status_code,
            error=e.response.text[:200],
        )
        return EmailResult(success=False, error=f"HTTP {e.response.status_code}")
    except (httpx.HTTPError, ValueError) as e:
        logger.error(
            "application_email_failed",
            application_id=str(application.id),
            error=str(e),
        )
        return EmailResult(success=False, error=str(e))
