"""
Twilio WhatsApp client for outbound messages.

Replies to inbound messages go back in the webhook response body. Twilio
is only used for messages the bot initiates, i.e. the progressive
notification templates, which must be pre-approved by Meta.
"""

import json
from typing import Any

from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

from app.config import settings
from app.logging_config import get_logger, mask_id

logger = get_logger(__name__)


class TwilioWhatsAppClient:
    """
    Client for Twilio WhatsApp API operations.

    Example:
        client = TwilioWhatsAppClient()
        await client.send_template_message(
            to="27721234567",
            template_sid="HXb5b62575e6e4ff6129ad7c8efe1f983e",
            template_variables={"1": "Tasi"},
        )
    """

    def __init__(
        self,
        account_sid: str | None = None,
        auth_token: str | None = None,
        from_number: str | None = None,
    ):
        self.account_sid = account_sid or settings.twilio_account_sid
        self.auth_token = auth_token or settings.twilio_auth_token
        self.from_number = from_number or settings.twilio_whatsapp_from

        if not self.account_sid or not self.auth_token or not self.from_number:
            logger.warning(
                "twilio_credentials_missing",
                message="Twilio not configured. Notifications will be skipped.",
            )
            self._client = None
        else:
            self._client = Client(self.account_sid, self.auth_token)
            logger.info("twilio_client_initialized")

    @property
    def is_configured(self) -> bool:
        """Check if Twilio client is properly configured."""
        return self._client is not None

    @staticmethod
    def format_whatsapp_number(phone: str) -> str:
        """
        Format a wa_id or phone number as a Twilio WhatsApp address.

        Example:
            >>> TwilioWhatsAppClient.format_whatsapp_number("27721234567")
            'whatsapp:+27721234567'
        """
        if phone.startswith("whatsapp:"):
            return phone

        cleaned = "".join(c for c in phone if c.isdigit() or c == "+")
        if not cleaned.startswith("+"):
            cleaned = f"+{cleaned}"
        return f"whatsapp:{cleaned}"

    def _not_configured(self, to: str) -> dict[str, Any]:
        logger.warning("twilio_send_skipped", reason="Client not configured", to=mask_id(to))
        return {"success": False, "error": "Twilio not configured", "sid": None}

    async def send_template_message(
        self,
        to: str,
        template_sid: str,
        template_variables: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """
        Send a pre-approved WhatsApp template message.

        Required for initiating conversations outside the 24-hour window.

        Args:
            to: Recipient wa_id or phone number
            template_sid: Content SID (or name) of the approved template
            template_variables: Placeholder values, e.g. {"1": "Tasi"}

        Returns:
            Dict with success, sid, and error on failure
        """
        if not self.is_configured:
            return self._not_configured(to)

        to_formatted = self.format_whatsapp_number(to)
        params: dict[str, Any] = {
            "from_": self.from_number,
            "to": to_formatted,
            "content_sid": template_sid,
        }
        if template_variables:
            params["content_variables"] = json.dumps(template_variables)

        try:
            message = self._client.messages.create(**params)
            logger.info(
                "twilio_template_sent",
                message_sid=message.sid,
                to=mask_id(to),
                template_sid=template_sid,
            )
            return {"success": True, "sid": message.sid, "status": message.status}

        except TwilioRestException as e:
            logger.error(
                "twilio_template_error",
                error_code=e.code,
                error=str(e),
                to=mask_id(to),
                template_sid=template_sid,
            )
            return {"success": False, "error": str(e), "error_code": e.code, "sid": None}


# Global client instance (lazy initialization)
_twilio_client: TwilioWhatsAppClient | None = None


def get_twilio_client() -> TwilioWhatsAppClient:
    """Get or create the global Twilio client instance."""
    global _twilio_client
    if _twilio_client is None:
        _twilio_client = TwilioWhatsAppClient()
    return _twilio_client
