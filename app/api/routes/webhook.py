"""
ManyChat / WhatsApp Cloud API webhook endpoint.

Accepts both payload shapes on one URL, runs the message through the
brain and answers synchronously in the format the request came in.

This module should NOT contain business logic - it's a thin proxy layer.
"""

from typing import Any

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from app.agents.brain import process_message
from app.api.deps import DbSession
from app.config import settings
from app.integrations.whatsapp import (
    GENERIC_ERROR_MESSAGE,
    SESSION_ERROR_MESSAGE,
    PayloadFormat,
    detect_payload_format,
    extract_message,
    format_manychat_response,
    format_whatsapp_response,
)
from app.logging_config import bind_request_context, get_logger, mask_id
from app.storage.session_manager import (
    add_to_history,
    get_session,
    is_duplicate_message,
    update_session,
)
from app.tools.sanitize import sanitize_name

logger = get_logger(__name__)

router = APIRouter(prefix="/webhook", tags=["webhook"])

EXPECTED_FORMATS = "ManyChat or WhatsApp Cloud API format"


def _method_not_allowed() -> JSONResponse:
    return JSONResponse(status_code=405, content={"error": "Method Not Allowed"})


def build_reply(
    payload_format: PayloadFormat,
    wa_id: str | None,
    text: str,
    image_url: str | None = None,
    debug_info: dict[str, Any] | None = None,
) -> JSONResponse:
    """200 reply in the channel's format."""
    if payload_format == PayloadFormat.MANYCHAT:
        body = format_manychat_response(text, image_url=image_url, debug_info=debug_info)
    else:
        body = format_whatsapp_response(wa_id, text, image_url=image_url)
    return JSONResponse(status_code=200, content=body)


async def _read_payload(request: Request) -> dict[str, Any]:
    try:
        payload = await request.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


# ─────────────────────────────────────────────────────────────────────────────
# Webhook Endpoint
# ─────────────────────────────────────────────────────────────────────────────

@router.options("")
async def webhook_options() -> PlainTextResponse:
    """CORS preflight."""
    return PlainTextResponse("OK")


@router.get("")
async def webhook_verify(
    hub_mode: str | None = Query(default=None, alias="hub.mode"),
    hub_verify_token: str | None = Query(default=None, alias="hub.verify_token"),
    hub_challenge: str | None = Query(default=None, alias="hub.challenge"),
):
    """
    WhatsApp Cloud API subscription handshake.

    Echoes hub.challenge when the verify token matches; any other GET is
    not allowed.
    """
    token = settings.whatsapp_webhook_verify_token
    if hub_mode == "subscribe" and token and hub_verify_token == token:
        logger.info("webhook_verified")
        return PlainTextResponse(hub_challenge or "")

    if hub_mode == "subscribe":
        logger.warning("webhook_verification_failed")
    return _method_not_allowed()


@router.api_route("", methods=["PUT", "PATCH", "DELETE"])
async def webhook_other_methods() -> JSONResponse:
    return _method_not_allowed()


@router.post("")
async def webhook(request: Request, db: DbSession) -> JSONResponse:
    """
    Inbound message webhook.

    This endpoint:
    1. Detects the payload format (ManyChat or WhatsApp Cloud API)
    2. Extracts the sender and message text
    3. Gets or creates the session and records the message
    4. Routes the message through the brain
    5. Replies in the detected format

    Agent failures never surface as 5xx: the user gets a generic apology.
    """
    payload = await _read_payload(request)
    payload_format = detect_payload_format(payload)

    if payload_format == PayloadFormat.UNKNOWN:
        logger.warning("webhook_invalid_payload", keys=list(payload.keys()))
        return JSONResponse(
            status_code=400,
            content={
                "error": "Invalid payload format",
                "expected": EXPECTED_FORMATS,
                "received": list(payload.keys()),
            },
        )

    wa_id: str | None = None
    try:
        inbound = extract_message(payload, payload_format)
        wa_id = inbound.wa_id
        bind_request_context(wa_id=mask_id(wa_id), channel=payload_format.value)

        if not wa_id or not inbound.text:
            logger.warning(
                "webhook_missing_fields",
                format=payload_format.value,
                has_wa_id=bool(wa_id),
                has_text=bool(inbound.text),
            )
            return JSONResponse(
                status_code=400,
                content={
                    "error": "Missing wa_id or message text",
                    "format_detected": payload_format.value,
                },
            )

        logger.info(
            "webhook_received",
            format=payload_format.value,
            wa_id=mask_id(wa_id),
            message_type=inbound.message_type.value,
            message_preview=inbound.text[:50],
        )

        session = get_session(db, wa_id)
        if not session.is_valid:
            logger.error("webhook_session_unavailable", wa_id=mask_id(wa_id))
            return build_reply(payload_format, wa_id, SESSION_ERROR_MESSAGE)

        if is_duplicate_message(session, inbound.message_id):
            logger.info("webhook_duplicate_message", wa_id=mask_id(wa_id), message_id=inbound.message_id)
            return build_reply(
                payload_format,
                wa_id,
                session.last_assistant_message or GENERIC_ERROR_MESSAGE,
                debug_info={"format": payload_format.value, "subscriber_id": wa_id, "duplicate": True},
            )

        update: dict[str, Any] = {"last_message_type": inbound.message_type.value}
        first_name = sanitize_name(inbound.first_name)
        if first_name:
            update["user_name"] = first_name
        update_session(db, wa_id, update)
        session = add_to_history(db, wa_id, {"role": "user", "content": inbound.text})

        result = await process_message(db, session, inbound.text)

        # A failed turn leaves the id unset so the provider's retry is processed
        if result.success and inbound.message_id:
            update_session(db, wa_id, {"last_message_id": inbound.message_id})

        debug_info: dict[str, Any] = {
            "format": payload_format.value,
            "subscriber_id": wa_id,
            "intent": result.intent or "unknown",
        }
        if not result.success and result.errors:
            debug_info["error"] = result.errors[0]

        logger.info(
            "webhook_processed",
            wa_id=mask_id(wa_id),
            agent=result.agent_used,
            success=result.success,
            response_length=len(result.response_text),
        )
        return build_reply(
            payload_format,
            wa_id,
            result.response_text,
            image_url=result.image_url,
            debug_info=debug_info,
        )

    except Exception as e:
        logger.error(
            "webhook_error",
            wa_id=mask_id(wa_id),
            error=str(e),
            exc_info=True,
        )
        return build_reply(
            payload_format,
            wa_id,
            GENERIC_ERROR_MESSAGE,
            debug_info={"error": str(e)},
        )
