"""Twilio WhatsApp API helpers."""

from __future__ import annotations

import logging
from functools import lru_cache

from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

import config

logger = logging.getLogger(__name__)

CHANNEL_PREFIX = "whatsapp:"


@lru_cache(maxsize=1)
def _twilio_client() -> Client:
    secrets = config.get_twilio_secrets()
    return Client(secrets.account_sid, secrets.auth_token)


def _channel_address(number: str) -> str:
    return number if number.startswith(CHANNEL_PREFIX) else f"{CHANNEL_PREFIX}{number}"


def send_text(to: str, body: str) -> bool:
    """Send a text message via Twilio WhatsApp. Returns whether Twilio accepted it."""
    settings = config.get_settings()

    message_args = {"to": _channel_address(to), "body": body}
    if settings.twilio_messaging_service_sid:
        message_args["messaging_service_sid"] = settings.twilio_messaging_service_sid
    else:
        message_args["from_"] = _channel_address(settings.twilio_whatsapp_from or "")

    try:
        message = _twilio_client().messages.create(**message_args)
    except TwilioRestException as exc:
        logger.error(
            "twilio_send_error",
            extra={
                "status": exc.status,
                "code": exc.code,
                "error": str(exc),
                "using_messaging_service": bool(settings.twilio_messaging_service_sid),
                "wa_hash": hash(to),
            },
        )
        return False
    except config.ConfigurationError as exc:
        logger.error("twilio_client_unavailable", extra={"error": str(exc)})
        return False

    logger.info("twilio_message_sent", extra={"sid": message.sid, "wa_hash": hash(to)})
    return True
