"""AWS Lambda entry point for the MediHut WhatsApp bot."""

from __future__ import annotations

import base64
import json
import logging
from typing import Any, Dict, Optional, Tuple

from urllib.parse import parse_qs

import config, whatsapp
from router import MessageRouter
from schemas import IncomingMessage, TwilioWebhookPayload

config.configure_logging()
logger = logging.getLogger(__name__)

HEALTH_BODY = {"status": "ok", "message": "WhatsApp bot server is running"}
ROOT_BODY = "MediHut WhatsApp Bot Server is running. Send messages to our WhatsApp number to interact!"


def _method_from_event(event: Dict[str, Any]) -> str:
    """Extract HTTP method from API Gateway event."""
    if "requestContext" in event:
        http = event["requestContext"].get("http", {})
        if "method" in http:
            return http["method"]
    return event.get("httpMethod", "")


def _path_from_event(event: Dict[str, Any]) -> str:
    return event.get("requestContext", {}).get("http", {}).get("path", "") or event.get("path", "")


def _response(body: str, status: int = 200, headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    response_headers = {"Content-Type": "text/plain"}
    if headers:
        response_headers.update(headers)
    return {"statusCode": status, "headers": response_headers, "body": body}


def _json_response(body: Dict[str, Any], status: int = 200) -> Dict[str, Any]:
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }


def _decode_body(event: Dict[str, Any]) -> str:
    body = event.get("body") or ""
    if event.get("isBase64Encoded"):
        body = base64.b64decode(body).decode("utf-8")
    return body


def _parse_json(event: Dict[str, Any]) -> Dict[str, Any]:
    raw = _decode_body(event)
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return {}
    return parsed if isinstance(parsed, dict) else {}


def _parse_twilio_payload(event: Dict[str, Any]) -> Tuple[Optional[TwilioWebhookPayload], Dict[str, str]]:
    raw_body = _decode_body(event)
    if not raw_body:
        return None, {}

    parsed = {key: values[0] for key, values in parse_qs(raw_body, keep_blank_values=True).items() if values}
    if not parsed:
        return None, {}

    try:
        payload = TwilioWebhookPayload.model_validate(parsed)
    except Exception as exc:
        logger.error("payload_parse_error", extra={"error": str(exc)})
        return None, parsed

    return payload, parsed


def _full_request_url(event: Dict[str, Any]) -> str:
    headers = event.get("headers") or {}
    proto = headers.get("x-forwarded-proto") or headers.get("X-Forwarded-Proto", "https")
    host = headers.get("host") or headers.get("Host", "")
    path = _path_from_event(event)
    query = event.get("rawQueryString") or ""
    url = f"{proto}://{host}{path}"
    if query:
        url = f"{url}?{query}"
    return url


def _validate_twilio_signature(event: Dict[str, Any], params: Dict[str, str]) -> bool:
    settings = config.get_settings()
    if not settings.twilio_validate_signature:
        return True

    headers = event.get("headers") or {}
    signature = headers.get("x-twilio-signature") or headers.get("X-Twilio-Signature")
    if not signature:
        logger.warning("missing_twilio_signature")
        return False

    validator = config.get_twilio_validator()
    url = _full_request_url(event)
    try:
        return bool(validator.validate(url, params, signature))
    except Exception as exc:
        logger.error("twilio_signature_validation_error", extra={"error": str(exc)})
        return False


ROUTER = MessageRouter()


def lambda_handler(event: Dict[str, Any], _: Any) -> Dict[str, Any]:
    """Entrypoint for AWS Lambda."""
    method = _method_from_event(event)
    path = _path_from_event(event)
    logger.debug("incoming_event", extra={"method": method, "path": path})

    if method == "GET" and path.endswith("/health"):
        return _json_response(HEALTH_BODY)
    if method == "GET" and path in ("", "/"):
        return _response(ROOT_BODY)
    if method != "POST":
        return _response("Method Not Allowed", status=405)

    if path.endswith("/chat"):
        body = _parse_json(event)
        text = (body.get("text") or body.get("q") or "").strip()
        sender = (body.get("user") or "").strip()
        if not sender:
            return _json_response({"error": "user is required"}, status=400)
        message = IncomingMessage(sender=sender, text=text)
        intent, answer = ROUTER.reply(message)
        return _json_response({"answer": answer, "intent": intent.kind if intent else None})

    payload, params = _parse_twilio_payload(event)
    if not payload:
        return _json_response({"status": "ignored"}, status=200)

    if not _validate_twilio_signature(event, params):
        return _response("Forbidden", status=403)

    return _handle_message(payload)


def _handle_message(payload: TwilioWebhookPayload) -> Dict[str, Any]:
    message = IncomingMessage(
        sender=payload.from_number,
        text=payload.body.strip(),
        attachments=payload.attachments(),
    )
    logger.info(
        "message_received",
        extra={
            "wa_hash": hash(payload.wa_id or payload.from_number),
            "num_media": payload.num_media,
        },
    )

    reply_text = ROUTER.handle(message)
    delivered = whatsapp.send_text(payload.from_number, reply_text)
    if not delivered:
        logger.error("reply_not_delivered", extra={"wa_hash": hash(payload.from_number)})

    return _response("OK")
