import json
from typing import Dict, Optional
from urllib.parse import urlencode

import formatter
import nlu
import whatsapp


def sample_event(message: str = "hi", extra: Optional[Dict[str, str]] = None) -> Dict[str, object]:
    form_payload = {
        "SmsMessageSid": "SMXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXX",
        "NumMedia": "0",
        "SmsSid": "SMXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXX",
        "SmsStatus": "received",
        "Body": message,
        "To": "whatsapp:+14155238886",
        "NumSegments": "1",
        "MessageSid": "SMXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXX",
        "AccountSid": "ACXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXX",
        "From": "whatsapp:+911234567890",
        "ApiVersion": "2010-04-01",
        "WaId": "911234567890",
    }
    form_payload.update(extra or {})
    return {
        "requestContext": {"http": {"method": "POST", "path": "/api/webhook"}},
        "headers": {"host": "example.com", "x-forwarded-proto": "https"},
        "body": urlencode(form_payload),
        "isBase64Encoded": False,
    }


def _capture_sends(monkeypatch):
    sent = []

    def mock_send_text(to, body):
        sent.append({"to": to, "body": body})
        return True

    monkeypatch.setattr(whatsapp, "send_text", mock_send_text)
    return sent


def test_greeting_sends_menu(monkeypatch, app_module):
    sent = _capture_sends(monkeypatch)

    response = app_module.lambda_handler(sample_event("Hello"), None)

    assert response["statusCode"] == 200
    assert sent == [{"to": "whatsapp:+911234567890", "body": formatter.WELCOME_MESSAGE}]


def test_order_tracking_uses_normalized_phone(monkeypatch, app_module, stub_backend):
    sent = _capture_sends(monkeypatch)
    stub_backend.orders["A12C1234"] = {"id": "A12C1234", "status": "Packed", "total_price": 75}

    app_module.lambda_handler(sample_event("#A12C1234"), None)

    assert stub_backend.calls == [("track_by_id", "A12C1234", "1234567890")]
    assert sent[0]["body"].startswith("🧾 *Order #A12C1234 Details*\n\n*Status:* Packed\n")


def test_media_message_is_handled_as_prescription(monkeypatch, app_module, stub_backend):
    sent = _capture_sends(monkeypatch)
    event = sample_event(
        "",
        {
            "NumMedia": "1",
            "MediaUrl0": "https://api.twilio.com/media/ME1",
            "MediaContentType0": "image/png",
        },
    )

    app_module.lambda_handler(event, None)

    assert stub_backend.calls[0][0:3] == ("upload_prescription", "1234567890", "https://api.twilio.com/media/ME1")
    assert "Reference #RX-1" in sent[0]["body"]


def test_delivery_failure_still_acknowledges(monkeypatch, app_module):
    monkeypatch.setattr(whatsapp, "send_text", lambda to, body: False)

    response = app_module.lambda_handler(sample_event("5"), None)

    assert response["statusCode"] == 200
    assert response["body"] == "OK"


def test_json_chat_endpoint(app_module):
    event = {
        "requestContext": {"http": {"method": "POST", "path": "/chat"}},
        "body": json.dumps({"text": "2", "user": "whatsapp:+911234567890"}),
    }

    response = app_module.lambda_handler(event, None)
    body = json.loads(response["body"])

    assert response["statusCode"] == 200
    assert body == {"answer": formatter.TRACK_PROMPT, "intent": "menu_option"}


def test_json_chat_endpoint_classifies_once(monkeypatch, app_module):
    calls = []
    classify_message = nlu.classify_message

    def counting(message):
        calls.append(message.text)
        return classify_message(message)

    monkeypatch.setattr(nlu, "classify_message", counting)
    event = {
        "requestContext": {"http": {"method": "POST", "path": "/chat"}},
        "body": json.dumps({"text": "recent orders", "user": "whatsapp:+911234567890"}),
    }

    body = json.loads(app_module.lambda_handler(event, None)["body"])

    assert body["intent"] == "recent_orders"
    assert calls == ["recent orders"]
