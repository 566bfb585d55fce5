import os
import sys
from typing import Any, Dict, Generator, List, Optional

import boto3
import pytest
from moto import mock_aws

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(PROJECT_ROOT, "src")

if SRC_ROOT not in sys.path:
    sys.path.insert(0, SRC_ROOT)

import config  # noqa: E402
from backend import BackendUnavailable  # noqa: E402


REQUIRED_ENV = {
    "APP_ENV": "test",
    "AWS_REGION": "us-east-1",
    "AWS_ACCESS_KEY_ID": "testing",
    "AWS_SECRET_ACCESS_KEY": "testing",
    "AWS_SESSION_TOKEN": "testing",
    "TWILIO_SECRET_NAME": "twilio-bot-secrets",
    "TWILIO_WHATSAPP_FROM": "whatsapp:+14155238886",
    "TWILIO_VALIDATE_SIGNATURE": "false",
    "DDB_TABLE": "test-accounts",
    "SERVER_URL": "https://medihut.test",
}

SENDER = "whatsapp:+911234567890"
PHONE = "1234567890"


def _clear_config_caches() -> None:
    config.get_settings.cache_clear()
    config.get_twilio_secrets.cache_clear()
    config.get_twilio_validator.cache_clear()
    config._boto_session.cache_clear()


@pytest.fixture(autouse=True)
def _env_vars(monkeypatch) -> Generator[None, None, None]:
    for key, value in REQUIRED_ENV.items():
        monkeypatch.setenv(key, value)
    monkeypatch.setenv("TWILIO_ACCOUNT_SID", "ACXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXX")
    monkeypatch.setenv("TWILIO_AUTH_TOKEN", "auth-token")
    _clear_config_caches()
    yield
    _clear_config_caches()


@pytest.fixture
def aws_mock() -> Generator[None, None, None]:
    with mock_aws():
        _clear_config_caches()
        yield
        _clear_config_caches()


@pytest.fixture
def accounts_table(aws_mock):
    session = boto3.session.Session(region_name=REQUIRED_ENV["AWS_REGION"])
    dynamodb = session.resource("dynamodb")
    table = dynamodb.create_table(
        TableName=REQUIRED_ENV["DDB_TABLE"],
        KeySchema=[
            {"AttributeName": "pk", "KeyType": "HASH"},
            {"AttributeName": "sk", "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[
            {"AttributeName": "pk", "AttributeType": "S"},
            {"AttributeName": "sk", "AttributeType": "S"},
        ],
        BillingMode="PAY_PER_REQUEST",
    )
    return table


@pytest.fixture
def account_store(accounts_table):
    from account_store import AccountStore

    return AccountStore(table=accounts_table)


class StubBackend:
    """Stands in for MediHutBackend. Values that are exceptions get raised."""

    def __init__(
        self,
        orders: Optional[Dict[str, Any]] = None,
        history: Any = None,
        search_results: Optional[Dict[str, Any]] = None,
        upload: Any = None,
    ):
        self.orders = orders or {}
        self.history = history if history is not None else []
        self.search_results = search_results or {}
        self.upload = upload if upload is not None else {"success": True, "prescriptionId": "RX-1"}
        self.calls: List[tuple] = []

    @staticmethod
    def _value(value):
        if isinstance(value, Exception):
            raise value
        return value

    def track_by_id(self, order_id: str, phone: str):
        self.calls.append(("track_by_id", order_id, phone))
        return self._value(self.orders.get(order_id, BackendUnavailable("404 Not Found")))

    def history_by_phone(self, phone: str):
        self.calls.append(("history_by_phone", phone))
        return self._value(self.history)

    def search(self, kind: str, query: str, limit: int = 100):
        self.calls.append(("search", kind, query))
        return self._value(self.search_results.get(kind, {"items": [], "count": 0}))

    def upload_prescription(self, phone: str, media_url: str, caption: str):
        self.calls.append(("upload_prescription", phone, media_url, caption))
        return self._value(self.upload)


@pytest.fixture
def stub_backend() -> StubBackend:
    return StubBackend()


@pytest.fixture
def router_factory(account_store):
    from router import MessageRouter

    def _build(backend: StubBackend) -> MessageRouter:
        return MessageRouter(backend=backend, accounts=account_store, country_code="+91")

    return _build


@pytest.fixture
def app_module(monkeypatch, stub_backend, router_factory):
    import app
    import whatsapp

    whatsapp._twilio_client.cache_clear()
    monkeypatch.setattr(app, "ROUTER", router_factory(stub_backend))
    return app
