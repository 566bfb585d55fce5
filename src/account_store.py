"""DynamoDB backed account store: users, their orders and prescription uploads."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

import config
from backend import BackendUnavailable
from schemas import UserAccount

logger = logging.getLogger(__name__)

ORDERS_LIMIT = 5


def _user_key(phone: str) -> Dict[str, str]:
    return {"pk": f"phone#{phone}", "sk": "user"}


def _orders_pk(user_id: str) -> str:
    return f"user#{user_id}"


def _to_dynamodb(value: Any) -> Any:
    """Convert Python values to DynamoDB compatible formats."""
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {key: _to_dynamodb(val) for key, val in value.items()}
    if isinstance(value, list):
        return [_to_dynamodb(item) for item in value]
    return value


def _from_dynamodb(value: Any) -> Any:
    """Convert DynamoDB types back to native Python types."""
    if isinstance(value, Decimal):
        return float(value) if value % 1 else int(value)
    if isinstance(value, dict):
        return {key: _from_dynamodb(val) for key, val in value.items()}
    if isinstance(value, list):
        return [_from_dynamodb(item) for item in value]
    return value


class AccountStore:
    """Single-table layout keyed by ``pk``/``sk``.

    * ``phone#<phone>`` / ``user`` holds the account.
    * ``user#<id>`` / ``order#<created_at>#<order id>`` holds one order each.
    * ``phone#<phone>`` / ``prescription#<created_at>#<id>`` holds fallback uploads.
    """

    def __init__(self, table=None):
        if table is None:
            settings = config.get_settings()
            table = config.get_dynamodb_resource().Table(settings.dynamodb_table)
        self._table = table

    def find_by_phone(self, phone: str) -> Optional[UserAccount]:
        """Return the account registered for ``phone``, or None."""
        try:
            response = self._table.get_item(Key=_user_key(phone))
        except (BotoCoreError, ClientError) as exc:
            logger.error("dynamodb_get_user_error", extra={"error": str(exc), "wa_hash": hash(phone)})
            raise BackendUnavailable("account lookup failed") from exc

        item = response.get("Item")
        if not item or item.get("user_id") in (None, ""):
            return None
        return UserAccount(
            id=str(item.get("user_id")),
            phone=phone,
            display_name=item.get("username") or None,
        )

    def orders_by_user_id(self, user_id: str, limit: int = ORDERS_LIMIT) -> List[Dict[str, Any]]:
        """Raw order records for ``user_id``, newest first."""
        try:
            response = self._table.query(
                KeyConditionExpression=Key("pk").eq(_orders_pk(user_id))
                & Key("sk").begins_with("order#"),
                ScanIndexForward=False,
                Limit=limit,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("dynamodb_query_orders_error", extra={"error": str(exc), "user_id": user_id})
            raise BackendUnavailable("order listing failed") from exc

        records = []
        for item in response.get("Items", []):
            record = _from_dynamodb(item)
            record.pop("pk", None)
            record.pop("sk", None)
            records.append(record)
        return records

    def save_prescription(self, phone: str, media_url: str, caption: str) -> str:
        """Persist a prescription upload and return its reference id."""
        prescription_id = str(uuid.uuid4())
        created_at = datetime.now(timezone.utc).isoformat()
        item = {
            "pk": f"phone#{phone}",
            "sk": f"prescription#{created_at}#{prescription_id}",
            "id": prescription_id,
            "user_phone": phone,
            "media_url": media_url,
            "caption": caption,
            "status": "pending",
            "created_at": created_at,
        }
        try:
            self._table.put_item(Item=item)
        except (BotoCoreError, ClientError) as exc:
            logger.error("dynamodb_put_prescription_error", extra={"error": str(exc), "wa_hash": hash(phone)})
            raise BackendUnavailable("prescription insert failed") from exc
        return prescription_id

    def put_user(self, user_id: str, phone: str, username: Optional[str] = None) -> None:
        self._table.put_item(
            Item={**_user_key(phone), "user_id": user_id, "phone": phone, "username": username}
        )

    def put_order(self, user_id: str, order: Dict[str, Any]) -> None:
        created_at = order.get("created_at") or datetime.now(timezone.utc).isoformat()
        item = {
            "pk": _orders_pk(user_id),
            "sk": f"order#{created_at}#{order['id']}",
            **_to_dynamodb(order),
            "created_at": created_at,
        }
        self._table.put_item(Item=item)
