"""Pydantic models for Twilio WhatsApp payloads, intents and order data."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_ORDER_STATUS = "Processing"


class TwilioWebhookPayload(BaseModel):
    """Simplified view of Twilio WhatsApp webhook payload."""

    model_config = ConfigDict(extra="allow")

    from_number: str = Field(alias="From")
    to_number: Optional[str] = Field(default=None, alias="To")
    wa_id: Optional[str] = Field(default=None, alias="WaId")
    body: str = Field(default="", alias="Body")
    num_media: int = Field(default=0, alias="NumMedia")
    message_sid: Optional[str] = Field(default=None, alias="MessageSid")

    @field_validator("num_media", mode="before")
    @classmethod
    def _parse_num_media(cls, value: Any) -> int:
        if value in (None, ""):
            return 0
        try:
            return int(value)
        except (ValueError, TypeError):
            return 0

    def attachments(self) -> List["Attachment"]:
        """Collect the MediaUrlN / MediaContentTypeN pairs Twilio sends as flat fields."""
        extra = self.model_extra or {}
        found: List[Attachment] = []
        for index in range(self.num_media):
            url = extra.get(f"MediaUrl{index}")
            if not url:
                continue
            found.append(
                Attachment(url=url, content_type=extra.get(f"MediaContentType{index}") or "")
            )
        return found


class Attachment(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    content_type: str = ""


class IncomingMessage(BaseModel):
    """One inbound message, already decoded from the transport."""

    model_config = ConfigDict(frozen=True)

    sender: str
    text: str = ""
    attachments: List[Attachment] = Field(default_factory=list)


# Intents. Exactly one is produced per message.


class _Intent(BaseModel):
    model_config = ConfigDict(frozen=True)


class Greeting(_Intent):
    kind: Literal["greeting"] = "greeting"


class MenuOption(_Intent):
    kind: Literal["menu_option"] = "menu_option"
    option: int = Field(ge=1, le=6)


class TrackOrderPrompt(_Intent):
    kind: Literal["track_order_prompt"] = "track_order_prompt"


class RecentOrdersRequest(_Intent):
    kind: Literal["recent_orders"] = "recent_orders"


class OrderIdentifier(_Intent):
    kind: Literal["order_identifier"] = "order_identifier"
    raw: str
    id_kind: Literal["full", "partial"]


class SearchQuery(_Intent):
    """Catalog search. ``text`` is None when the user still has to name a product."""

    kind: Literal["search_query"] = "search_query"
    text: Optional[str] = None


class PrescriptionUpload(_Intent):
    kind: Literal["prescription_upload"] = "prescription_upload"
    caption: str = ""
    media_url: str


class Unrecognized(_Intent):
    kind: Literal["unrecognized"] = "unrecognized"


Intent = Union[
    Greeting,
    MenuOption,
    TrackOrderPrompt,
    RecentOrdersRequest,
    OrderIdentifier,
    SearchQuery,
    PrescriptionUpload,
    Unrecognized,
]


class OrderIdentifierCandidate(BaseModel):
    model_config = ConfigDict(frozen=True)

    original: str
    partial: str


def _number(value: Any, default: float = 0) -> float:
    if value in (None, ""):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _text(value: Any) -> Optional[str]:
    if value in (None, ""):
        return None
    return str(value)


def _amount(value: Any) -> Union[float, str]:
    """Totals are displayed as received, so numeric strings keep their digits."""
    if isinstance(value, str):
        return value.strip() or 0
    if isinstance(value, bool):
        return 0
    return _number(value)


class OrderItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    quantity: float = 1
    unit_price: float = 0

    @classmethod
    def from_record(cls, item: Dict[str, Any]) -> "OrderItem":
        name = item.get("name") or item.get("medicine_name") or item.get("product_name")
        return cls(
            name=_text(name),
            quantity=_number(item.get("quantity"), default=1) or 1,
            unit_price=_number(item.get("price")),
        )

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


def decode_items(raw: Any) -> List[Dict[str, Any]]:
    """Items arrive either as a list or as a JSON encoded string."""
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("order_items_decode_error", extra={"error": str(exc)})
            return []
    if not isinstance(raw, list):
        return []
    return [item for item in raw if isinstance(item, dict)]


class OrderSummary(BaseModel):
    """Canonical order shape, whatever field names the backend used."""

    model_config = ConfigDict(frozen=True)

    id: str
    status: str = DEFAULT_ORDER_STATUS
    created_at: Optional[str] = None
    total_amount: Union[float, str] = 0
    items: List[OrderItem] = Field(default_factory=list)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "OrderSummary":
        total = record.get("total_price") or record.get("total_amount") or 0
        created_at = record.get("created_at")
        return cls(
            id=str(record.get("id") or record.get("order_id") or ""),
            status=_text(record.get("status")) or DEFAULT_ORDER_STATUS,
            created_at=str(created_at) if created_at else None,
            total_amount=_amount(total),
            items=[OrderItem.from_record(item) for item in decode_items(record.get("items"))],
        )


class OrderNotFound(BaseModel):
    """Resolver outcome when no order could be produced."""

    model_config = ConfigDict(frozen=True)

    backend_error: bool = False


class UserAccount(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    phone: str
    display_name: Optional[str] = None


class SearchHit(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = "Unknown"
    manufacturer: str = "Unknown"
    price: Any = "N/A"
    prescription_required: bool = False
    kind: Literal["medicine", "product"] = "medicine"

    @classmethod
    def from_record(cls, record: Dict[str, Any], kind: str) -> "SearchHit":
        return cls(
            name=record.get("Product Name") or record.get("name") or "Unknown",
            manufacturer=record.get("Brand Name") or record.get("manufacturer") or "Unknown",
            price=record.get("MRP") or record.get("price") or "N/A",
            prescription_required=bool(record.get("prescription_required")),
            kind=kind,
        )


class SearchResults(BaseModel):
    query: str
    kind: Literal["medicine", "product"] = "medicine"
    hits: List[SearchHit] = Field(default_factory=list)
    count: int = 0


class RecentOrders(BaseModel):
    """Outcome of the recent orders lookup, including which tier answered."""

    orders: List[OrderSummary] = Field(default_factory=list)
    account: Optional[UserAccount] = None
    no_account: bool = False
    unavailable: bool = False


class AccountInfo(BaseModel):
    account: UserAccount
    orders: List[OrderSummary] = Field(default_factory=list)


class PrescriptionReceipt(BaseModel):
    reference_id: str
    via_fallback: bool = False
