"""Keyword and pattern based intent classification."""

from __future__ import annotations

import re
from typing import Callable, List, Tuple

from schemas import (
    Greeting,
    IncomingMessage,
    Intent,
    MenuOption,
    OrderIdentifier,
    PrescriptionUpload,
    RecentOrdersRequest,
    SearchQuery,
    TrackOrderPrompt,
    Unrecognized,
)

GREETING_KEYWORDS = frozenset({"hi", "hey", "hello", "hola", "hy", "start", "menu", "help"})
SEARCH_PROMPT_KEYWORDS = frozenset({"search", "medicines", "medicine", "products"})
PRESCRIPTION_CAPTION_KEYWORDS = ("prescription", "medicine")

MENU_OPTION_PATTERN = re.compile(r"^[1-6]$")
FULL_ORDER_ID_PATTERN = re.compile(
    r"^#?([a-f0-9]{8}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{12})$", re.IGNORECASE
)
# Also matches 6-12 letter search terms ("aspirin"); identifiers win.
SHORT_ORDER_ID_PATTERN = re.compile(r"^#?([A-Za-z0-9]{6,12})$")

Predicate = Callable[[str, str], bool]
Constructor = Callable[[str, str], Intent]

# Evaluated top to bottom; the first matching predicate decides the intent.
# Each entry receives (stripped text, lowercased stripped text).
RULES: List[Tuple[str, Predicate, Constructor]] = [
    ("blank", lambda text, lower: not text, lambda text, lower: Greeting()),
    (
        "greeting",
        lambda text, lower: lower in GREETING_KEYWORDS,
        lambda text, lower: Greeting(),
    ),
    (
        "menu_option",
        lambda text, lower: bool(MENU_OPTION_PATTERN.match(lower)),
        lambda text, lower: MenuOption(option=int(lower)),
    ),
    (
        "track_order",
        lambda text, lower: lower == "track" or "track order" in lower,
        lambda text, lower: TrackOrderPrompt(),
    ),
    (
        "recent_orders",
        lambda text, lower: lower in ("recent", "recent orders") or "my order" in lower,
        lambda text, lower: RecentOrdersRequest(),
    ),
    (
        "full_order_id",
        lambda text, lower: bool(FULL_ORDER_ID_PATTERN.match(text)),
        lambda text, lower: OrderIdentifier(raw=text, id_kind="full"),
    ),
    (
        "short_order_id",
        lambda text, lower: bool(SHORT_ORDER_ID_PATTERN.match(text)),
        lambda text, lower: OrderIdentifier(raw=text, id_kind="partial"),
    ),
    (
        "search_prompt",
        lambda text, lower: lower in SEARCH_PROMPT_KEYWORDS,
        lambda text, lower: SearchQuery(text=None),
    ),
]


def classify(text: str) -> Intent:
    """Map raw message text to exactly one intent. Never raises."""
    stripped = (text or "").strip()
    lowered = stripped.lower()
    for _name, predicate, construct in RULES:
        if predicate(stripped, lowered):
            return construct(stripped, lowered)
    return SearchQuery(text=stripped)


def _looks_like_prescription(message: IncomingMessage) -> bool:
    caption = message.text.lower()
    if any(keyword in caption for keyword in PRESCRIPTION_CAPTION_KEYWORDS):
        return True
    return any(
        "image" in attachment.content_type or "pdf" in attachment.content_type
        for attachment in message.attachments
    )


def classify_message(message: IncomingMessage) -> Intent:
    """Classify a full inbound message, media first."""
    if message.attachments:
        if _looks_like_prescription(message):
            return PrescriptionUpload(
                caption=message.text.strip(), media_url=message.attachments[0].url
            )
        return Unrecognized()
    return classify(message.text)
