"""Canonical forms for sender phone numbers and order identifiers."""

from __future__ import annotations

import re
from typing import Optional

from schemas import OrderIdentifierCandidate

CHANNEL_PREFIX = "whatsapp:"
DEFAULT_COUNTRY_CODE = "+91"
SUBSCRIBER_DIGITS = 10

_WHITESPACE = re.compile(r"\s+")


def normalize_phone(raw: Optional[str], country_code: str = DEFAULT_COUNTRY_CODE) -> str:
    """Reduce a channel address to the 10 digit subscriber number.

    Malformed input is returned best-effort stripped; lookups with it simply find nothing.
    Applying this to an already normalized number returns it unchanged.
    """
    phone = (raw or "").strip()
    if phone.startswith(CHANNEL_PREFIX):
        phone = phone[len(CHANNEL_PREFIX):]
    if country_code and phone.startswith(country_code):
        phone = phone[len(country_code):]
    if len(phone) > SUBSCRIBER_DIGITS:
        phone = phone[-SUBSCRIBER_DIGITS:]
    return phone


def normalize_order_id(raw: Optional[str]) -> OrderIdentifierCandidate:
    """Split user input into the full identifier and the part before the first dash."""
    cleaned = _WHITESPACE.sub("", raw or "")
    if cleaned.startswith("#"):
        cleaned = cleaned[1:]
    partial = cleaned.split("-", 1)[0] if "-" in cleaned else cleaned
    return OrderIdentifierCandidate(original=cleaned, partial=partial)
