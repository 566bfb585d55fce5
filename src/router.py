"""Turns one inbound message into one reply string."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import config
import formatter
import nlu
from account_store import AccountStore
from backend import BackendUnavailable, MediHutBackend
from normalize import normalize_order_id, normalize_phone
from orders import fetch_account, fetch_recent, resolve_order
from prescriptions import PrescriptionRejected, submit_prescription
from schemas import (
    Greeting,
    IncomingMessage,
    Intent,
    MenuOption,
    OrderIdentifier,
    OrderSummary,
    PrescriptionUpload,
    RecentOrdersRequest,
    SearchQuery,
    TrackOrderPrompt,
    Unrecognized,
)
from search import is_query_too_short, search_catalog

logger = logging.getLogger(__name__)

STATIC_MENU_REPLIES = {
    1: formatter.SEARCH_PROMPT,
    2: formatter.TRACK_PROMPT,
    4: formatter.PRESCRIPTION_HELP,
    5: formatter.SUPPORT_MESSAGE,
}


class MessageRouter:
    """Composition root. Holds collaborators only; nothing survives between messages."""

    def __init__(
        self,
        backend: Optional[MediHutBackend] = None,
        accounts: Optional[AccountStore] = None,
        country_code: Optional[str] = None,
    ):
        self._backend = backend
        self._accounts = accounts
        self._country_code = country_code

    @property
    def backend(self) -> MediHutBackend:
        if self._backend is None:
            self._backend = MediHutBackend()
        return self._backend

    @property
    def accounts(self) -> AccountStore:
        if self._accounts is None:
            self._accounts = AccountStore()
        return self._accounts

    @property
    def country_code(self) -> str:
        if self._country_code is None:
            self._country_code = config.get_settings().country_code
        return self._country_code

    def handle(self, message: IncomingMessage) -> str:
        """Always returns a non-empty reply; failures become a fixed apology."""
        return self.reply(message)[1]

    def reply(self, message: IncomingMessage) -> Tuple[Optional[Intent], str]:
        """Like ``handle`` but also returns the classified intent (None if classification failed)."""
        intent = None
        try:
            phone = normalize_phone(message.sender, self.country_code)
            intent = nlu.classify_message(message)
            logger.info("message_classified", extra={"wa_hash": hash(phone), "intent": intent.kind})
            text = self._dispatch(intent, phone)
        except Exception as exc:
            logger.exception("message_handling_error", extra={"error": str(exc)})
            return intent, formatter.GENERIC_APOLOGY
        return intent, text or formatter.GENERIC_APOLOGY

    def _dispatch(self, intent, phone: str) -> str:
        if isinstance(intent, Greeting):
            return formatter.WELCOME_MESSAGE
        if isinstance(intent, MenuOption):
            return self._menu_option(intent.option, phone)
        if isinstance(intent, TrackOrderPrompt):
            return formatter.TRACK_PROMPT
        if isinstance(intent, RecentOrdersRequest):
            return self._recent_orders(phone)
        if isinstance(intent, OrderIdentifier):
            return self._track_order(intent, phone)
        if isinstance(intent, SearchQuery):
            if intent.text is None:
                return formatter.SEARCH_PROMPT
            return self._search(intent.text)
        if isinstance(intent, PrescriptionUpload):
            return self._prescription(intent, phone)
        if isinstance(intent, Unrecognized):
            return formatter.MEDIA_NOT_RECOGNIZED
        return formatter.WELCOME_MESSAGE

    def _menu_option(self, option: int, phone: str) -> str:
        if option in STATIC_MENU_REPLIES:
            return STATIC_MENU_REPLIES[option]
        if option == 3:
            return self._recent_orders(phone)
        return self._account_info(phone)

    def _search(self, query: str) -> str:
        if is_query_too_short(query):
            return formatter.QUERY_TOO_SHORT
        try:
            results = search_catalog(query, self.backend)
        except BackendUnavailable:
            return formatter.SEARCH_UNAVAILABLE
        return formatter.format_search_results(results)

    def _track_order(self, intent: OrderIdentifier, phone: str) -> str:
        candidate = normalize_order_id(intent.raw)
        outcome = resolve_order(candidate, phone, self.backend)
        if isinstance(outcome, OrderSummary):
            return formatter.format_order_details(outcome, candidate.partial)
        # Letters-only short ids are usually product names ("aspirin").
        if intent.id_kind == "partial" and not any(ch.isdigit() for ch in candidate.original):
            logger.info("order_id_fallback_to_search", extra={"wa_hash": hash(phone)})
            return self._search(candidate.original)
        if outcome.backend_error:
            return formatter.TRACKING_UNAVAILABLE
        return formatter.format_order_not_found(candidate.partial)

    def _recent_orders(self, phone: str) -> str:
        return formatter.format_recent_orders(fetch_recent(phone, self.backend, self.accounts))

    def _account_info(self, phone: str) -> str:
        try:
            info = fetch_account(phone, self.accounts)
        except BackendUnavailable:
            return formatter.ACCOUNT_UNAVAILABLE
        return formatter.format_account_info(info)

    def _prescription(self, intent: PrescriptionUpload, phone: str) -> str:
        try:
            receipt = submit_prescription(
                phone, intent.media_url, intent.caption, self.backend, self.accounts
            )
        except (BackendUnavailable, PrescriptionRejected):
            return formatter.PRESCRIPTION_FAILED
        return formatter.format_prescription_receipt(receipt)
