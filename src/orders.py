"""Order resolution and recent order lookups with ordered fallback stages."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Tuple, Union

from pydantic import ValidationError

from account_store import AccountStore
from backend import BackendUnavailable, MediHutBackend
from schemas import (
    AccountInfo,
    OrderIdentifierCandidate,
    OrderNotFound,
    OrderSummary,
    RecentOrders,
)

logger = logging.getLogger(__name__)


def _lookup_ids(candidate: OrderIdentifierCandidate) -> List[Tuple[str, str]]:
    stages = [("partial", candidate.partial)]
    if candidate.original != candidate.partial:
        stages.append(("full", candidate.original))
    return stages


def resolve_order(
    candidate: OrderIdentifierCandidate,
    phone: str,
    backend: MediHutBackend,
) -> Union[OrderSummary, OrderNotFound]:
    """Look an order up by its partial id, then by the full id when they differ.

    Never raises: backend failures come back as ``OrderNotFound(backend_error=True)``.
    """
    backend_error = False
    for stage, order_id in _lookup_ids(candidate):
        try:
            record = backend.track_by_id(order_id, phone)
        except BackendUnavailable as exc:
            logger.info(
                "order_lookup_failed",
                extra={"stage": stage, "error": str(exc), "wa_hash": hash(phone)},
            )
            backend_error = True
            continue
        except Exception as exc:
            logger.error("order_lookup_error", extra={"stage": stage, "error": str(exc)})
            backend_error = True
            continue

        if record is None:
            logger.info("order_lookup_not_found", extra={"stage": stage, "wa_hash": hash(phone)})
            backend_error = False
            continue

        try:
            order = OrderSummary.from_record(record)
        except (AttributeError, ValidationError) as exc:
            logger.error("order_decode_error", extra={"stage": stage, "error": str(exc)})
            backend_error = True
            continue

        logger.info("order_found", extra={"stage": stage, "wa_hash": hash(phone)})
        return order

    return OrderNotFound(backend_error=backend_error)


def _recent_from_history(phone: str, backend: MediHutBackend, accounts: AccountStore) -> RecentOrders:
    records = backend.history_by_phone(phone)
    return RecentOrders(orders=[OrderSummary.from_record(record) for record in records])


def _recent_from_account_store(phone: str, backend: MediHutBackend, accounts: AccountStore) -> RecentOrders:
    account = accounts.find_by_phone(phone)
    if account is None:
        return RecentOrders(no_account=True)
    try:
        records = accounts.orders_by_user_id(account.id)
    except BackendUnavailable:
        records = []
    return RecentOrders(
        orders=[OrderSummary.from_record(record) for record in records],
        account=account,
    )


RecentStage = Callable[[str, MediHutBackend, AccountStore], RecentOrders]

RECENT_ORDER_STAGES: List[Tuple[str, RecentStage]] = [
    ("history_endpoint", _recent_from_history),
    ("account_store", _recent_from_account_store),
]


def fetch_recent(phone: str, backend: MediHutBackend, accounts: AccountStore) -> RecentOrders:
    """Recent orders for ``phone``, newest first.

    The account store is only consulted when the history endpoint itself fails;
    an empty history is a final answer.
    """
    for stage, lookup in RECENT_ORDER_STAGES:
        try:
            result = lookup(phone, backend, accounts)
        except Exception as exc:
            logger.error(
                "recent_orders_stage_failed",
                extra={"stage": stage, "error": str(exc), "wa_hash": hash(phone)},
            )
            continue
        logger.info(
            "recent_orders_fetched",
            extra={"stage": stage, "count": len(result.orders), "wa_hash": hash(phone)},
        )
        return result

    return RecentOrders(unavailable=True)


def fetch_account(phone: str, accounts: AccountStore) -> Optional[AccountInfo]:
    """Account details plus latest orders; None when no account uses ``phone``.

    Store errors propagate as ``BackendUnavailable``.
    """
    account = accounts.find_by_phone(phone)
    if account is None:
        return None
    try:
        records = accounts.orders_by_user_id(account.id)
    except BackendUnavailable:
        records = []
    return AccountInfo(
        account=account,
        orders=[OrderSummary.from_record(record) for record in records],
    )
