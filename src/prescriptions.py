"""Prescription intake: upload endpoint first, account store when it is unreachable."""

from __future__ import annotations

import logging
from typing import Optional

from account_store import AccountStore
from backend import BackendUnavailable, MediHutBackend
from schemas import PrescriptionReceipt

logger = logging.getLogger(__name__)

DEFAULT_CAPTION = "Prescription uploaded via WhatsApp"


class PrescriptionRejected(RuntimeError):
    """The upload endpoint answered but did not accept the prescription."""


def submit_prescription(
    phone: str,
    media_url: str,
    caption: Optional[str],
    backend: MediHutBackend,
    accounts: AccountStore,
) -> PrescriptionReceipt:
    caption = caption or DEFAULT_CAPTION
    try:
        payload = backend.upload_prescription(phone, media_url, caption)
    except BackendUnavailable as exc:
        logger.warning("prescription_upload_unreachable", extra={"error": str(exc), "wa_hash": hash(phone)})
        reference_id = accounts.save_prescription(phone, media_url, caption)
        logger.info("prescription_stored_directly", extra={"wa_hash": hash(phone)})
        return PrescriptionReceipt(reference_id=reference_id, via_fallback=True)

    if not payload.get("success"):
        logger.error("prescription_upload_rejected", extra={"wa_hash": hash(phone)})
        raise PrescriptionRejected("upload endpoint did not accept the prescription")

    reference_id = payload.get("prescriptionId") or payload.get("referenceNumber") or "Unknown"
    logger.info("prescription_uploaded", extra={"wa_hash": hash(phone)})
    return PrescriptionReceipt(reference_id=str(reference_id))
