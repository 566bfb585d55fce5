"""HTTP client for the MediHut server (catalog search, order tracking, uploads)."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

import config

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 100
SEARCH_PATHS = {
    "medicine": ("/api/medicines/search", "medicines"),
    "product": ("/api/products/search", "products"),
}


class BackendUnavailable(RuntimeError):
    """Raised when a collaborator cannot be reached or answers with an error."""


class MediHutBackend:
    """Thin wrapper over the MediHut REST API. All calls share one timeout."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        settings = config.get_settings()
        self.base_url = (base_url or settings.server_url).rstrip("/")
        self.timeout = timeout or settings.backend_timeout_seconds
        self._session = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            logger.error(
                "backend_request_error",
                extra={"method": method, "path": path, "error": str(exc)},
            )
            raise BackendUnavailable(f"{method} {path} failed") from exc
        except ValueError as exc:
            logger.error("backend_invalid_json", extra={"method": method, "path": path})
            raise BackendUnavailable(f"{method} {path} returned invalid JSON") from exc

        if not isinstance(payload, dict):
            raise BackendUnavailable(f"{method} {path} returned unexpected payload")
        return payload

    def search(self, kind: str, query: str, limit: int = SEARCH_LIMIT) -> Dict[str, Any]:
        """Search medicines or products. Returns ``{"items": [...], "count": n}``."""
        path, key = SEARCH_PATHS[kind]
        cleaned = query.strip()
        if not cleaned:
            return {"items": [], "count": 0}

        payload = self._request("GET", path, params={"query": cleaned, "limit": limit})
        items = payload.get(key) or []
        if not isinstance(items, list):
            logger.warning("backend_search_unexpected_format", extra={"kind": kind})
            items = []
        count = payload.get("count")
        if not isinstance(count, int):
            count = len(items)
        return {"items": items, "count": count}

    def track_by_id(self, order_id: str, phone: str) -> Optional[Dict[str, Any]]:
        """Return the raw order record, or None when the server has no such order."""
        payload = self._request("GET", f"/orders/{order_id}/track", params={"phone": phone})
        order = payload.get("order")
        return order if isinstance(order, dict) else None

    def history_by_phone(self, phone: str) -> List[Dict[str, Any]]:
        payload = self._request("GET", "/orders/history-by-phone", params={"phone": phone})
        orders = payload.get("orders") or []
        return [order for order in orders if isinstance(order, dict)]

    def upload_prescription(self, phone: str, media_url: str, caption: str) -> Dict[str, Any]:
        return self._request(
            "POST",
            "/upload/upload-prescription",
            json={"phone": phone, "mediaUrl": media_url, "caption": caption},
        )
