"""Probe the MediHut search endpoints the bot depends on."""

from __future__ import annotations

import argparse
import os
import sys

import requests

PROBES = (
    ("medicines", "/api/medicines/search", "paracetamol"),
    ("products", "/api/products/search", "cream"),
)


def _probe(base_url: str, name: str, path: str, query: str, timeout: float) -> bool:
    try:
        response = requests.get(
            f"{base_url}{path}", params={"query": query, "limit": 5}, timeout=timeout
        )
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as exc:
        print(f"[FAIL] {name}: {exc}")
        return False

    items = payload.get(name) if isinstance(payload, dict) else None
    if not isinstance(items, list):
        print(f"[FAIL] {name}: unexpected response format")
        return False

    print(f"[OK] {name}: {len(items)} results for {query!r}")
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Check connectivity to the MediHut server")
    parser.add_argument("--server-url", default=os.getenv("SERVER_URL", "https://localhost:5001"))
    parser.add_argument("--timeout", type=float, default=float(os.getenv("BACKEND_TIMEOUT_SECONDS", "8")))
    args = parser.parse_args()

    base_url = args.server_url.rstrip("/")
    print(f"Testing connectivity to {base_url} ...")
    results = [_probe(base_url, name, path, query, args.timeout) for name, path, query in PROBES]

    if all(results):
        print("All search endpoints are working.")
    elif any(results):
        print("Some search endpoints failed; search may be limited.")
    else:
        print("Both search endpoints failed. Check SERVER_URL and that the server is running.")
        sys.exit(1)


if __name__ == "__main__":
    main()
