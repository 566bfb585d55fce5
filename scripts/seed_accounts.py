"""Seed a demo account and a few orders into the DynamoDB account table."""

from __future__ import annotations

import argparse
import json
import os
import uuid
from datetime import datetime, timedelta, timezone

import boto3

from account_store import AccountStore


def _demo_orders(count: int):
    now = datetime.now(timezone.utc)
    for index in range(count):
        yield {
            "id": str(uuid.uuid4()),
            "status": "Delivered" if index else "Processing",
            "total_price": 120 + index * 35,
            "created_at": (now - timedelta(days=index * 3)).isoformat(),
            "items": json.dumps(
                [
                    {"name": "Paracetamol 500mg", "quantity": 2, "price": 30},
                    {"name": "Vitamin C", "quantity": 1, "price": 60 + index * 35},
                ]
            ),
        }


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed a demo MediHut account")
    parser.add_argument("phone", help="10 digit phone number without country code")
    parser.add_argument("--username", default="Demo User")
    parser.add_argument("--orders", type=int, default=3)
    parser.add_argument("--table", default=os.getenv("DDB_TABLE"))
    parser.add_argument("--region", default=os.getenv("AWS_REGION", "us-east-1"))
    args = parser.parse_args()

    if not args.table:
        raise SystemExit("Set DDB_TABLE or pass --table")

    table = boto3.session.Session(region_name=args.region).resource("dynamodb").Table(args.table)
    store = AccountStore(table=table)

    user_id = str(uuid.uuid4())
    store.put_user(user_id, args.phone, args.username)
    for order in _demo_orders(args.orders):
        store.put_order(user_id, order)
        print(f"Seeded order {order['id']}")
    print(f"Seeded user {user_id} for phone {args.phone}")


if __name__ == "__main__":
    main()
