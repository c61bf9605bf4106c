"""Store fulfillment management CLI.

Usage:
    python src/manage.py setup-db     # Create the order tables
    python src/manage.py drop-db      # Drop the order tables
    python src/manage.py reconcile    # Re-drive stalled pending orders
"""

import argparse
import sys


def setup_database():
    from fulfillment.domain import fulfillment
    from fulfillment.utils.db import setup_db

    print("Initializing fulfillment domain...")
    fulfillment.init()
    print("Creating fulfillment database schema...")
    setup_db(fulfillment)
    print("Done.")


def drop_database():
    from fulfillment.domain import fulfillment
    from fulfillment.utils.db import drop_db

    print("Initializing fulfillment domain...")
    fulfillment.init()
    print("Dropping fulfillment database schema...")
    drop_db(fulfillment)
    print("Done.")


def reconcile(limit: int):
    from fulfillment.domain import fulfillment
    from fulfillment.services import build_services

    fulfillment.init()
    with fulfillment.domain_context():
        report = build_services().reconciler.sweep(limit=limit)

    print(f"Examined {report.examined} pending order(s).")
    for label, order_ids in (
        ("completed", report.completed),
        ("failed", report.failed),
        ("still pending", report.pending),
        ("deferred", report.errored),
    ):
        if order_ids:
            print(f"  {label}: {', '.join(order_ids)}")
    return report


def main():
    parser = argparse.ArgumentParser(description="Store fulfillment management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    reconcile_parser = subparsers.add_parser("reconcile", help="Re-drive stalled pending orders")
    reconcile_parser.add_argument("--limit", type=int, default=50, help="Maximum orders to process (default: 50)")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "reconcile":
        report = reconcile(args.limit)
        if report.errored:
            sys.exit(1)


if __name__ == "__main__":
    main()
