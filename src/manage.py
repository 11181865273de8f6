"""Mutual Reviews management CLI.

Creates and drops the database schema, and runs the maintenance sweeps from
a scheduler that prefers a command over an HTTP call.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
    python src/manage.py expire     # Expire overdue draft reviews
    python src/manage.py remind     # Send due review reminders
"""

import argparse
import sys


def setup_database():
    """Create the reviews database schema."""
    from reviews.domain import reviews
    from reviews.utils.db import setup_db

    print("Initializing reviews domain...")
    reviews.init()
    print("Creating reviews database schema...")
    setup_db(reviews)
    print("Done.")


def drop_database():
    """Drop the reviews database schema."""
    from reviews.domain import reviews
    from reviews.utils.db import drop_db

    print("Initializing reviews domain...")
    reviews.init()
    print("Dropping reviews database schema...")
    drop_db(reviews)
    print("Done.")


def run_sweep(name):
    """Run one maintenance sweep and report how many reviews it touched."""
    from reviews.domain import reviews
    from reviews.review.expiry import ExpireOverdueReviews
    from reviews.review.reminders import SendReviewReminders

    commands = {
        "expire": ExpireOverdueReviews,
        "remind": SendReviewReminders,
    }

    reviews.init()
    with reviews.domain_context():
        processed = reviews.process(commands[name](), asynchronous=False)
    print(f"{name}: {processed or 0} review(s) processed.")


def main():
    parser = argparse.ArgumentParser(description="Mutual Reviews management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    subparsers.add_parser("expire", help="Expire overdue draft reviews")
    subparsers.add_parser("remind", help="Send due review reminders")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command in ("expire", "remind"):
        run_sweep(args.command)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
