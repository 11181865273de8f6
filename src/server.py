"""Protean Engine runner for the reviews domain.

In production, events are processed asynchronously. The Engine runs:
- OutboxProcessor: polls the outbox table, publishes review events to Redis Streams
- StreamSubscriptions: reads Redis Streams, invokes the review projectors, the
  notification handler and the BookingCompleted handler

Usage:
    python src/server.py
    python src/server.py --test-mode   # Process pending messages and exit
"""

import argparse
import asyncio

from protean.server.engine import Engine


def _get_domain():
    from reviews.domain import reviews

    reviews.init()
    return reviews


async def run(test_mode=False):
    engine = Engine(_get_domain(), test_mode=test_mode)
    await engine.run()


def main():
    parser = argparse.ArgumentParser(description="Mutual Reviews Engine runner")
    parser.add_argument(
        "--test-mode",
        action="store_true",
        help="Drain pending messages once and exit",
    )
    args = parser.parse_args()

    asyncio.run(run(test_mode=args.test_mode))


if __name__ == "__main__":
    main()
