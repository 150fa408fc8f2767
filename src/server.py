"""Protean Engine runner for the storefront domain.

Only needed when event processing is asynchronous (the ``production``
overlay): the Engine picks up raised events and runs the notification
handlers outside the request.

Usage:
    python src/server.py
    python src/server.py --test-mode   # Drain pending messages and exit
"""

import argparse
import asyncio

from protean.server.engine import Engine

from storefront.utils.logging import configure_logging


async def run(test_mode: bool = False):
    from storefront.domain import storefront

    storefront.init()
    engine = Engine(storefront, test_mode=test_mode)
    await engine.run()


def main():
    parser = argparse.ArgumentParser(description="Storefront Engine runner")
    parser.add_argument(
        "--test-mode",
        action="store_true",
        help="Process pending messages once and exit",
    )
    args = parser.parse_args()

    configure_logging()
    asyncio.run(run(args.test_mode))


if __name__ == "__main__":
    main()
