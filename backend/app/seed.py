"""
Portbook Backend - Sample Data Seeder
=======================================

What:  Loads a handful of well-known ports and their shipping lines.
How:   Every destination goes through DestinationService.create_destination,
       one session per destination, so the usual invariants apply and one
       failure does not undo the others.
Usage:
    python -m app.seed                 # add whatever is missing
    python -m app.seed --reset         # delete everything first
    python -m app.seed --print-token   # also print a development token
"""

import argparse
import asyncio
import logging
import sys
from typing import Any, Dict, List

from sqlalchemy import delete

from app.database import async_session_factory, dispose_engine
from app.exceptions import ConflictError, PortbookError
from app.main import setup_logging
from app.models.destination import Destination, ShippingLine
from app.schemas.destination import DestinationCreate
from app.security import create_access_token
from app.services.destination_service import destination_service

logger = logging.getLogger("portbook.seed")

SAMPLE_DESTINATIONS: List[Dict[str, Any]] = [
    {
        "destinationName": "Port of Los Angeles",
        "shippingLines": [{"lineName": "Maersk Line"}, {"lineName": "COSCO Shipping"}],
    },
    {
        "destinationName": "Port of Long Beach",
        "shippingLines": [{"lineName": "Evergreen Line"}, {"lineName": "Yang Ming Line"}],
    },
    {
        "destinationName": "Port of New York",
        "shippingLines": [
            {"lineName": "Mediterranean Shipping Company"},
            {"lineName": "CMA CGM"},
        ],
    },
    {
        "destinationName": "Port of Hamburg",
        "shippingLines": [{"lineName": "Hapag-Lloyd"}, {"lineName": "Maersk Line"}],
    },
    {
        "destinationName": "Port of Singapore",
        "shippingLines": [
            {"lineName": "Ocean Network Express"},
            {"lineName": "PIL Pacific International Lines"},
            {"lineName": "COSCO Shipping"},
        ],
    },
    {
        "destinationName": "Port of Rotterdam",
        "shippingLines": [
            {"lineName": "MSC Mediterranean Shipping"},
            {"lineName": "Maersk Line"},
        ],
    },
]


async def reset_destinations() -> None:
    async with async_session_factory() as session:
        async with session.begin():
            await session.execute(delete(ShippingLine))
            await session.execute(delete(Destination))
    logger.info("Cleared existing destinations")


async def seed_destinations(samples: List[Dict[str, Any]]) -> int:
    """
    Create each sample destination in its own transaction.

    Returns:
        Number of destinations created (existing names are skipped).
    """
    created = 0
    for sample in samples:
        payload = DestinationCreate.model_validate(sample)
        async with async_session_factory() as session:
            try:
                destination = await destination_service.create_destination(session, payload)
                await session.commit()
            except ConflictError:
                await session.rollback()
                logger.info("Skipping '%s': already exists", payload.destination_name)
                continue

        created += 1
        logger.info(
            "- %s: %d shipping lines",
            destination.destination_name,
            len(destination.shipping_lines),
        )
    return created


async def run(reset: bool) -> int:
    try:
        if reset:
            await reset_destinations()
        created = await seed_destinations(SAMPLE_DESTINATIONS)
        logger.info("Seeded %d of %d destinations", created, len(SAMPLE_DESTINATIONS))
        return created
    finally:
        await dispose_engine()


def parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="python -m app.seed",
        description="Load sample POD destinations and shipping lines.",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="delete all destinations and shipping lines before seeding",
    )
    parser.add_argument(
        "--print-token",
        action="store_true",
        help="print a development access token signed with JWT_SECRET",
    )
    return parser.parse_args(argv)


def main(argv: List[str] = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    setup_logging()

    try:
        asyncio.run(run(reset=args.reset))
    except PortbookError as e:
        logger.error("Seeding failed: %s | Context: %s", e.message, e.context)
        return 1

    if args.print_token:
        print(create_access_token("seed-user", user={"id": "seed-user", "role": "admin"}))
    return 0


if __name__ == "__main__":
    sys.exit(main())
