"""
Analytics event backfill

Derives signup, creator_started, creator_published, purchase and enrollment
events from existing records. Idempotent, so it can be re-run after imports:
    python scripts/backfill_events.py
    python scripts/backfill_events.py --counts-only
"""

import argparse
import asyncio
import sys
from pathlib import Path
from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables before settings are read
load_dotenv()

import logging

from creator_analytics.db.mongo import close_mongo_connection, connect_to_mongo
from creator_analytics.services import events_service

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)


async def main(counts_only: bool):
    await connect_to_mongo()
    try:
        if not counts_only:
            results = await events_service.backfill_all()
            for phase in events_service.BACKFILL_PHASES:
                logger.info(f"{phase}: {results[phase]} created")
            for error in results["errors"]:
                logger.error(f"Phase failed - {error}")

        counts = await events_service.get_event_counts()
        logger.info(f"Total events: {counts['total']} (last 7d: {counts['last_7d']}, last 28d: {counts['last_28d']})")
        for event_type, count in sorted(counts["by_type"].items()):
            logger.info(f"    {event_type}: {count}")
    finally:
        await close_mongo_connection()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Backfill analytics events")
    parser.add_argument("--counts-only", action="store_true", help="Only report event counts")
    args = parser.parse_args()
    asyncio.run(main(args.counts_only))
