"""
Inbox triage entry point.

Usage:
    inbox-triage triage            # one pass over the unread inbox, results as JSON
    inbox-triage worker            # consume the processing queue
    inbox-triage run               # worker plus a triage pass every POLL_INTERVAL_SECONDS

Configuration comes from the environment and an optional .env file
(see inbox_triage.config.settings).
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from inbox_triage.config.logging_config import setup_logging
from inbox_triage.config.settings import TriageSettings, get_settings
from inbox_triage.session import TriageSession

logger = logging.getLogger(__name__)


async def run_triage(session: TriageSession) -> List[dict]:
    """Run one triage pass and return the caller-facing result records."""
    results = await session.orchestrator().triage_unread()
    return [result.to_dict() for result in results]


async def run_worker(session: TriageSession, consumer_name: Optional[str] = None) -> None:
    await session.worker(consumer_name).run()


async def run_service(session: TriageSession, consumer_name: Optional[str] = None) -> None:
    """Run the queue consumer alongside periodic triage passes."""
    worker = session.worker(consumer_name)
    worker_task = asyncio.create_task(worker.run())
    poll_interval = session.settings.POLL_INTERVAL_SECONDS
    logger.info(f"Starting email polling task (interval: {poll_interval:g}s)")

    try:
        while not worker_task.done():
            results = await session.orchestrator().triage_unread()
            logger.info(f"Triage pass finished with {len(results)} result(s)")
            await asyncio.sleep(poll_interval)
    finally:
        worker.stop()
        await worker_task


async def main(command: str, settings: TriageSettings, consumer_name: Optional[str] = None) -> int:
    session = TriageSession.create(settings)
    try:
        if command == "triage":
            results = await run_triage(session)
            print(json.dumps(results, indent=2))
        elif command == "worker":
            await run_worker(session, consumer_name)
        else:
            await run_service(session, consumer_name)
    finally:
        await session.close()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="inbox-triage",
        description="Classify unread mail, label it and queue canned replies",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "command",
        choices=["triage", "worker", "run"],
        help="What to run"
    )
    parser.add_argument(
        "--consumer-name",
        default=None,
        help="Queue consumer name (default: hostname-pid)"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging"
    )
    return parser


def cli(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    load_dotenv(override=True)
    settings = get_settings()
    setup_logging("DEBUG" if args.verbose else settings.LOG_LEVEL, settings.LOG_FILE)

    try:
        return asyncio.run(main(args.command, settings, args.consumer_name))
    except KeyboardInterrupt:
        logger.info("Received interrupt, shutting down...")
        return 130


if __name__ == "__main__":
    sys.exit(cli())
