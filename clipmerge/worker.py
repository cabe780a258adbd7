"""
Background worker entry point.

Usage:
    clipmerge-worker                # poll forever
    clipmerge-worker --once         # single tick, then exit
    clipmerge-worker --interval 10  # custom interval in seconds
"""

import argparse
import asyncio
import logging
import signal
from typing import List, Optional

from clipmerge.config import get_settings
from clipmerge.services.poller import create_job_poller
from clipmerge.utils.log import configure_logging

logger = logging.getLogger(__name__)


async def run_worker(once: bool = False, interval: Optional[float] = None) -> None:
    poller = create_job_poller(interval=interval)

    if once:
        await poller.poll_once()
        return

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, poller.stop)
        except NotImplementedError:
            # Windows event loops have no signal handlers
            pass

    await poller.run_forever()


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Process queued video concatenation jobs")
    parser.add_argument("--once", action="store_true", help="Run a single poll and exit")
    parser.add_argument("--interval", type=float, default=None, help="Seconds between polls")
    args = parser.parse_args(argv)

    configure_logging(get_settings().log_level)
    asyncio.run(run_worker(once=args.once, interval=args.interval))


if __name__ == "__main__":
    main()
