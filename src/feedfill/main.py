"""Command-line entry point."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .config import FeedConfig
from .errors import FeedFillError
from .orchestrator import RunResult, StreamOrchestrator
from .writers import writer_for_path

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Capture the full feed, backfill missing sequences, save the result.",
    )
    parser.add_argument("--host", help="Feed server host (env FEED_HOST)")
    parser.add_argument("--port", type=int, help="Feed server port (env FEED_PORT)")
    parser.add_argument("--output", type=Path, help="Output file, .json or .parquet (env OUTPUT_PATH)")
    parser.add_argument("--max-retries", type=int, help="Give up on a sequence after N retries (0 = never)")
    parser.add_argument("--sort", action="store_true", help="Write records in sequence order")
    parser.add_argument("--log-level", help="Logging level (env LOG_LEVEL)")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> FeedConfig:
    """Environment config with command-line overrides applied."""
    config = FeedConfig.from_env()
    if args.host:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.output is not None:
        config.output_path = args.output
    if args.max_retries is not None:
        config.max_retries = args.max_retries if args.max_retries > 0 else None
    if args.sort:
        config.sort_by_sequence = True
    if args.log_level:
        config.log_level = args.log_level
    return config


async def _main_async(config: FeedConfig) -> RunResult:
    """Async main entry point."""
    writer = writer_for_path(config.output_path, sort_by_sequence=config.sort_by_sequence)
    orchestrator = StreamOrchestrator(config, writers=[writer])
    return await orchestrator.run()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point."""
    config = build_config(parse_args(argv))

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info(f"Feed server: {config.host}:{config.port}")
    logger.info(f"Output: {config.output_path}")

    try:
        asyncio.run(_main_async(config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except FeedFillError as e:
        logger.error(f"Run failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
