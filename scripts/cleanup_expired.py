"""Cron entry point for sweeping expired resources outside the web process."""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import dataclass, field
from datetime import datetime

from src.imagehost.config import load_config
from src.imagehost.db.db_init import init_db
from src.imagehost.events.event_hub import EventHub
from src.imagehost.expiry.scheduler import ExpiryScheduler
from src.imagehost.expiry.sweeper import ReconciliationSweeper
from src.imagehost.logging import configure_logging
from src.imagehost.media.blob_store import LocalBlobStore
from src.imagehost.repositories.resource_repository import ResourceRepository
from src.imagehost.utils.clock import utcnow


@dataclass(slots=True)
class CleanupSummary:
    deleted: int
    dry_run: bool
    storage_failures: list[str] = field(default_factory=list)
    elapsed_ms: int = 0


async def perform_cleanup(*, dry_run: bool, reference_time: datetime | None = None) -> CleanupSummary:
    """Run one sweep pass (or only count expired rows) and return summary counters."""
    config = load_config()
    configure_logging(config.settings.log_level)
    try:
        await init_db(config.engine)
        repo = ResourceRepository(config.session_factory)
        now = reference_time or utcnow()

        if dry_run:
            return CleanupSummary(deleted=await repo.count_expired(now), dry_run=True)

        # viewers live in the web process, so this hub has no subscribers
        hub = EventHub()
        sweeper = ReconciliationSweeper(
            repo=repo,
            blob_store=LocalBlobStore(config.media_paths),
            hub=hub,
            scheduler=ExpiryScheduler(hub),
            batch_size=config.settings.sweep_batch_size,
            blob_batch_size=config.settings.blob_delete_batch_size,
            clock=lambda: now,
        )
        summary = await sweeper.run_pass()
        return CleanupSummary(
            deleted=summary.deleted,
            dry_run=False,
            storage_failures=summary.storage_failures,
            elapsed_ms=summary.elapsed_ms,
        )
    finally:
        await config.engine.dispose()


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Delete expired resources and their blobs.")
    parser.add_argument("--dry-run", action="store_true", help="Only report counts without deleting anything.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    try:
        summary = asyncio.run(perform_cleanup(dry_run=args.dry_run))
    except Exception as exc:
        print(f"cleanup failed: {exc}", file=sys.stderr)
        return 2

    if summary.dry_run:
        print(f"cleanup dry-run, expired={summary.deleted}", file=sys.stdout)
    else:
        print(
            f"cleanup done, deleted={summary.deleted}, "
            f"storage_failures={len(summary.storage_failures)}, ms={summary.elapsed_ms}",
            file=sys.stdout,
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
