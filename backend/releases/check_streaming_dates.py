"""
Streaming date check: fill in streaming release dates for streaming follows
that don't have one yet, and tell each follower when a date is found.

Usage:
    # Check up to 100 pending streaming follows
    uv run python -m releases.check_streaming_dates --key "$CRON_SECRET"

    # Check fewer follows per run
    uv run python -m releases.check_streaming_dates --key "$CRON_SECRET" --limit 25

    # Dry run (look up dates but don't update follows or send emails)
    uv run python -m releases.check_streaming_dates --key "$CRON_SECRET" --dry-run
"""

import argparse
import asyncio
import sys
from datetime import date
from typing import Any, Callable, Optional

from models.release import (
    DispatchOutcome,
    NotificationTask,
    StreamingCheckResult,
    StreamingDateCandidate,
)
from models.types import MovieID
from releases.aggregator import build_notification_tasks
from releases.check_releases import AuthorizationError, authorize_trigger
from releases.dispatcher import dispatch_notifications
from releases.email_sender import make_streaming_date_sender
from releases.error_logger import log_release_error
from releases.store import ReleaseStore, SourceQueryError
from releases.tmdb import make_streaming_date_lookup
from releases.user_resolver import resolve_user_emails
from shared.config import ReleaseCheckConfig

DEFAULT_CANDIDATE_LIMIT = 100
MAX_CONCURRENT_LOOKUPS = 10


def _log_error(error_type: str, error_message: str, context: dict[str, Any]) -> None:
    try:
        error_file = log_release_error(error_type, error_message, context)
        print(f"    Error details logged to: {error_file}")
    except OSError as e:
        print(f"    ⚠️  Could not write error report: {e}")


class StreamingDateCheckJob:
    """
    Runs one streaming date check.

    Only follows whose date was actually stored get an email, so a follow
    whose update failed is picked up (and its follower emailed) on a later
    run instead.
    """

    def __init__(
        self,
        config: ReleaseCheckConfig,
        store: ReleaseStore,
        lookup: Optional[Callable[[MovieID], Optional[date]]] = None,
        send: Optional[Callable[[NotificationTask], dict[str, Any]]] = None,
    ) -> None:
        self.config = config
        self.store = store
        self.lookup = lookup or make_streaming_date_lookup(config)
        self.send = send or make_streaming_date_sender(config)

    async def find_streaming_dates(
        self, candidates: list[StreamingDateCandidate]
    ) -> dict[MovieID, Optional[date]]:
        """
        Look up each distinct movie once, at most MAX_CONCURRENT_LOOKUPS at a time.

        A failed lookup maps to None and is logged.
        """
        movie_ids = list(dict.fromkeys(c.movie_id for c in candidates))
        semaphore = asyncio.Semaphore(MAX_CONCURRENT_LOOKUPS)

        async def lookup_one(movie_id: MovieID) -> Optional[date]:
            async with semaphore:
                return await asyncio.to_thread(self.lookup, movie_id)

        results = await asyncio.gather(
            *(lookup_one(movie_id) for movie_id in movie_ids),
            return_exceptions=True,
        )

        dates: dict[MovieID, Optional[date]] = {}
        for movie_id, result in zip(movie_ids, results):
            if isinstance(result, BaseException):
                print(f"[STREAMING-CHECK] ⚠️  Streaming date lookup failed for movie {movie_id}: {result}")
                _log_error("lookup", str(result), {"movie_id": movie_id})
                dates[movie_id] = None
            else:
                dates[movie_id] = result
        return dates

    async def store_streaming_dates(
        self, found: list[tuple[StreamingDateCandidate, date]]
    ) -> tuple[list[tuple[StreamingDateCandidate, date]], int]:
        """Write every found date; returns the stored pairs and the failure count."""
        results = await asyncio.gather(
            *(self.store.set_streaming_date(c.follow_id, d) for c, d in found),
            return_exceptions=True,
        )

        stored = []
        failures = 0
        for (candidate, streaming_date), result in zip(found, results):
            if isinstance(result, BaseException):
                failures += 1
                print(
                    f'[STREAMING-CHECK] ✗ Failed to update follow {candidate.follow_id} for "{candidate.title}": {result}'
                )
                _log_error(
                    "update",
                    str(result),
                    {
                        "follow_id": candidate.follow_id,
                        "movie_id": candidate.movie_id,
                        "streaming_date": streaming_date.isoformat(),
                    },
                )
            else:
                print(
                    f'[STREAMING-CHECK] ✓ "{candidate.title}" streams on {streaming_date.isoformat()}'
                )
                stored.append((candidate, streaming_date))
        return stored, failures

    async def run(
        self,
        token: Optional[str],
        dry_run: bool = False,
        limit: int = DEFAULT_CANDIDATE_LIMIT,
    ) -> StreamingCheckResult:
        try:
            authorize_trigger(self.config.cron_secret, token)
        except AuthorizationError:
            print("[STREAMING-CHECK] ✗ Unauthorized trigger, nothing done")
            return StreamingCheckResult(status="unauthorized", http_status=401, error="Unauthorized")

        try:
            candidates = await self.store.fetch_streaming_date_candidates(limit)
        except SourceQueryError as e:
            print(f"[STREAMING-CHECK] ✗ Fatal error querying streaming follows: {e}")
            _log_error("query", str(e), {"follow_type": "streaming", "limit": limit})
            return StreamingCheckResult(status="failed", http_status=500, error=str(e))

        print(f"[STREAMING-CHECK] Checking {len(candidates)} streaming follows without a date")

        dates = await self.find_streaming_dates(candidates)
        found = [(c, dates[c.movie_id]) for c in candidates if dates.get(c.movie_id)]
        print(f"[STREAMING-CHECK] Found streaming dates for {len(found)} follows")

        if dry_run:
            for candidate, streaming_date in found:
                print(
                    f'[STREAMING-CHECK] [DRY RUN] Would set "{candidate.title}" to {streaming_date.isoformat()}'
                )
            return StreamingCheckResult(
                status="completed",
                http_status=200,
                checked=len(candidates),
                found=len(found),
                dry_run=True,
            )

        stored, update_failed = await self.store_streaming_dates(found)

        records = [candidate.with_streaming_date(d) for candidate, d in stored]
        emails = await resolve_user_emails(self.store, records)
        tasks, skipped = build_notification_tasks(records, emails)
        outcomes: list[DispatchOutcome] = await dispatch_notifications(tasks, self.send)

        sent = sum(1 for outcome in outcomes if outcome.status == "sent")
        failed = sum(1 for outcome in outcomes if outcome.status == "failed")

        print("\n" + "=" * 60)
        print("STREAMING DATE CHECK SUMMARY")
        print("=" * 60)
        print(f"Checked: {len(candidates)}")
        print(f"Dates found: {len(found)}")
        print(f"Updated: {len(stored)}  Update failures: {update_failed}")
        print(f"Sent: {sent}  Skipped: {len(skipped)}  Failed: {failed}")
        print("=" * 60)

        return StreamingCheckResult(
            status="completed",
            http_status=200,
            checked=len(candidates),
            found=len(found),
            updated=len(stored),
            update_failed=update_failed,
            task_count=len(tasks),
            sent=sent,
            failed=failed,
            skipped=len(skipped),
            outcomes=skipped + outcomes,
        )


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid limit {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError("Limit must be at least 1")
    return number


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Find streaming dates for followed movies and email their followers"
    )

    parser.add_argument(
        "--key", type=str, required=True, help="Shared secret authorizing the run"
    )

    parser.add_argument(
        "--limit",
        type=_positive_int,
        default=DEFAULT_CANDIDATE_LIMIT,
        help=f"Maximum follows to check (default {DEFAULT_CANDIDATE_LIMIT})",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Dry run mode (don't update follows or send emails)",
    )

    args = parser.parse_args(argv)

    config = ReleaseCheckConfig.from_env()
    store = ReleaseStore.from_config(config)
    job = StreamingDateCheckJob(config, store)

    result = asyncio.run(job.run(args.key, dry_run=args.dry_run, limit=args.limit))

    print(result.model_dump_json(indent=2))

    if result.status == "unauthorized":
        return 2
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
