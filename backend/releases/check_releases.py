"""
Daily release check: email every follower of a movie released today.

Usage:
    # Check today's releases (UTC day unless RELEASE_TIMEZONE is set)
    uv run python -m releases.check_releases --key "$CRON_SECRET"

    # Re-run for a specific day
    uv run python -m releases.check_releases --key "$CRON_SECRET" --date 2026-03-06

    # Dry run (build notifications but don't send emails)
    uv run python -m releases.check_releases --key "$CRON_SECRET" --dry-run
"""

import argparse
import asyncio
import sys
from datetime import date, datetime, time
from typing import Any, Callable

from models.release import DispatchOutcome, FollowRecord, JobResult, NotificationTask
from models.types import DateString
from releases.aggregator import build_notification_tasks
from releases.date_matcher import due_on, today_key
from releases.dispatcher import dispatch_notifications
from releases.email_sender import make_release_sender
from releases.error_logger import log_release_error
from releases.store import ReleaseStore, SourceQueryError
from releases.user_resolver import resolve_user_emails
from shared.config import ReleaseCheckConfig
from shared.utils import print_summary


class AuthorizationError(Exception):
    """Raised when the trigger token does not match the configured secret."""


def authorize_trigger(cron_secret: str | None, token: str | None) -> None:
    """
    Plain equality check of the trigger token. An unset secret never matches.

    Raises:
        AuthorizationError: If token differs from the configured secret
    """
    if not cron_secret or token != cron_secret:
        raise AuthorizationError("Unauthorized")


class ReleaseCheckJob:
    """
    Runs one release check.

    Steps: authorize the trigger, fetch today's due follows, resolve each
    follower's email once, build one task per reachable follow, send them all
    concurrently and report. Only authorization and the due-follows query can
    end the run early; lookup and send failures are contained per user and
    per email.

    Running twice on the same day sends the emails twice.
    """

    def __init__(
        self,
        config: ReleaseCheckConfig,
        store: ReleaseStore,
        send: Callable[[NotificationTask], dict[str, Any]] | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.send = send or make_release_sender(config)

    def authorize(self, token: str | None) -> None:
        authorize_trigger(self.config.cron_secret, token)

    async def fetch_due_records(
        self, day: DateString
    ) -> tuple[list[FollowRecord], list[FollowRecord]]:
        """Theatrical and streaming follows due on `day`, queried concurrently."""
        theatrical, streaming = await asyncio.gather(
            self.store.fetch_due_follows(due_on(day, "release_date"), "theatrical"),
            self.store.fetch_due_follows(
                due_on(day, "streaming_release_date"), "streaming"
            ),
        )
        return theatrical, streaming

    async def run(
        self,
        token: str | None,
        now: datetime | None = None,
        dry_run: bool = False,
    ) -> JobResult:
        try:
            self.authorize(token)
        except AuthorizationError:
            print("[RELEASE-CHECK] ✗ Unauthorized trigger, nothing done")
            return JobResult(status="unauthorized", http_status=401, error="Unauthorized")

        day = today_key(now, self.config.tz)
        print(f"[RELEASE-CHECK] Checking releases for {day} ({self.config.release_timezone})")

        try:
            theatrical, streaming = await self.fetch_due_records(day)
        except SourceQueryError as e:
            print(f"[RELEASE-CHECK] ✗ Fatal error querying due releases: {e}")
            try:
                error_file = log_release_error(
                    error_type="query",
                    error_message=str(e),
                    context={"date": day, "follow_type": e.follow_type},
                )
                print(f"    Error details logged to: {error_file}")
            except OSError as log_error:
                print(f"    ⚠️  Could not write error report: {log_error}")
            return JobResult(status="failed", http_status=500, date=day, error=str(e))

        records = theatrical + streaming
        print(
            f"[RELEASE-CHECK] Found {len(theatrical)} theatrical releases "
            f"and {len(streaming)} streaming releases"
        )

        emails = await resolve_user_emails(self.store, records)
        tasks, skipped = build_notification_tasks(records, emails)

        outcomes: list[DispatchOutcome] = []
        if dry_run:
            for task in tasks:
                print(f'[RELEASE-CHECK] [DRY RUN] Would email {task.recipient_email} about "{task.title}"')
        else:
            outcomes = await dispatch_notifications(tasks, self.send)

        sent = sum(1 for outcome in outcomes if outcome.status == "sent")
        failed = sum(1 for outcome in outcomes if outcome.status == "failed")
        print_summary(day, sent, len(skipped), failed)

        return JobResult(
            status="completed",
            http_status=200,
            date=day,
            task_count=len(tasks),
            sent=sent,
            failed=failed,
            skipped=len(skipped),
            theatrical=len(theatrical),
            streaming=len(streaming),
            dry_run=dry_run,
            outcomes=skipped + outcomes,
        )


def _parse_day(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date {value!r}, expected YYYY-MM-DD")


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Email followers of movies released today"
    )

    parser.add_argument(
        "--key", type=str, required=True, help="Shared secret authorizing the run"
    )

    parser.add_argument(
        "--date",
        type=_parse_day,
        help="Release date to check (YYYY-MM-DD format, defaults to today)",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Dry run mode (don't actually send emails)",
    )

    args = parser.parse_args(argv)

    config = ReleaseCheckConfig.from_env()
    store = ReleaseStore.from_config(config)
    job = ReleaseCheckJob(config, store)

    now = datetime.combine(args.date, time(12), tzinfo=config.tz) if args.date else None
    result = asyncio.run(job.run(args.key, now=now, dry_run=args.dry_run))

    print(result.model_dump_json(indent=2))

    if result.status == "unauthorized":
        return 2
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
