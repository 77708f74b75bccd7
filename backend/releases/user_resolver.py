"""Resolve the recipients of due follow records."""

import asyncio
from typing import Iterable, Protocol

from models.release import FollowRecord
from models.types import EmailAddress, UserID


class UserEmailSource(Protocol):
    async def fetch_user_email(self, user_id: UserID) -> EmailAddress | None: ...


def distinct_user_ids(records: Iterable[FollowRecord]) -> list[UserID]:
    """Unique user ids referenced by `records`, in first-seen order."""
    seen: dict[UserID, None] = {}
    for record in records:
        if record.user_id:
            seen.setdefault(record.user_id, None)
    return list(seen)


async def resolve_user_emails(
    store: UserEmailSource, records: Iterable[FollowRecord]
) -> dict[UserID, EmailAddress | None]:
    """
    Look up the email of every user referenced by `records`.

    Each distinct user is fetched exactly once and all lookups run
    concurrently. A lookup that fails or finds no address maps that user to
    None; it never affects the other lookups or raises to the caller.

    Args:
        store: Anything with an async fetch_user_email(user_id)
        records: Due follow records

    Returns:
        Mapping of user id to email address (None when unresolved)
    """
    user_ids = distinct_user_ids(records)
    if not user_ids:
        return {}

    print(f"[RELEASE-CHECK] Fetching emails for {len(user_ids)} unique users")

    results = await asyncio.gather(
        *(store.fetch_user_email(user_id) for user_id in user_ids),
        return_exceptions=True,
    )

    emails: dict[UserID, EmailAddress | None] = {}
    for user_id, result in zip(user_ids, results):
        if isinstance(result, Exception):
            print(f"[RELEASE-CHECK] ⚠️  Failed to fetch user {user_id}: {result}")
            emails[user_id] = None
        elif not result:
            print(f"[RELEASE-CHECK] ⚠️  User {user_id} has no email address")
            emails[user_id] = None
        else:
            emails[user_id] = result

    return emails
