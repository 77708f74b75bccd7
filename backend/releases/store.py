"""
Supabase-backed record store for followed movies and users.

The supabase client is synchronous; every read is pushed onto a worker thread
so callers can fan lookups out with asyncio.
"""

import asyncio
from datetime import date
from typing import Any

from pydantic import ValidationError
from supabase import Client

from models.release import FollowRecord, StreamingDateCandidate
from models.types import EmailAddress, FollowType, UserID
from releases.date_matcher import DatePredicate
from shared.config import ReleaseCheckConfig
from shared.db import get_supabase_client

FOLLOW_COLUMNS = (
    "id, tmdb_id, title, release_date, streaming_release_date, "
    "poster_path, user_id, follow_type"
)


class SourceQueryError(Exception):
    """Raised when the due-releases query cannot be completed."""

    def __init__(self, message: str, follow_type: str | None = None):
        super().__init__(message)
        self.follow_type = follow_type


class ReleaseStore:
    """Read (and follow/unfollow write) access to the tracker's tables."""

    def __init__(
        self,
        client: Client,
        followed_movies_table: str = "followed_movies",
        users_table: str = "users",
    ) -> None:
        self.client = client
        self.followed_movies_table = followed_movies_table
        self.users_table = users_table

    @classmethod
    def from_config(cls, config: ReleaseCheckConfig) -> "ReleaseStore":
        client = get_supabase_client(config.supabase_url, config.supabase_key)
        return cls(
            client,
            followed_movies_table=config.followed_movies_table,
            users_table=config.users_table,
        )

    async def fetch_due_follows(
        self, predicate: DatePredicate, follow_type: FollowType
    ) -> list[FollowRecord]:
        """
        Fetch follow records of one type whose date matches `predicate`.

        Raises:
            SourceQueryError: If the query itself fails
        """
        try:
            rows = await asyncio.to_thread(self._select_due_rows, predicate, follow_type)
        except Exception as e:
            raise SourceQueryError(str(e), follow_type=follow_type) from e

        records = []
        for row in rows:
            try:
                records.append(FollowRecord.from_row(row, follow_type))
            except (ValidationError, KeyError, ValueError) as e:
                print(
                    f"[RELEASE-CHECK] ⚠️  Ignoring malformed follow record {row.get('id')}: {e}"
                )
        return records

    def _select_due_rows(
        self, predicate: DatePredicate, follow_type: FollowType
    ) -> list[dict[str, Any]]:
        query = self.client.table(self.followed_movies_table).select(FOLLOW_COLUMNS)
        query = predicate.apply(query).eq("follow_type", follow_type)
        response = query.execute()
        return list(response.data or [])

    async def fetch_user_email(self, user_id: UserID) -> EmailAddress | None:
        """Return the email of `user_id`, or None when the user has none."""
        return await asyncio.to_thread(self._select_user_email, user_id)

    def _select_user_email(self, user_id: UserID) -> EmailAddress | None:
        response = (
            self.client.table(self.users_table)
            .select("id, email")
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        email = response.data[0].get("email")
        return email.strip() if email and email.strip() else None

    async def fetch_streaming_date_candidates(
        self, limit: int = 100
    ) -> list[StreamingDateCandidate]:
        """
        Fetch streaming follows whose streaming date is not known yet.

        Raises:
            SourceQueryError: If the query itself fails
        """
        try:
            rows = await asyncio.to_thread(self._select_candidate_rows, limit)
        except Exception as e:
            raise SourceQueryError(str(e), follow_type="streaming") from e

        candidates = []
        for row in rows:
            try:
                candidates.append(StreamingDateCandidate.from_row(row))
            except (ValidationError, KeyError, ValueError) as e:
                print(
                    f"[STREAMING-CHECK] ⚠️  Ignoring malformed follow record {row.get('id')}: {e}"
                )
        return candidates

    def _select_candidate_rows(self, limit: int) -> list[dict[str, Any]]:
        response = (
            self.client.table(self.followed_movies_table)
            .select(FOLLOW_COLUMNS)
            .eq("follow_type", "streaming")
            .eq("streaming_date_available", False)
            .limit(limit)
            .execute()
        )
        return list(response.data or [])

    async def set_streaming_date(self, follow_id: str, streaming_date: date) -> None:
        """Store a newly found streaming date on a follow record."""
        await asyncio.to_thread(self._update_streaming_date, follow_id, streaming_date)

    def _update_streaming_date(self, follow_id: str, streaming_date: date) -> None:
        day = streaming_date.isoformat()
        self.client.table(self.followed_movies_table).update(
            {
                "release_date": day,
                "streaming_release_date": day,
                "streaming_date_available": True,
            }
        ).eq("id", follow_id).execute()
