"""Pydantic models for the release-day notification job."""

from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

from models.types import DateString, EmailAddress, FollowType, MovieID, UserID
from shared.utils import parse_date_string


class FollowRecord(BaseModel):
    """A followed movie that is due today, as read from the store."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    movie_id: MovieID
    title: str = Field(..., min_length=1)
    release_date: date
    poster_path: str | None = None
    user_id: UserID | None = None
    follow_type: FollowType = "theatrical"

    @classmethod
    def from_row(cls, row: dict[str, Any], follow_type: FollowType) -> "FollowRecord":
        """
        Build a record from a `followed_movies` row.

        Streaming follows are due on their streaming date, so that date becomes
        the record's release_date.
        """
        date_field = (
            "streaming_release_date" if follow_type == "streaming" else "release_date"
        )
        parsed = parse_date_string(row.get(date_field) or "")
        return cls(
            movie_id=row["tmdb_id"],
            title=row.get("title") or "Untitled",
            release_date=date.fromisoformat(parsed[:10]) if parsed else row[date_field],
            poster_path=row.get("poster_path") or None,
            user_id=row.get("user_id") or None,
            follow_type=follow_type,
        )


class NotificationTask(BaseModel):
    """A ready-to-send release notification for one recipient."""

    model_config = ConfigDict(frozen=True)

    movie_id: MovieID
    title: str
    release_date: date
    poster_path: str | None = None
    recipient_email: EmailAddress
    user_id: UserID | None = None
    follow_type: FollowType = "theatrical"


class DispatchOutcome(BaseModel):
    """Terminal status of a single notification."""

    status: Literal["sent", "skipped", "failed"]
    movie_id: MovieID
    title: str
    recipient_email: EmailAddress | None = None
    email_id: str | None = None
    error: str | None = None


class JobResult(BaseModel):
    """Summary returned to whoever triggered the release check."""

    status: Literal["unauthorized", "completed", "failed"]
    http_status: int
    date: DateString | None = None
    task_count: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    theatrical: int = 0
    streaming: int = 0
    dry_run: bool = False
    error: str | None = None
    outcomes: list[DispatchOutcome] = Field(default_factory=list)

    @computed_field
    @property
    def success(self) -> bool:
        return self.status == "completed"


class StreamingDateCandidate(BaseModel):
    """A streaming follow still waiting for its streaming release date."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    follow_id: str
    movie_id: MovieID
    title: str = Field(..., min_length=1)
    poster_path: str | None = None
    user_id: UserID | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "StreamingDateCandidate":
        return cls(
            follow_id=str(row["id"]),
            movie_id=row["tmdb_id"],
            title=row.get("title") or "Untitled",
            poster_path=row.get("poster_path") or None,
            user_id=row.get("user_id") or None,
        )

    def with_streaming_date(self, streaming_date: date) -> FollowRecord:
        """The follow record once its streaming date is known."""
        return FollowRecord(
            movie_id=self.movie_id,
            title=self.title,
            release_date=streaming_date,
            poster_path=self.poster_path,
            user_id=self.user_id,
            follow_type="streaming",
        )


class StreamingCheckResult(BaseModel):
    """Summary of a streaming-date check run."""

    status: Literal["unauthorized", "completed", "failed"]
    http_status: int
    checked: int = 0
    found: int = 0
    updated: int = 0
    update_failed: int = 0
    task_count: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    dry_run: bool = False
    error: str | None = None
    outcomes: list[DispatchOutcome] = Field(default_factory=list)

    @computed_field
    @property
    def success(self) -> bool:
        return self.status == "completed"
