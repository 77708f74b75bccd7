"""
Follow and unfollow operations behind the "follow" buttons.

These create and remove the followed_movies rows the release check reads.
"""

from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.types import FollowType, MovieID, UserID
from releases.store import ReleaseStore
from releases.unfollow_tokens import validate_unfollow_token

VALID_FOLLOW_TYPES = ("theatrical", "streaming", "both")


class MovieFollowRequest(BaseModel):
    """Movie details submitted with a follow request."""

    model_config = ConfigDict(str_strip_whitespace=True)

    movie_id: MovieID
    title: str = Field(..., min_length=1)
    poster_path: str | None = None
    release_date: date | None = None
    streaming_release_date: date | None = None


def _expand_follow_type(follow_type: str) -> List[FollowType]:
    follow_type = (follow_type or "").lower()
    if follow_type not in VALID_FOLLOW_TYPES:
        raise ValueError(f"Invalid follow type: {follow_type!r}")
    if follow_type == "both":
        return ["theatrical", "streaming"]
    return [follow_type]  # type: ignore[list-item]


def follow_movie(
    store: ReleaseStore, user_id: UserID, movie: MovieFollowRequest, follow_type: str
) -> int:
    """
    Record that `user_id` follows `movie`.

    "both" creates one theatrical and one streaming record.

    Returns:
        Number of follow records created

    Raises:
        ValueError: If follow_type is not theatrical, streaming or both
    """
    rows: List[Dict[str, Any]] = []
    for follow in _expand_follow_type(follow_type):
        streaming_date = movie.streaming_release_date if follow == "streaming" else None
        # Streaming follows carry their streaming date as the release date
        release_date = streaming_date if follow == "streaming" else movie.release_date
        rows.append(
            {
                "tmdb_id": movie.movie_id,
                "title": movie.title,
                "release_date": release_date.isoformat() if release_date else None,
                "streaming_release_date": streaming_date.isoformat() if streaming_date else None,
                "streaming_date_available": follow == "streaming" and streaming_date is not None,
                "poster_path": movie.poster_path,
                "user_id": user_id,
                "follow_type": follow,
            }
        )

    store.client.table(store.followed_movies_table).insert(rows).execute()
    print(f'✓ User {user_id} now follows "{movie.title}" ({follow_type})')
    return len(rows)


def unfollow_movie(
    store: ReleaseStore,
    user_id: UserID,
    movie_id: MovieID,
    follow_type: Optional[str] = None,
) -> bool:
    """
    Remove the user's follow record(s) for a movie.

    Without follow_type every follow of the movie is removed.

    Returns:
        True if at least one record was removed
    """
    query = (
        store.client.table(store.followed_movies_table)
        .delete()
        .eq("user_id", user_id)
        .eq("tmdb_id", movie_id)
    )
    if follow_type and follow_type != "both":
        _expand_follow_type(follow_type)
        query = query.eq("follow_type", follow_type.lower())

    response = query.execute()
    return bool(response.data)


def unfollow_from_token(store: ReleaseStore, secret_key: str, token: str) -> bool:
    """Apply a one-click unfollow link from a release email."""
    payload = validate_unfollow_token(secret_key, token)
    if payload is None:
        return False
    return unfollow_movie(
        store, payload["user_id"], payload["movie_id"], payload["follow_type"]
    )
