"""
Streaming release date lookups against the TMDB API.

TMDB lists release dates per country; digital (type 4) and physical (type 5)
releases are treated as the movie's home/streaming release.
"""

from datetime import date
from typing import Any, Callable, Dict, Optional

import requests

from models.types import MovieID
from shared.config import ReleaseCheckConfig

TMDB_API_BASE_URL = "https://api.themoviedb.org/3"
HOME_RELEASE_TYPES = (4, 5)

StreamingDateLookup = Callable[[MovieID], Optional[date]]


def pick_streaming_date(payload: Dict[str, Any], region: str = "US") -> Optional[date]:
    """
    Earliest digital or physical release date from a /release_dates payload.

    Falls back to the first listed country when `region` has no entry.
    """
    results = payload.get("results") or []
    if not results:
        return None

    releases = next((r for r in results if r.get("iso_3166_1") == region), results[0])
    dates = []
    for release in releases.get("release_dates") or []:
        if release.get("type") not in HOME_RELEASE_TYPES:
            continue
        raw = (release.get("release_date") or "")[:10]
        try:
            dates.append(date.fromisoformat(raw))
        except ValueError:
            continue

    return min(dates) if dates else None


def get_streaming_release_date(
    session: requests.Session,
    movie_id: MovieID,
    api_key: str,
    region: str = "US",
    timeout: int = 30,
) -> Optional[date]:
    """
    Fetch a movie's streaming release date.

    Raises:
        requests.RequestException: On network or HTTP errors
    """
    response = session.get(
        f"{TMDB_API_BASE_URL}/movie/{movie_id}/release_dates",
        params={"api_key": api_key},
        timeout=timeout,
    )
    response.raise_for_status()
    return pick_streaming_date(response.json(), region)


def make_streaming_date_lookup(config: ReleaseCheckConfig) -> StreamingDateLookup:
    """
    Bind the TMDB key and region into a one-argument lookup.

    Raises:
        ValueError: If TMDB_API_KEY is not configured
    """
    if not config.tmdb_api_key:
        raise ValueError("TMDB_API_KEY must be set")

    session = requests.Session()
    api_key = config.tmdb_api_key

    def lookup(movie_id: MovieID) -> Optional[date]:
        return get_streaming_release_date(session, movie_id, api_key, config.tmdb_region)

    return lookup
