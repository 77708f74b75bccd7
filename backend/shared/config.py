"""
Runtime configuration for the release notification job.

Values are read from the environment once, at startup, and passed into the
job explicitly. Nothing inside the job reads os.environ.
"""

import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

load_dotenv()

DEFAULT_FRONTEND_BASE_URL = "https://moviereleasetracker.online"
DEFAULT_FROM_EMAIL = "notifications@moviereleasetracker.online"


class ReleaseCheckConfig(BaseModel):
    """Settings shared by the release check job and its collaborators."""

    model_config = ConfigDict(frozen=True)

    cron_secret: str | None = None
    resend_api_key: str | None = None
    supabase_url: str | None = None
    supabase_key: str | None = None
    from_email: str = DEFAULT_FROM_EMAIL
    frontend_base_url: str = DEFAULT_FRONTEND_BASE_URL
    # Day boundary used to decide which releases are "today"
    release_timezone: str = "UTC"
    followed_movies_table: str = "followed_movies"
    users_table: str = "users"
    unfollow_secret_key: str | None = None
    tmdb_api_key: str | None = None
    # Region whose digital/physical release dates count as streaming dates
    tmdb_region: str = "US"

    @field_validator("release_timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {value!r}")
        return value

    @field_validator("frontend_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.release_timezone)

    @classmethod
    def from_env(cls) -> "ReleaseCheckConfig":
        """Build configuration from environment variables (and .env)."""
        return cls(
            cron_secret=os.getenv("CRON_SECRET"),
            resend_api_key=os.getenv("RESEND_API_KEY"),
            supabase_url=os.getenv("SUPABASE_URL"),
            supabase_key=os.getenv("SUPABASE_SERVICE_KEY"),
            from_email=os.getenv("NOTIFICATION_FROM_EMAIL", DEFAULT_FROM_EMAIL),
            frontend_base_url=os.getenv("FRONTEND_BASE_URL", DEFAULT_FRONTEND_BASE_URL),
            release_timezone=os.getenv("RELEASE_TIMEZONE", "UTC"),
            followed_movies_table=os.getenv("FOLLOWED_MOVIES_TABLE", "followed_movies"),
            users_table=os.getenv("USERS_TABLE", "users"),
            unfollow_secret_key=os.getenv("UNFOLLOW_SECRET_KEY"),
            tmdb_api_key=os.getenv("TMDB_API_KEY"),
            tmdb_region=os.getenv("TMDB_REGION", "US"),
        )
