"""
Release-day matching.

"Today" is the calendar day of the current instant in a configured timezone
(UTC unless RELEASE_TIMEZONE says otherwise). A release stored as 2026-03-06
is due for the whole of that day in the chosen zone; just after midnight UTC
it may still be the 5th for users in the Americas.
"""

from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any

from pydantic import BaseModel, ConfigDict

from models.types import DateString


def today_key(now: datetime | None = None, tz: tzinfo | None = None) -> DateString:
    """Return the YYYY-MM-DD key for `now` (default: current time) in `tz`."""
    tz = tz or timezone.utc
    if now is None:
        now = datetime.now(tz)
    elif now.tzinfo is None:
        # Naive datetimes are taken to be UTC
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz).date().isoformat()


class DatePredicate(BaseModel):
    """Selects rows whose `column`, truncated to the day, equals `day`."""

    model_config = ConfigDict(frozen=True)

    column: str
    day: DateString

    @property
    def next_day(self) -> DateString:
        return (date.fromisoformat(self.day) + timedelta(days=1)).isoformat()

    def apply(self, query: Any) -> Any:
        """Add the [day, next day) range filter to a Supabase query builder."""
        return query.gte(self.column, self.day).lt(self.column, self.next_day)


def due_on(day: DateString, column: str = "release_date") -> DatePredicate:
    """Build the predicate matching releases on `day`."""
    date.fromisoformat(day)  # reject malformed keys early
    return DatePredicate(column=column, day=day)
