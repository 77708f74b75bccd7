"""
Release-day notifications for Movie Release Tracker.

This module handles:
- Finding followed movies released today (theatrical and streaming)
- Resolving each follower's email address once
- Sending release-day emails via Resend, concurrently
- Filling in streaming dates from TMDB and telling streaming followers
- Follow / unfollow bookkeeping behind the follow buttons
"""

from .check_releases import AuthorizationError, ReleaseCheckJob
from .check_streaming_dates import StreamingDateCheckJob
from .follows import follow_movie, unfollow_movie

__all__ = [
    'ReleaseCheckJob',
    'StreamingDateCheckJob',
    'AuthorizationError',
    'follow_movie',
    'unfollow_movie',
]
