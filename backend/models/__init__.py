"""Pydantic models for data validation and type checking."""

from models.release import (
    DispatchOutcome,
    FollowRecord,
    JobResult,
    NotificationTask,
    StreamingCheckResult,
    StreamingDateCandidate,
)

__all__ = [
    "FollowRecord",
    "NotificationTask",
    "DispatchOutcome",
    "JobResult",
    "StreamingDateCandidate",
    "StreamingCheckResult",
]
