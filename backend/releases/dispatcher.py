"""Concurrent delivery of release notifications."""

import asyncio
from typing import Any, Callable, Iterable

from models.release import DispatchOutcome, NotificationTask
from releases.error_logger import log_release_error

Sender = Callable[[NotificationTask], dict[str, Any]]


async def dispatch_notifications(
    tasks: Iterable[NotificationTask], send: Sender
) -> list[DispatchOutcome]:
    """
    Send every task concurrently and collect one outcome per task.

    `send` is a blocking callable returning {'success': bool, ...}; it runs on
    a worker thread per task. A failure (error result or exception) is logged
    and recorded for that task only. Returns once every task has finished,
    with outcomes in task order.
    """
    tasks = list(tasks)
    if not tasks:
        return []

    print(f"[RELEASE-CHECK] Sending {len(tasks)} release notification emails...")

    results = await asyncio.gather(
        *(asyncio.to_thread(send, task) for task in tasks),
        return_exceptions=True,
    )

    return [_to_outcome(task, result) for task, result in zip(tasks, results)]


def _to_outcome(task: NotificationTask, result: Any) -> DispatchOutcome:
    if isinstance(result, BaseException):
        error = str(result) or type(result).__name__
    elif not isinstance(result, dict):
        error = f"Unexpected send result: {result!r}"
    elif result.get("success"):
        print(
            f'[RELEASE-CHECK] ✓ Email sent to {task.recipient_email} for "{task.title}" ({task.follow_type})'
        )
        return DispatchOutcome(
            status="sent",
            movie_id=task.movie_id,
            title=task.title,
            recipient_email=task.recipient_email,
            email_id=result.get("email_id"),
        )
    else:
        error = str(result.get("error") or "Unknown error")

    print(
        f'[RELEASE-CHECK] ✗ Failed to send email to {task.recipient_email} for "{task.title}": {error}'
    )
    try:
        error_file = log_release_error(
            error_type="sending",
            error_message=error,
            context={
                "recipient": task.recipient_email,
                "user_id": task.user_id,
                "movie_id": task.movie_id,
                "title": task.title,
                "follow_type": task.follow_type,
                "release_date": task.release_date.isoformat(),
            },
        )
        print(f"    Error details logged to: {error_file}")
    except OSError as e:
        print(f"    ⚠️  Could not write error report: {e}")

    return DispatchOutcome(
        status="failed",
        movie_id=task.movie_id,
        title=task.title,
        recipient_email=task.recipient_email,
        error=error,
    )
