"""Join due follow records with resolved recipients."""

from typing import Iterable, Mapping

from models.release import DispatchOutcome, FollowRecord, NotificationTask
from models.types import EmailAddress, UserID


def build_notification_tasks(
    records: Iterable[FollowRecord],
    emails: Mapping[UserID, EmailAddress | None],
) -> tuple[list[NotificationTask], list[DispatchOutcome]]:
    """
    Build one notification task per record that has a recipient.

    Records without a user, or whose user has no email, are skipped and
    returned as "skipped" outcomes. Task order follows record order.

    Returns:
        (tasks, skipped outcomes)
    """
    tasks: list[NotificationTask] = []
    skipped: list[DispatchOutcome] = []

    for record in records:
        email = emails.get(record.user_id) if record.user_id else None
        if not email:
            print(f'[RELEASE-CHECK] No recipient, skipping "{record.title}"')
            skipped.append(
                DispatchOutcome(
                    status="skipped",
                    movie_id=record.movie_id,
                    title=record.title,
                    error="no recipient email",
                )
            )
            continue

        tasks.append(
            NotificationTask(
                movie_id=record.movie_id,
                title=record.title,
                release_date=record.release_date,
                poster_path=record.poster_path,
                recipient_email=email,
                user_id=record.user_id,
                follow_type=record.follow_type,
            )
        )

    return tasks, skipped
