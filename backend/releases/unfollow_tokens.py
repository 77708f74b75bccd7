"""
Signed one-click unfollow links for release emails.

A token carries the user, movie and follow type it unfollows. Tokens are
stateless (no database storage needed) and expire after 90 days.
"""

import hashlib
from typing import Any, Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from models.types import FollowType, MovieID, UserID

UNFOLLOW_SALT = "unfollow"


def _get_serializer(secret_key: str) -> URLSafeTimedSerializer:
    if not secret_key:
        raise ValueError("An unfollow secret key must be configured.")

    return URLSafeTimedSerializer(
        secret_key,
        salt=UNFOLLOW_SALT,
        signer_kwargs={"digest_method": hashlib.sha256},
    )


def generate_unfollow_token(
    secret_key: str, user_id: UserID, movie_id: MovieID, follow_type: FollowType
) -> str:
    """
    Generate a signed unfollow token.

    Returns:
        URL-safe token string (format: payload.timestamp.signature)

    Raises:
        ValueError: If secret_key is empty
    """
    serializer = _get_serializer(secret_key)
    return serializer.dumps({"u": user_id, "m": movie_id, "t": follow_type})


def validate_unfollow_token(
    secret_key: str, token: str, max_age_days: int = 90
) -> Optional[dict[str, Any]]:
    """
    Validate an unfollow token and extract what it unfollows.

    Never raises - returns None for any invalid or expired token.

    Returns:
        {'user_id', 'movie_id', 'follow_type'} if valid, otherwise None
    """
    try:
        serializer = _get_serializer(secret_key)
        payload = serializer.loads(token, max_age=max_age_days * 24 * 60 * 60)
        return {
            "user_id": payload["u"],
            "movie_id": payload["m"],
            "follow_type": payload["t"],
        }
    except (BadSignature, SignatureExpired, ValueError, TypeError, KeyError):
        return None
