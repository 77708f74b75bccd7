"""
Release-day email composition and delivery via the Resend API.

Retries are left to Resend; a failed send is reported once and never retried
here.
"""

from html import escape
from typing import Any, Callable, Dict

import resend

from models.release import NotificationTask
from releases.unfollow_tokens import generate_unfollow_token
from shared.config import ReleaseCheckConfig

TMDB_IMAGE_BASE_URL = "https://image.tmdb.org/t/p/w500"

SendResult = Dict[str, Any]


def build_subject(task: NotificationTask) -> str:
    """Subject line naming the movie and how it is out today."""
    if task.follow_type == "streaming":
        return f'📺 "{task.title}" is available for streaming today!'
    return f'🎬 "{task.title}" is now in theaters!'


def build_unfollow_url(config: ReleaseCheckConfig, task: NotificationTask) -> str | None:
    """One-click unfollow link, or None when no signing key is configured."""
    if not config.unfollow_secret_key or not task.user_id:
        return None
    token = generate_unfollow_token(
        config.unfollow_secret_key, task.user_id, task.movie_id, task.follow_type
    )
    return f"{config.frontend_base_url}/unfollow?token={token}"


def _prepare_release_data(
    task: NotificationTask, frontend_base_url: str, unfollow_url: str | None
) -> Dict[str, Any]:
    """
    Extract and format everything the templates display.

    Formatters below only handle presentation.
    """
    is_streaming = task.follow_type == "streaming"
    return {
        "title": task.title,
        "date_formatted": task.release_date.strftime("%B %d, %Y"),
        "release_type_text": "available for streaming" if is_streaming else "now in theaters",
        "icon": "📺" if is_streaming else "🎬",
        "follow_type": task.follow_type,
        "poster_url": f"{TMDB_IMAGE_BASE_URL}{task.poster_path}" if task.poster_path else None,
        "movie_url": f"{frontend_base_url}/movie/{task.movie_id}",
        "my_movies_url": f"{frontend_base_url}/my-movies",
        "unfollow_url": unfollow_url,
    }


def send_release_email(
    task: NotificationTask,
    from_email: str,
    frontend_base_url: str,
    unfollow_url: str | None = None,
) -> SendResult:
    """
    Send the release-day email for one task.

    Args:
        task: The notification to deliver
        from_email: Sender address
        frontend_base_url: Site URL used for links in the email
        unfollow_url: Optional one-click unfollow link

    Returns:
        Dictionary with 'success' (bool), 'email_id' (str if success), 'error' (str if failed)
    """
    prepared = _prepare_release_data(task, frontend_base_url, unfollow_url)
    return _deliver(
        task,
        from_email,
        subject=build_subject(task),
        html=_build_release_html(prepared),
        text=_build_release_text(prepared),
        unfollow_url=unfollow_url,
    )


def _deliver(
    task: NotificationTask,
    from_email: str,
    subject: str,
    html: str,
    text: str,
    unfollow_url: str | None,
) -> SendResult:
    params: Dict[str, Any] = {
        "from": f"Movie Release Tracker <{from_email}>",
        "to": task.recipient_email,
        "subject": subject,
        "html": html,
        "text": text,
    }
    if unfollow_url:
        params["headers"] = {
            "List-Unsubscribe": f"<{unfollow_url}>",
            "List-Unsubscribe-Post": "List-Unsubscribe=One-Click",
        }

    try:
        response = resend.Emails.send(params)
        return {"success": True, "email_id": response.get("id")}
    except Exception as e:
        return {"success": False, "error": str(e)}


def make_release_sender(config: ReleaseCheckConfig) -> Callable[[NotificationTask], SendResult]:
    """
    Bind configuration into a one-argument sender for the dispatcher.

    Also sets the Resend API key, which the SDK reads from module state.
    """
    if config.resend_api_key:
        resend.api_key = config.resend_api_key

    def send(task: NotificationTask) -> SendResult:
        return send_release_email(
            task,
            from_email=config.from_email,
            frontend_base_url=config.frontend_base_url,
            unfollow_url=build_unfollow_url(config, task),
        )

    return send


def _build_release_html(prepared: Dict[str, Any]) -> str:
    """Build the HTML body of a release-day email."""
    title = escape(prepared["title"])

    html = f"""
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title} - Release Notification</title>
    <style>
        body {{
            margin: 0;
            padding: 20px;
            background-color: #0a0a0a;
            font-family: 'Segoe UI', -apple-system, BlinkMacSystemFont, sans-serif;
            color: #ccc;
        }}
        .container {{
            max-width: 600px;
            margin: 0 auto;
            background-color: #1a1a1a;
            border-radius: 12px;
        }}
        .header {{
            background-color: #f3d96b;
            color: #1a1a1a;
            padding: 32px;
            text-align: center;
            border-radius: 12px 12px 0 0;
        }}
        .header h1 {{
            margin: 0;
            font-size: 28px;
        }}
        .movie {{
            padding: 32px;
            text-align: center;
        }}
        .poster {{
            width: 200px;
            height: 300px;
            border-radius: 8px;
            margin-bottom: 24px;
        }}
        .movie-title {{
            color: #f3d96b;
            font-size: 28px;
            margin: 0 0 20px 0;
        }}
        .release-date {{
            font-size: 20px;
            font-weight: 600;
            color: #f3d96b;
            margin: 0 0 8px 0;
        }}
        .release-type {{
            font-size: 14px;
            text-transform: uppercase;
            letter-spacing: 1px;
        }}
        .cta {{
            display: inline-block;
            margin-top: 24px;
            padding: 16px 32px;
            background-color: #f3d96b;
            color: #1a1a1a;
            text-decoration: none;
            border-radius: 8px;
            font-weight: 600;
        }}
        .footer {{
            background-color: #111;
            padding: 24px;
            text-align: center;
            font-size: 13px;
            color: #888;
            border-radius: 0 0 12px 12px;
        }}
        .footer a {{
            color: #f3d96b;
            text-decoration: none;
        }}
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <div>{prepared['icon']}</div>
            <h1>Release Day!</h1>
            <p>Your followed movie is {prepared['release_type_text']}</p>
        </div>
        <div class="movie">
"""

    if prepared["poster_url"]:
        html += f"""
            <img class="poster" src="{escape(prepared['poster_url'])}" alt="{title} poster" width="200" height="300" />
"""

    html += f"""
            <h2 class="movie-title">{title}</h2>
            <p class="release-date">{prepared['date_formatted']}</p>
            <p class="release-type">{prepared['release_type_text']}</p>
            <a href="{escape(prepared['movie_url'])}" class="cta">View Movie Details</a>
            <p>
                You're receiving this because you followed the <strong>{prepared['follow_type']}</strong>
                release of <strong>{title}</strong> on Movie Release Tracker.
            </p>
        </div>
        <div class="footer">
            <p>Never miss your favorite movie releases</p>
            <p><a href="{escape(prepared['my_movies_url'])}">Manage Movies</a></p>
"""

    if prepared["unfollow_url"]:
        html += f"""
            <p><a href="{escape(prepared['unfollow_url'])}">Stop following this movie</a></p>
"""

    html += """
        </div>
    </div>
</body>
</html>
"""

    return html


def _build_release_text(prepared: Dict[str, Any]) -> str:
    """Build the plain text body of a release-day email."""
    text = f"""RELEASE DAY!

{prepared['title']} is {prepared['release_type_text']}.
Release date: {prepared['date_formatted']}

View movie details: {prepared['movie_url']}
"""

    if prepared["poster_url"]:
        text += f"Poster: {prepared['poster_url']}\n"

    text += f"""
You're receiving this because you followed the {prepared['follow_type']} release of {prepared['title']}.
Manage your movies: {prepared['my_movies_url']}
"""

    if prepared["unfollow_url"]:
        text += f"Stop following this movie: {prepared['unfollow_url']}\n"

    text += """
---
Movie Release Tracker
"""

    return text


def build_streaming_date_subject(task: NotificationTask) -> str:
    return f'📺 Streaming date added for "{task.title}"'


def send_streaming_date_email(
    task: NotificationTask,
    from_email: str,
    frontend_base_url: str,
    unfollow_url: str | None = None,
) -> SendResult:
    """
    Tell a streaming follower that their movie now has a streaming date.

    `task.release_date` is the newly found streaming date.

    Returns:
        Dictionary with 'success' (bool), 'email_id' (str if success), 'error' (str if failed)
    """
    prepared = _prepare_release_data(task, frontend_base_url, unfollow_url)
    return _deliver(
        task,
        from_email,
        subject=build_streaming_date_subject(task),
        html=_build_streaming_date_html(prepared),
        text=_build_streaming_date_text(prepared),
        unfollow_url=unfollow_url,
    )


def make_streaming_date_sender(
    config: ReleaseCheckConfig,
) -> Callable[[NotificationTask], SendResult]:
    """Sender for streaming-date announcements, bound like make_release_sender."""
    if config.resend_api_key:
        resend.api_key = config.resend_api_key

    def send(task: NotificationTask) -> SendResult:
        return send_streaming_date_email(
            task,
            from_email=config.from_email,
            frontend_base_url=config.frontend_base_url,
            unfollow_url=build_unfollow_url(config, task),
        )

    return send


def _build_streaming_date_html(prepared: Dict[str, Any]) -> str:
    title = escape(prepared["title"])

    html = f"""
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title} - Streaming Date Added</title>
</head>
<body style="margin: 0; padding: 20px; background-color: #0a0a0a; font-family: 'Segoe UI', -apple-system, BlinkMacSystemFont, sans-serif; color: #ccc;">
    <div style="max-width: 600px; margin: 0 auto; background-color: #1a1a1a; border-radius: 12px;">
        <div style="background-color: #f3d96b; color: #1a1a1a; padding: 32px; text-align: center; border-radius: 12px 12px 0 0;">
            <div>📺</div>
            <h1 style="margin: 0; font-size: 28px;">Streaming Date Added</h1>
        </div>
        <div style="padding: 32px; text-align: center;">
"""

    if prepared["poster_url"]:
        html += f"""
            <img src="{escape(prepared['poster_url'])}" alt="{title} poster" width="200" height="300" style="border-radius: 8px; margin-bottom: 24px;" />
"""

    html += f"""
            <h2 style="color: #f3d96b; font-size: 28px; margin: 0 0 20px 0;">{title}</h2>
            <p>Streaming release date:</p>
            <p style="font-size: 20px; font-weight: 600; color: #f3d96b;">{prepared['date_formatted']}</p>
            <p>We'll email you again when it's available to stream.</p>
            <a href="{escape(prepared['movie_url'])}" style="display: inline-block; margin-top: 24px; padding: 16px 32px; background-color: #f3d96b; color: #1a1a1a; text-decoration: none; border-radius: 8px; font-weight: 600;">View Movie Details</a>
        </div>
        <div style="background-color: #111; padding: 24px; text-align: center; font-size: 13px; color: #888; border-radius: 0 0 12px 12px;">
            <p><a href="{escape(prepared['my_movies_url'])}" style="color: #f3d96b;">Manage Movies</a></p>
"""

    if prepared["unfollow_url"]:
        html += f"""
            <p><a href="{escape(prepared['unfollow_url'])}" style="color: #f3d96b;">Stop following this movie</a></p>
"""

    html += """
        </div>
    </div>
</body>
</html>
"""

    return html


def _build_streaming_date_text(prepared: Dict[str, Any]) -> str:
    text = f"""STREAMING DATE ADDED

{prepared['title']} now has a streaming release date: {prepared['date_formatted']}
We'll email you again when it's available to stream.

View movie details: {prepared['movie_url']}
Manage your movies: {prepared['my_movies_url']}
"""

    if prepared["unfollow_url"]:
        text += f"Stop following this movie: {prepared['unfollow_url']}\n"

    text += """
---
Movie Release Tracker
"""

    return text
