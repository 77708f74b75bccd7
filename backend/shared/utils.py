from datetime import datetime
from dateutil import parser as date_parser


def parse_date_string(date_str: str) -> str | None:
    """Parse various date formats into ISO format."""
    if not date_str:
        return None
    try:
        dt = date_parser.parse(date_str, fuzzy=True)
        return str(dt.isoformat())
    except (ValueError, OverflowError, TypeError):
        return None


def print_summary(date: str | None, sent: int, skipped: int, failed: int) -> None:
    """Print release check summary."""
    print(f"\n{'=' * 60}")
    print(f"[{datetime.now()}] Release Check Complete!")
    print(f"{'=' * 60}")
    print(f"Release date: {date}")
    print(f"✓ Sent: {sent}")
    print(f"⊘ Skipped (no recipient): {skipped}")
    print(f"✗ Failed: {failed}")
    print(f"{'=' * 60}\n")
