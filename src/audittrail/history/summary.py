"""Human-readable phrasing for diff stats and elapsed time."""

from datetime import datetime

MINUTE = 60
HOUR_MINUTES = 60
DAY_MINUTES = 24 * HOUR_MINUTES
WEEK_MINUTES = 7 * DAY_MINUTES


def summarize_diff(added: int, removed: int) -> str:
    """Describe the change between two consecutive versions."""
    if added > removed:
        return f"Added ~{added} words"
    if removed > added:
        return f"Removed ~{removed} words"
    if added > 0:
        return f"Edited content (~{added} words changed)"
    return "Title updated or minor changes"


def summarize_creation(word_count: int) -> str:
    """Describe the first version of a task."""
    if word_count > 0:
        return f"Created with {word_count} words"
    return "Created new task"


def format_date(instant: datetime) -> str:
    """Render a date as M/D/YYYY."""
    return f"{instant.month}/{instant.day}/{instant.year}"


def relative_time(past: datetime, now: datetime) -> str:
    """Describe how long ago ``past`` was, seen from ``now``.

    Future instants (negative deltas) are clamped to "just now".
    Anything a week or older falls back to an absolute date.
    """
    minutes = int((now - past).total_seconds() // MINUTE)

    if minutes < 1:
        return "just now"
    if minutes < HOUR_MINUTES:
        return f"{minutes}m ago"
    if minutes < DAY_MINUTES:
        return f"{minutes // HOUR_MINUTES}h ago"
    if minutes < WEEK_MINUTES:
        return f"{minutes // DAY_MINUTES}d ago"
    return format_date(past)
