"""Utility functions for the ExamDesk backend."""

from datetime import datetime, timezone


def format_seat_number(position: int, seat_format: str = "plain") -> str:
    """Seat label for a 1-based position: "7" (plain) or "007" (padded)."""
    if seat_format == "padded":
        return str(position).zfill(3)
    return str(position)


def format_duration(minutes) -> str:
    """Human readable duration: 90 -> "1h 30min", 45 -> "45 min"."""
    if not minutes:
        return "0 min"

    hours, mins = divmod(int(minutes), 60)
    if hours > 0:
        return f"{hours}h {mins}min" if mins > 0 else f"{hours}h"
    return f"{mins} min"


def matches_search(term: str, *fields) -> bool:
    """Case-insensitive substring match of `term` against any of the fields."""
    if not term:
        return True

    term = term.lower()
    return any(f and term in str(f).lower() for f in fields)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
