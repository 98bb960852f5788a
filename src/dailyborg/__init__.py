"""dailyborg: dailyborg/__init__.py."""

from datetime import date


__version__ = "0.3.0"


def snapshot_name(prefix: str, day: date) -> str:
    """Deterministic archive name for a calendar day, e.g. backup_2026-10-19."""
    return f"{prefix}_{day.isoformat()}"
