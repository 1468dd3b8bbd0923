from datetime import datetime

from ..clock import to_local_naive


HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"
DAY_KEY_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


def normalize_instant(value: datetime) -> datetime:
    """Store every instant as local wall-clock time without tzinfo."""

    return to_local_naive(value)


def format_minutes(minutes: int) -> str:
    """Japanese duration label used by the UI (`30分`, `1時間`, `1時間30分`)."""

    hours, remaining = divmod(int(minutes), 60)
    if hours <= 0:
        return f"{minutes}分"
    if remaining:
        return f"{hours}時間{remaining}分"
    return f"{hours}時間"
