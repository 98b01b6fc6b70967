"""
Duration formatting helpers for emails and admin views.
"""


def format_duration(seconds: int) -> str:
    """Format seconds as ``HH:MM:SS``, or ``MM:SS`` under an hour."""
    if not seconds or seconds < 0:
        return "00:00"

    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)

    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def format_duration_readable(seconds: int) -> str:
    """Human readable duration such as ``2h 30min`` or ``45min``."""
    if not seconds or seconds < 0:
        return "0min"

    hours, remainder = divmod(int(seconds), 3600)
    minutes = remainder // 60

    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}min")

    return " ".join(parts) if parts else "0min"
