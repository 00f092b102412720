"""
Helpers that turn run figures and image names into short display strings.
"""

SIZE_UNITS = ["B", "KB", "MB", "GB", "TB"]


def format_size(bytes_size: float) -> str:
    """Formats bytes into a human-readable size string (e.g., '145.3 KB')."""
    if bytes_size <= 0:
        return "0 B"
    i = 0
    while bytes_size >= 1024 and i < len(SIZE_UNITS) - 1:
        bytes_size /= 1024
        i += 1
    if i == 0:
        return f"{int(bytes_size)} B"
    return f"{bytes_size:.1f} {SIZE_UNITS[i]}"


def format_speed(bytes_size: int, seconds: float) -> str:
    """Average transfer rate, e.g. '1.2 MB/s'. Zero when no time elapsed."""
    if seconds <= 0:
        return "0 B/s"
    return f"{format_size(bytes_size / seconds)}/s"


def format_duration(seconds: float) -> str:
    """
    Formats a run duration. Runs under ten seconds keep one decimal
    ('3.4s'); longer ones are split into units ('2m 5s').
    """
    if seconds < 10:
        return f"{max(seconds, 0.0):.1f}s"
    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)


def shorten(text: str, width: int, keep_end: bool = False) -> str:
    """
    Cuts ``text`` to ``width`` characters with an ellipsis. ``keep_end``
    keeps the tail, which is the distinguishing part of most image names.
    """
    if len(text) <= width:
        return text
    if keep_end:
        return "…" + text[-(width - 1):]
    return text[: width - 1] + "…"
