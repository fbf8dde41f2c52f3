"""ISO 8601 duration helpers for YouTube ``contentDetails.duration`` values"""

import re
from typing import Optional

# Videos at or below this length are treated as Shorts
SHORTS_MAX_SECONDS = 60

_DURATION_PATTERN = re.compile(r'PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?')


def parse_iso_duration(duration: Optional[str]) -> int:
    """
    Parse a YouTube duration such as ``PT1H5M10S`` into whole seconds.

    Each of the hour, minute and second components is optional; ``PT``
    alone is zero. Values without the ``PT`` marker (or ``None``) also
    parse to zero rather than raising.
    """
    if not duration:
        return 0

    match = _DURATION_PATTERN.search(duration)
    if not match:
        return 0

    hours = int(match.group(1) or 0)
    minutes = int(match.group(2) or 0)
    seconds = int(match.group(3) or 0)

    return hours * 3600 + minutes * 60 + seconds


def is_short(duration_seconds: int) -> bool:
    return duration_seconds <= SHORTS_MAX_SECONDS


def format_duration(duration_seconds: int) -> str:
    """Render seconds as ``H:MM:SS``, or ``M:SS`` under an hour."""
    hours, remainder = divmod(duration_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)

    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"
