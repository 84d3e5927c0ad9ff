"""
Path segment rules shared by configuration validation and path mapping.
"""

import re

# One URL path segment: no separators, no whitespace, no query/fragment markers.
_SEGMENT_RE = re.compile(r"^[^/\s?#]+$")


def is_valid_segment(segment: object) -> bool:
    """True if segment can be used as a single frontend path segment."""
    return isinstance(segment, str) and bool(_SEGMENT_RE.match(segment))


def join_path(segment: str, slug: str) -> str:
    return f"/{segment}/{slug}"


def prefix(segment: str) -> str:
    return f"/{segment}/"
