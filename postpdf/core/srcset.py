import re
from dataclasses import dataclass
from typing import List

# Mirrors an integer sanitizer: digits and sign characters survive.
NON_NUMERIC_PATTERN = re.compile(r'[^0-9+\-]')
LEADING_INT_PATTERN = re.compile(r'[+\-]?\d+')


@dataclass
class ImageCandidate:
    """One `<url> <width>w` entry of a responsive image descriptor."""

    url: str
    width: int


def parse_width(token: str) -> int:
    """
    Parses a width descriptor such as '800w'.
    Garbled units are tolerated; anything unparsable or non-positive is 0.
    """
    sanitized = NON_NUMERIC_PATTERN.sub('', token)
    match = LEADING_INT_PATTERN.match(sanitized)
    if not match:
        return 0
    width = int(match.group(0))
    return width if width > 0 else 0


def parse_candidates(descriptor: str) -> List[ImageCandidate]:
    """Returns every entry of a srcset that carries a positive width."""
    candidates = []
    for item in (descriptor or '').split(','):
        parts = item.split()
        if len(parts) < 2:
            continue
        width = parse_width(parts[1])
        if width:
            candidates.append(ImageCandidate(parts[0], width))
    return candidates


def resolve(descriptor: str) -> str:
    """
    Picks the widest image URL from a srcset descriptor.

    Ties go to the first candidate reaching the maximum width.
    Returns an empty string when no entry has a usable width.
    """
    largest = ''
    max_width = 0
    for candidate in parse_candidates(descriptor):
        if candidate.width > max_width:
            max_width = candidate.width
            largest = candidate.url
    return largest
