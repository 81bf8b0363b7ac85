#!/usr/bin/env python3
"""Split `argocd app diff` output into per-resource segments.

Each resource section starts with a `===== <group/kind> <ns/name> ======`
line. The marker stays at the head of the segment it introduces, so joining
the segments in order gives back the original text.
"""

from __future__ import annotations

from typing import List

RESOURCE_MARKER = "===== "


def _marker_positions(text: str) -> List[int]:
    positions: List[int] = []
    idx = text.find(RESOURCE_MARKER)
    while idx != -1:
        positions.append(idx)
        idx = text.find(RESOURCE_MARKER, idx + len(RESOURCE_MARKER))
    return positions


def split_resources(diff_text: str) -> List[str]:
    """Return the ordered, non-empty resource segments of `diff_text`."""
    if not diff_text:
        return []
    bounds = [0] + _marker_positions(diff_text) + [len(diff_text)]
    segments = (diff_text[start:end] for start, end in zip(bounds, bounds[1:]))
    return [s for s in segments if s]


def count_resources(diff_text: str) -> int:
    return len(split_resources(diff_text))
