#!/usr/bin/env python3
"""Pack rendered app blocks into size-bounded PR comment bodies.

Greedy first-fit: blocks are placed in order and a new comment is started
only when the next block does not fit the current one. A block is never
split across comments; oversized apps are truncated beforehand by the
renderer.
"""

from __future__ import annotations

from functools import reduce
from typing import List, NamedTuple, Optional, Sequence, Tuple

from utils.app_block_renderer import render_app_block
from utils.diff_models import AppDiff, RenderedAppBlock
from utils.events import EventSink, null_sink
from utils.markdown_renderer import position_marker

GITHUB_COMMENT_LIMIT = 65536


class _Packing(NamedTuple):
    current: str
    placed: int
    bodies: Tuple[str, ...]


def pack_comment_bodies(
    blocks: Sequence[RenderedAppBlock],
    header: str,
    legend: str,
    limit: int,
    emit: Optional[EventSink] = None,
) -> List[str]:
    """Pack blocks into the fewest comments the greedy pass allows.

    Every body is `header + blocks + legend`. No body is emitted without at
    least one block, so an empty input yields an empty list.
    """
    emit = emit or null_sink

    def step(state: _Packing, block: RenderedAppBlock) -> _Packing:
        candidate = state.current + block.text
        if len(candidate) + len(legend) > limit and state.placed > 0:
            return _Packing(header + block.text, 1, state.bodies + (state.current + legend,))
        return _Packing(candidate, state.placed + 1, state.bodies)

    result = reduce(step, blocks, _Packing(header, 0, ()))
    bodies = list(result.bodies)
    if result.placed > 0:
        bodies.append(result.current + legend)

    for idx, body in enumerate(bodies, start=1):
        if len(body) > limit:
            emit("warning", f"Comment {idx}/{len(bodies)} is {len(body)} characters, over the {limit} limit")
    emit("debug", f"Packed {len(blocks)} app reports into {len(bodies)} comment(s)")
    return bodies


def number_comment_bodies(bodies: Sequence[str], header: str) -> List[str]:
    """Insert an `i/n` marker right after the header when there are several bodies."""
    total = len(bodies)
    if total <= 1:
        return list(bodies)
    return [
        header + position_marker(idx, total) + body[len(header):]
        for idx, body in enumerate(bodies, start=1)
    ]


def build_comment_bodies(
    diffs: Sequence[AppDiff],
    header: str,
    legend: str,
    argocd_uri: str,
    limit: int = GITHUB_COMMENT_LIMIT,
    emit: Optional[EventSink] = None,
) -> List[str]:
    """Render, pack and number the comment bodies for a set of app diffs.

    With more than one app the budget leaves room for the widest `i/n`
    marker, so numbered bodies stay within `limit` as well.
    """
    reserve = len(position_marker(len(diffs), len(diffs))) if len(diffs) > 1 else 0
    budget = limit - reserve
    blocks = [
        render_app_block(d.app, d.diff, d.error, header, legend, budget, argocd_uri, emit)
        for d in diffs
    ]
    bodies = pack_comment_bodies(blocks, header, legend, budget, emit)
    return number_comment_bodies(bodies, header)
