#!/usr/bin/env python3
"""Render one application's section of the diff comment.

A section is the app header, an optional error section, the diff wrapped in
a details block, and a divider. When the section alone would push a comment
over the size limit, the diff is cut down to the longest prefix of whole
resources that fits and a truncation notice is appended.
"""

from __future__ import annotations

import json
from functools import reduce
from typing import NamedTuple, Optional

from utils.app_models import Application, SyncStatus
from utils.diff_models import DiffError, RenderedAppBlock
from utils.events import EventSink, null_sink
from utils.markdown_renderer import details_block
from utils.resource_splitter import split_resources

SECTION_DIVIDER = "\n---\n"


def render_app_header(app: Application, error: Optional[DiffError], argocd_uri: str) -> str:
    generation = "Error 🛑" if error else "Success 🟢"
    sync = "Synced ✅" if app.sync_status is SyncStatus.SYNCED else "Out of Sync ⚠️"
    return (
        f"App: [`{app.name}`]({argocd_uri}/applications/{app.name})\n"
        f"YAML generation: {generation}\n"
        f"App sync status: {sync}\n"
    )


def render_error_section(error: Optional[DiffError]) -> str:
    if error is None:
        return ""
    return (
        "\n**`stderr:`**\n"
        f"```\n{error.stderr}\n```\n"
        "\n**`command:`**\n"
        f"```json\n{json.dumps(error.underlying, default=str)}\n```\n"
    )


def truncation_notice(app: Application, shown: int, total: int) -> str:
    return (
        f"\n> ⚠️ Diff truncated (showing {shown}/{total} resources). Run locally to see the full diff:\n"
        f"> `argocd app diff {app.name} --local-repo-root=. --local={app.source_path or ''}`\n"
    )


class _Truncation(NamedTuple):
    diff: str
    shown: int
    stopped: bool


def render_app_block(
    app: Application,
    diff: Optional[str],
    error: Optional[DiffError],
    header: str,
    legend: str,
    limit: int,
    argocd_uri: str,
    emit: Optional[EventSink] = None,
) -> RenderedAppBlock:
    """Render a single app's block so that header + block + legend fits `limit`.

    Args:
        app: Application the diff belongs to
        diff: Raw `argocd app diff` output, if any
        error: Diff generation failure, if any
        header: Global comment header the block will be packed under
        legend: Global comment legend the block will be packed above
        limit: Maximum comment length in characters
        argocd_uri: Base URI of the Argo CD UI for app links
        emit: Event sink for the oversize warning

    Returns:
        The rendered block; `oversized` is set if no truncation can make it fit
    """
    emit = emit or null_sink
    chrome = len(header) + len(legend)
    prefix = render_app_header(app, error, argocd_uri) + render_error_section(error)

    if not diff:
        text = prefix + SECTION_DIVIDER
        oversized = chrome + len(text) > limit
        if oversized:
            emit("warning", f"Report for app '{app.name}' exceeds the comment limit without any diff ({chrome + len(text)} > {limit})")
        return RenderedAppBlock(text=text, oversized=oversized)

    full = prefix + details_block(diff) + SECTION_DIVIDER
    if chrome + len(full) <= limit:
        return RenderedAppBlock(text=full)

    resources = split_resources(diff)
    total = len(resources)

    def compose(shown_diff: str, shown: int) -> str:
        return prefix + details_block(shown_diff) + truncation_notice(app, shown, total) + SECTION_DIVIDER

    def step(state: _Truncation, resource: str) -> _Truncation:
        if state.stopped:
            return state
        candidate = state.diff + resource
        if chrome + len(compose(candidate, state.shown + 1)) > limit:
            return state._replace(stopped=True)
        return _Truncation(candidate, state.shown + 1, False)

    result = reduce(step, resources, _Truncation("", 0, False))
    text = compose(result.diff, result.shown)
    emit("info", f"Diff for app '{app.name}' truncated to {result.shown}/{total} resources")

    oversized = chrome + len(text) > limit
    if oversized:
        emit("warning", f"Truncated report for app '{app.name}' still exceeds the comment limit ({chrome + len(text)} > {limit})")
    return RenderedAppBlock(text=text, oversized=oversized)
