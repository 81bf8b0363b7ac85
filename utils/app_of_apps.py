#!/usr/bin/env python3
"""Detect child Application targetRevision changes inside app-of-apps diffs.

Only `targetRevision` changes are picked up; other edits to a child
Application (Helm values, paths, ...) are not followed.
"""

from __future__ import annotations

import re
from typing import List, Optional, Sequence

from utils.app_models import AppTargetRevision
from utils.diff_models import AppDiff
from utils.events import EventSink, null_sink
from utils.resource_splitter import split_resources

APPLICATION_KIND = "argoproj.io/Application"

_APPLICATION_HEADER_RE = re.compile(r"^===== argoproj\.io/Application (\S+)/(\S+) ======$", re.MULTILINE)
_NEW_TARGET_REVISION_RE = re.compile(r"^>\s+targetRevision:\s*(.+?)\s*$", re.MULTILINE)


def find_target_revision(resource: str) -> Optional[AppTargetRevision]:
    """Return the new targetRevision of a single Application resource diff, if changed."""
    header = _APPLICATION_HEADER_RE.search(resource)
    if not header:
        return None
    revision = _NEW_TARGET_REVISION_RE.search(resource)
    if not revision:
        return None
    return AppTargetRevision(app_name=header.group(2), target_revision=revision.group(1))


def get_app_of_app_target_revisions(
    diffs: Sequence[AppDiff], emit: Optional[EventSink] = None
) -> List[AppTargetRevision]:
    """Collect child app targetRevision changes in discovery order."""
    emit = emit or null_sink
    found: List[AppTargetRevision] = []
    for app_diff in diffs:
        parent = app_diff.app.name
        if not app_diff.diff or APPLICATION_KIND not in app_diff.diff:
            emit("debug", f"No targetRevision change found in Applications of Application '{parent}'.")
            continue
        emit("debug", f"Found Application in the diff for Application '{parent}'.")
        for resource in split_resources(app_diff.diff):
            target = find_target_revision(resource)
            if target is None:
                continue
            emit("info", f"Found targetRevision change on Application '{target.app_name}' of Application '{parent}'.")
            found.append(target)
    return found
