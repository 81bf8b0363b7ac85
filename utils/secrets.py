#!/usr/bin/env python3
"""Redact secret values from text before it leaves the runner."""

from __future__ import annotations

from typing import Iterable, List

REDACTED = "***"


def header_secrets(headers: Iterable[str]) -> List[str]:
    """Secrets carried by `Name: value` header strings: each full header and its value."""
    out: List[str] = []
    for raw in headers or []:
        line = raw.strip()
        if not line:
            continue
        out.append(line)
        _, sep, value = line.partition(":")
        if sep and value.strip():
            out.append(value.strip())
    return out


def scrub_secrets(text: str, secrets: Iterable[str]) -> str:
    """Replace every occurrence of each non-empty secret with `***`.

    Longer secrets are replaced first so a secret that contains another is
    redacted as a whole.
    """
    if not text:
        return text
    # a secret shorter than REDACTED grows the text; callers re-check size limits
    for secret in sorted({s for s in secrets or [] if s}, key=len, reverse=True):
        text = text.replace(secret, REDACTED)
    return text
