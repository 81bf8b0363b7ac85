#!/usr/bin/env python3
from __future__ import annotations

from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo


LEGEND = """
| Legend | Status |
| :---:  | :---   |
| ✅     | The app is synced in ArgoCD, and diffs you see are solely from this PR. |
| ⚠️      | The app is out-of-sync in ArgoCD, and the diffs you see include those changes plus any from this PR. |
| 🛑     | There was an error generating the ArgoCD diffs due to changes in this PR. |
"""


def commit_link(owner: str, repo: str, pr_number: int, sha: str) -> str:
	return f"https://github.com/{owner}/{repo}/pull/{pr_number}/commits/{sha}"


def format_timestamp(timezone: str, now: Optional[datetime] = None) -> str:
	tz = ZoneInfo(timezone)
	moment = now.astimezone(tz) if now else datetime.now(tz)
	return moment.strftime("%Y-%m-%d, %H:%M:%S %Z")


def render_header(
	fqdn: str,
	owner: str,
	repo: str,
	pr_number: int,
	sha: str,
	*,
	timezone: str = "America/Los_Angeles",
	now: Optional[datetime] = None,
) -> str:
	"""Render the global header shared by every comment body."""
	short_sha = (sha or "")[:7]
	link = commit_link(owner, repo, pr_number, sha)
	return (
		f"## ArgoCD Diff {fqdn} for commit [`{short_sha}`]({link})\n"
		f"\n"
		f"_Updated at {format_timestamp(timezone, now)}_\n"
	)


def position_marker(index: int, total: int) -> str:
	# index is 1-based
	return f"_{index}/{total}_\n"


def details_block(content: str) -> str:
	"""Wrap diff text in a collapsible, diff-highlighted fenced block."""
	return f"\n<details>\n\n```diff\n{content}\n```\n\n</details>\n"
