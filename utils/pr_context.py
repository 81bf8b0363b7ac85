#!/usr/bin/env python3
"""Pull request context for the running GitHub Actions job.

The repository comes from GITHUB_REPOSITORY and the PR number / head SHA from
the event payload at GITHUB_EVENT_PATH.
"""

import json
import os
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field


class PRContextError(Exception):
    def __init__(self, message: str, code: str = "NO_PR_CONTEXT") -> None:
        super().__init__(message)
        self.code = code


class PRContext(BaseModel):
    """Repository and pull request the diff comment is posted to."""

    owner: str = Field(..., description="Repository owner (user or organization)")
    repo: str = Field(..., description="Repository name")
    number: int = Field(..., description="Pull request number")
    head_sha: str = Field("", description="Head commit SHA of the pull request")

    model_config = {"extra": "ignore", "frozen": True}

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @classmethod
    def from_event(cls, repository: str, event: Dict[str, Any]) -> "PRContext":
        """Create PRContext from `owner/repo` and a webhook event payload.

        Args:
            repository: Repository in 'owner/repo' format
            event: Parsed GitHub event payload

        Returns:
            PRContext for the pull request the event refers to

        Raises:
            PRContextError: If the repository or PR number cannot be determined
        """
        owner, sep, repo = (repository or "").partition("/")
        if not sep or not owner or not repo:
            raise PRContextError(f"Invalid repository '{repository}', expected 'owner/repo'")
        pull_request = safe_extract(event, "pull_request", default={}) or {}
        number = pull_request.get("number") or safe_extract(event, "issue", "number") or event.get("number")
        if not number:
            raise PRContextError("Event payload does not reference a pull request")
        head_sha = safe_extract(pull_request, "head", "sha", default="") or ""
        return cls(owner=owner, repo=repo, number=int(number), head_sha=head_sha)

    @classmethod
    def from_environment(cls, environ: Optional[Mapping[str, str]] = None) -> "PRContext":
        env = os.environ if environ is None else environ
        event_path = env.get("GITHUB_EVENT_PATH")
        if not event_path:
            raise PRContextError("GITHUB_EVENT_PATH is not set; not running in GitHub Actions?")
        try:
            with open(event_path, "r", encoding="utf-8") as f:
                event = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PRContextError(f"Cannot read event payload {event_path}: {e}")
        return cls.from_event(env.get("GITHUB_REPOSITORY", ""), event)


def safe_extract(data: Dict, *keys, default=None):
    """Safely extract nested dictionary values.

    Example:
        safe_extract(event, "pull_request", "head", "sha", default="")
    """
    current = data
    for key in keys:
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
    return current
