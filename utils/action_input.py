#!/usr/bin/env python3
"""Typed, validated view of the GitHub Action inputs."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from configs.config import Config


class ActionInputError(Exception):
    def __init__(self, message: str, code: str = "MISSING_INPUT"):
        super().__init__(message)
        self.code = code


class ArgoCDInput(BaseModel):
    fqdn: str = Field(..., description="Argo CD server host name")
    token: str = Field(..., description="Argo CD API token")
    cli_version: str = "v2.13.0"
    extra_cli_args: str = ""
    headers: List[str] = Field(default_factory=list, description="Extra 'Name: value' HTTP headers")
    target_revisions: List[str] = Field(default_factory=lambda: ["master", "main", "HEAD"])
    exclude_paths: List[str] = Field(default_factory=list)
    plaintext: bool = False
    bin_dir: str = "bin"

    model_config = {"frozen": True}

    @property
    def protocol(self) -> str:
        return "http" if self.plaintext else "https"

    @property
    def uri(self) -> str:
        return f"{self.protocol}://{self.fqdn}"


class ActionInput(BaseModel):
    github_token: str
    argocd: ArgoCDInput
    timezone: str = "America/Los_Angeles"
    arch: str = "linux-amd64"
    comment_limit: int = Field(65536, gt=0)
    dry_run: bool = False

    model_config = {"frozen": True}

    @classmethod
    def from_config(cls, dry_run: Optional[bool] = None) -> "ActionInput":
        """Build the action input from Config, failing fast on missing required inputs."""
        dry_run = Config.DRY_RUN if dry_run is None else dry_run
        argocd_cfg = Config.get_argocd_config()
        missing = [
            name
            for name, value in (
                ("github-token", Config.GITHUB_TOKEN),
                ("argocd-server-fqdn", argocd_cfg["fqdn"]),
                ("argocd-token", argocd_cfg["token"]),
            )
            if not value
        ]
        # github-token is not needed when only rendering
        if dry_run:
            missing = [m for m in missing if m != "github-token"]
        if missing:
            raise ActionInputError(f"Missing required input(s): {', '.join(missing)}")
        comment_limit = _parse_comment_limit(Config.COMMENT_LIMIT)
        return cls(
            github_token=Config.GITHUB_TOKEN or "",
            argocd=ArgoCDInput(**argocd_cfg),
            timezone=Config.TIMEZONE,
            arch=Config.ARCH,
            comment_limit=comment_limit,
            dry_run=dry_run,
        )


def _parse_comment_limit(raw) -> int:
    try:
        limit = int(str(raw).strip())
    except ValueError:
        raise ActionInputError(f"comment-limit must be an integer, got '{raw}'", code="INVALID_INPUT")
    if limit <= 0:
        raise ActionInputError(f"comment-limit must be positive, got {limit}", code="INVALID_INPUT")
    return limit
