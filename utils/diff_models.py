#!/usr/bin/env python3
"""Pydantic models for per-application diff results."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from utils.app_models import Application


class DiffError(BaseModel):
    """Failure output of an `argocd app diff` invocation.

    `underlying` is the JSON-serializable record of the failed command.
    """

    stdout: str = ""
    stderr: str = ""
    underlying: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}


class AppDiff(BaseModel):
    """One application's diff result. Diff and error may both be present."""

    app: Application
    diff: Optional[str] = None
    error: Optional[DiffError] = None

    model_config = {"frozen": True}


class RenderedAppBlock(BaseModel):
    """Final markdown section for one application.

    `oversized` is set when even the fully truncated block cannot fit the
    comment budget together with the global header and legend.
    """

    text: str
    oversized: bool = False

    model_config = {"frozen": True}

    @property
    def length(self) -> int:
        return len(self.text)
