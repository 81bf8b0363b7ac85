#!/usr/bin/env python3
"""Pydantic models for Argo CD Applications.

Mirrors the subset of the `/api/v1/applications` payload this tool reads, plus
the filtered collection type used to pick the apps worth diffing.
"""

from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field


class SyncStatus(str, Enum):
    SYNCED = "Synced"
    OUT_OF_SYNC = "OutOfSync"
    UNKNOWN = "Unknown"


def normalize_sync_status(value: Optional[str]) -> SyncStatus:
    """Normalize a raw sync status string to a SyncStatus value.

    Args:
        value: Raw `status.sync.status` from the API

    Returns:
        The matching SyncStatus, or UNKNOWN if missing/unrecognized
    """
    if not value or not value.strip():
        return SyncStatus.UNKNOWN
    try:
        return SyncStatus(value.strip())
    except ValueError:
        return SyncStatus.UNKNOWN


class AppMetadata(BaseModel):
    name: str = Field(..., description="Application name")
    namespace: Optional[str] = Field(None, description="Namespace the Application lives in")

    model_config = {"extra": "ignore", "frozen": True}


class AppSource(BaseModel):
    repo_url: str = Field("", alias="repoURL", description="Git repository URL")
    path: Optional[str] = Field(None, description="Path of the manifests inside the repository")
    target_revision: Optional[str] = Field(None, alias="targetRevision", description="Tracked revision")
    helm: Optional[Dict[str, Any]] = None
    kustomize: Optional[Dict[str, Any]] = None

    model_config = {"extra": "ignore", "frozen": True, "populate_by_name": True}


class AppSpec(BaseModel):
    source: Optional[AppSource] = None

    model_config = {"extra": "ignore", "frozen": True}


class AppSync(BaseModel):
    status: Optional[str] = None

    model_config = {"extra": "ignore", "frozen": True}


class AppStatus(BaseModel):
    sync: AppSync = Field(default_factory=AppSync)

    model_config = {"extra": "ignore", "frozen": True}


class Application(BaseModel):
    """An Argo CD Application as returned by the API."""

    metadata: AppMetadata
    spec: AppSpec = Field(default_factory=AppSpec)
    status: AppStatus = Field(default_factory=AppStatus)

    model_config = {"extra": "ignore", "frozen": True}

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def source_path(self) -> Optional[str]:
        return self.spec.source.path if self.spec.source else None

    @property
    def sync_status(self) -> SyncStatus:
        return normalize_sync_status(self.status.sync.status)


class AppTargetRevision(BaseModel):
    """A child Application whose targetRevision changed inside an app of apps."""

    app_name: str
    target_revision: str

    model_config = {"frozen": True}


def _normalize_repo_url(url: str) -> str:
    url = (url or "").strip().rstrip("/").lower()
    if url.endswith(".git"):
        url = url[: -len(".git")]
    return url


class AppCollection(BaseModel):
    """Ordered, immutable set of Applications.

    `apps` is None when the server returned no `items` at all, which happens
    when the API token cannot read any Application.
    """

    apps: Optional[Tuple[Application, ...]] = None

    model_config = {"frozen": True}

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "AppCollection":
        items = (payload or {}).get("items")
        if items is None:
            return cls(apps=None)
        return cls(apps=tuple(Application.model_validate(i) for i in items))

    @classmethod
    def of(cls, apps: Iterable[Application]) -> "AppCollection":
        return cls(apps=tuple(apps))

    def _filter(self, keep) -> "AppCollection":
        return AppCollection(apps=tuple(a for a in (self.apps or ()) if keep(a)))

    def filter_by_repo(self, full_name: str) -> "AppCollection":
        """Keep apps whose source repoURL points at `owner/repo`."""
        wanted = full_name.strip("/").lower()

        def keep(app: Application) -> bool:
            if not app.spec.source:
                return False
            url = _normalize_repo_url(app.spec.source.repo_url)
            return url.endswith(f"/{wanted}") or url.endswith(f":{wanted}")

        return self._filter(keep)

    def filter_by_target_revision(self, revisions: Iterable[str]) -> "AppCollection":
        """Keep apps tracking one of `revisions`; an unset revision counts as HEAD."""
        allowed = set(revisions)

        def keep(app: Application) -> bool:
            rev = (app.spec.source.target_revision if app.spec.source else None) or "HEAD"
            return rev in allowed

        return self._filter(keep)

    def filter_by_excluded_path(self, excluded: Iterable[str]) -> "AppCollection":
        """Drop apps whose source path starts with one of `excluded`."""
        prefixes = [p for p in excluded if p]

        def keep(app: Application) -> bool:
            path = app.source_path or ""
            return not any(path.startswith(p) for p in prefixes)

        return self._filter(keep)

    def find(self, name: str) -> Optional[Application]:
        for app in self.apps or ():
            if app.name == name:
                return app
        return None

    def names(self) -> List[str]:
        return [a.name for a in self.apps or ()]
