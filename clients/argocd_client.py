#!/usr/bin/env python3
"""Argo CD access: CLI install, application listing and `argocd app diff` runs.

Diff failures are returned as data on the AppDiff record; only problems that
stop the whole run (CLI download, API listing) raise ArgoCDError.
"""

from __future__ import annotations

import logging
import os
import shlex
import stat
import subprocess
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from configs.config import Config
from utils.action_input import ActionInput
from utils.app_models import AppCollection, Application, AppTargetRevision
from utils.diff_models import AppDiff, DiffError
from utils.secrets import header_secrets, scrub_secrets

logger = logging.getLogger(__name__)

APP_FIELDS = ",".join([
	"items.metadata.name",
	"items.spec.source.path",
	"items.spec.source.repoURL",
	"items.spec.source.targetRevision",
	"items.spec.source.helm",
	"items.spec.source.kustomize",
	"items.status.sync.status",
])

RELEASE_URL = "https://github.com/argoproj/argo-cd/releases/download/{version}/argocd-{arch}"


class ArgoCDError(Exception):
	def __init__(self, message: str, code: str = "UNKNOWN") -> None:
		super().__init__(message)
		self.code = code


def parse_header(raw: str) -> Optional[Tuple[str, str]]:
	name, sep, value = raw.partition(":")
	if not sep or not name.strip():
		return None
	return name.strip(), value.strip()


def _as_text(output) -> str:
	# TimeoutExpired carries bytes even when the run used text=True
	if isinstance(output, bytes):
		return output.decode("utf-8", errors="replace")
	return output or ""


class ArgoCDServer:
	def __init__(
		self,
		action_input: ActionInput,
		*,
		runner: Optional[Callable[..., subprocess.CompletedProcess]] = None,
		session: Optional[requests.Session] = None,
		timeout_s: Optional[int] = None,
		diff_timeout_s: Optional[int] = None,
	) -> None:
		self.argocd = action_input.argocd
		self.timeout_s = int(timeout_s if timeout_s is not None else Config.HTTP_TIMEOUT_S)
		self.diff_timeout_s = int(diff_timeout_s if diff_timeout_s is not None else Config.ARGOCD_DIFF_TIMEOUT_S)
		self._run = runner or subprocess.run
		self.session = session or self._build_session()
		self.argocd_bin = os.path.join(self.argocd.bin_dir, "argocd")
		self._secrets = [self.argocd.token] + header_secrets(self.argocd.headers)

	def _build_session(self) -> requests.Session:
		session = requests.Session()
		session.headers.update({"Authorization": f"Bearer {self.argocd.token}"})
		session.headers.update(self._extra_headers())
		retry_strategy = Retry(
			total=3,
			status_forcelist=[429, 500, 502, 503, 504],
			backoff_factor=1,
			allowed_methods=["HEAD", "GET", "OPTIONS"],
		)
		adapter = HTTPAdapter(max_retries=retry_strategy)
		session.mount("https://", adapter)
		session.mount("http://", adapter)
		return session

	def _extra_headers(self) -> Dict[str, str]:
		headers: Dict[str, str] = {}
		for raw in self.argocd.headers:
			parsed = parse_header(raw)
			if parsed is None:
				logger.warning("Ignoring malformed Argo CD header (expected 'Name: value')")
				continue
			headers[parsed[0]] = parsed[1]
		return headers

	def install_argocd_command(self, version: str, arch: str) -> str:
		"""Download the argocd CLI release binary and make it executable.

		Returns:
			Path of the installed binary
		"""
		url = RELEASE_URL.format(version=version, arch=arch)
		logger.info(f"Installing argocd CLI {version} ({arch})")
		try:
			response = requests.get(url, timeout=self.timeout_s)
		except requests.RequestException as e:
			raise ArgoCDError(f"Failed to download argocd CLI from {url}: {e}", code="NETWORK")
		if response.status_code != 200:
			raise ArgoCDError(f"Failed to download argocd CLI from {url}: HTTP {response.status_code}", code="DOWNLOAD")
		os.makedirs(self.argocd.bin_dir, exist_ok=True)
		with open(self.argocd_bin, "wb") as f:
			f.write(response.content)
		mode = os.stat(self.argocd_bin).st_mode
		os.chmod(self.argocd_bin, mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
		logger.debug(f"✓ argocd CLI installed at {self.argocd_bin}")
		return self.argocd_bin

	def get_app_collection(self) -> AppCollection:
		"""List Applications visible to the API token."""
		url = f"{self.argocd.uri}/api/v1/applications"
		try:
			logger.info(f"Fetching Applications from {self.argocd.fqdn}")
			response = self.session.get(url, params={"fields": APP_FIELDS}, timeout=self.timeout_s)
		except requests.Timeout as e:
			raise ArgoCDError(f"Timed out listing Applications: {e}", code="TIMEOUT")
		except requests.RequestException as e:
			raise ArgoCDError(f"Failed to list Applications: {e}", code="NETWORK")
		if response.status_code in (401, 403):
			raise ArgoCDError("Argo CD rejected the API token", code="UNAUTHORIZED")
		if response.status_code != 200:
			raise ArgoCDError(f"Argo CD API error: HTTP {response.status_code}", code="HTTP")
		try:
			payload = response.json()
		except ValueError as e:
			raise ArgoCDError(f"Argo CD returned invalid JSON: {e}", code="INVALID_RESPONSE")
		collection = AppCollection.from_api(payload)
		logger.debug(f"✓ Retrieved {len(collection.apps or ())} Applications")
		return collection

	def _cli_env(self) -> Dict[str, str]:
		env = dict(os.environ)
		env["ARGOCD_AUTH_TOKEN"] = self.argocd.token
		env["ARGOCD_SERVER"] = self.argocd.fqdn
		return env

	def _cli_args(self) -> List[str]:
		args = shlex.split(self.argocd.extra_cli_args or "")
		if self.argocd.plaintext:
			args.append("--plaintext")
		for raw in self.argocd.headers:
			args.extend(["--header", raw])
		return args

	def _diff(self, app: Application, diff_args: Sequence[str]) -> AppDiff:
		cmd = [self.argocd_bin, "app", "diff", app.name, *diff_args, "--exit-code=false", *self._cli_args()]
		logger.debug(f"Running: {scrub_secrets(' '.join(cmd), self._secrets)}")
		try:
			proc = self._run(
				cmd, capture_output=True, text=True, env=self._cli_env(), check=False, timeout=self.diff_timeout_s
			)
		except FileNotFoundError as e:
			raise ArgoCDError(f"argocd CLI not found at {self.argocd_bin}: {e}", code="CLI_MISSING")
		except subprocess.TimeoutExpired as e:
			logger.warning(f"argocd app diff timed out for '{app.name}' after {self.diff_timeout_s}s")
			error = DiffError(
				stdout=_as_text(e.stdout),
				stderr=f"argocd app diff timed out after {self.diff_timeout_s}s\n{_as_text(e.stderr)}".rstrip(),
				underlying={"cmd": scrub_secrets(" ".join(cmd), self._secrets), "timeout": self.diff_timeout_s},
			)
			return AppDiff(app=app, diff=None, error=error)
		error = None
		if proc.returncode != 0:
			logger.warning(f"argocd app diff failed for '{app.name}' (exit {proc.returncode})")
			error = DiffError(
				stdout=proc.stdout or "",
				stderr=proc.stderr or "",
				underlying={"cmd": scrub_secrets(" ".join(cmd), self._secrets), "code": proc.returncode},
			)
		return AppDiff(app=app, diff=proc.stdout or None, error=error)

	def get_app_local_diff(self, app: Application) -> AppDiff:
		"""Diff the app's live state against the manifests checked out in this PR."""
		return self._diff(app, ["--local-repo-root=.", f"--local={app.source_path}"])

	def get_app_revision_diff(self, app: Application, target_revision: str) -> AppDiff:
		return self._diff(app, [f"--revision={target_revision}"])

	def get_app_collection_local_diffs(self, collection: AppCollection) -> List[AppDiff]:
		diffs: List[AppDiff] = []
		for app in collection.apps or ():
			if not app.source_path:
				logger.warning(f"Skipping app '{app.name}': no source path to diff locally")
				continue
			result = self.get_app_local_diff(app)
			if result.diff or result.error:
				diffs.append(result)
		return diffs

	def get_app_collection_revision_diffs(
		self, collection: AppCollection, target_revisions: Sequence[AppTargetRevision]
	) -> List[AppDiff]:
		diffs: List[AppDiff] = []
		for target in target_revisions:
			app = collection.find(target.app_name)
			if app is None:
				logger.warning(f"Application '{target.app_name}' not found on the Argo CD server; skipping revision diff")
				continue
			result = self.get_app_revision_diff(app, target.target_revision)
			if result.diff or result.error:
				diffs.append(result)
		return diffs
