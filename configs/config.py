import os
from typing import Dict, Any, List

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _input(name: str, default: str = "") -> str:
	"""Read a GitHub Actions input (exposed as INPUT_<NAME>) with an env fallback."""
	key = name.upper()
	env_key = key.replace("-", "_")
	for candidate in (f"INPUT_{key}", f"INPUT_{env_key}", env_key):
		value = os.getenv(candidate)
		if value is not None:
			return value.strip()
	return default.strip()


def _bool_input(name: str, default: str = "false") -> bool:
	return _input(name, default).lower() in {"1", "true", "yes", "on"}


def _list_input(name: str, default: str = "") -> List[str]:
	raw = _input(name, default)
	parts = raw.replace("\n", ",").split(",")
	return [p.strip() for p in parts if p.strip()]


class Config:
	"""Configuration for the Argo CD diff commenter."""

	# GitHub
	GITHUB_TOKEN = _input("github-token")
	GITHUB_API_URL = os.getenv("GITHUB_API_URL", "https://api.github.com").rstrip('/')
	HTTP_TIMEOUT_S = int(os.getenv("HTTP_TIMEOUT_S", "30"))

	# Argo CD server
	ARGOCD_SERVER_FQDN = _input("argocd-server-fqdn")
	ARGOCD_TOKEN = _input("argocd-token")
	ARGOCD_VERSION = _input("argocd-version", "v2.13.0")
	ARGOCD_EXTRA_CLI_ARGS = _input("argocd-extra-cli-args", "--grpc-web")
	ARGOCD_SERVER_HEADERS = _list_input("argocd-server-headers")
	ARGOCD_TARGET_REVISIONS = _list_input("argocd-target-revisions", "master,main,HEAD")
	ARGOCD_EXCLUDE_PATHS = _list_input("argocd-exclude-paths")
	ARGOCD_PLAINTEXT = _bool_input("plaintext")
	ARGOCD_BIN_DIR = os.getenv("ARGOCD_BIN_DIR", "bin")
	ARGOCD_DIFF_TIMEOUT_S = int(os.getenv("ARGOCD_DIFF_TIMEOUT_S", "300"))
	ARCH = _input("arch", "linux-amd64")

	# Comment rendering
	TIMEZONE = _input("timezone", "America/Los_Angeles")
	# validated in ActionInput.from_config
	COMMENT_LIMIT = _input("comment-limit", "65536")
	DRY_RUN = _bool_input("dry-run")

	# Comment posting
	COMMENT_RETRY_MAX = int(os.getenv("COMMENT_RETRY_MAX", "2"))
	COMMENT_RETRY_BASE_SLEEP = float(os.getenv("COMMENT_RETRY_BASE_SLEEP", "0.5"))

	@classmethod
	def get_github_config(cls) -> Dict[str, Any]:
		"""Get GitHub configuration for the REST client."""
		return {
			"api_url": cls.GITHUB_API_URL,
			"token": cls.GITHUB_TOKEN,
			"timeout_s": cls.HTTP_TIMEOUT_S
		}

	@classmethod
	def get_argocd_config(cls) -> Dict[str, Any]:
		"""Get Argo CD server and CLI configuration.

		Returns:
			Mapping with server fqdn, token, CLI settings and app filters.
		"""
		return {
			"fqdn": cls.ARGOCD_SERVER_FQDN,
			"token": cls.ARGOCD_TOKEN,
			"cli_version": cls.ARGOCD_VERSION,
			"extra_cli_args": cls.ARGOCD_EXTRA_CLI_ARGS,
			"headers": list(cls.ARGOCD_SERVER_HEADERS),
			"target_revisions": list(cls.ARGOCD_TARGET_REVISIONS),
			"exclude_paths": list(cls.ARGOCD_EXCLUDE_PATHS),
			"plaintext": cls.ARGOCD_PLAINTEXT,
			"bin_dir": cls.ARGOCD_BIN_DIR,
		}
