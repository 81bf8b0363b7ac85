#!/usr/bin/env python3
"""GitHub REST API client for posting PR comments."""

import logging
from typing import Dict, Any, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from configs.config import Config

# Set up logging
logger = logging.getLogger(__name__)


class GithubAuthError(Exception):
    """Raised when GitHub API authentication fails."""
    pass


class GithubApiError(Exception):
    """Raised when GitHub API operations fail."""

    def __init__(self, message: str, code: str = "UNKNOWN"):
        super().__init__(message)
        self.code = code


class GithubClient:
    """Thin GitHub REST client backed by a retrying requests session."""

    def __init__(self, token: Optional[str] = None, timeout_s: Optional[int] = None,
                 base_url: Optional[str] = None):
        """Initialize GitHub client.

        Args:
            token: GitHub token (defaults to Config.GITHUB_TOKEN)
            timeout_s: Request timeout in seconds (defaults to Config.HTTP_TIMEOUT_S)
            base_url: API root (defaults to Config.GITHUB_API_URL)

        Raises:
            GithubAuthError: If no valid token is provided
        """
        github_config = Config.get_github_config()
        self.token = token or github_config["token"]
        self.timeout_s = timeout_s or github_config["timeout_s"]
        self.base_url = (base_url or github_config["api_url"]).rstrip("/")

        if not self.token:
            raise GithubAuthError("GitHub token is required (github-token input or GITHUB_TOKEN env var)")

        # Set up session with retries and authentication
        self.session = requests.Session()
        self.session.headers.update({
            'Authorization': f'token {self.token}',
            'Accept': 'application/vnd.github+json',
            'User-Agent': 'argocd-diff-commenter/1.0'
        })

        # Configure retries for transient failures on idempotent calls
        retry_strategy = Retry(
            total=3,
            status_forcelist=[429, 500, 502, 503, 504],
            backoff_factor=1,
            allowed_methods=["HEAD", "GET", "OPTIONS"]
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("https://", adapter)

        logger.info("GitHub client initialized")

    def create_issue_comment(self, owner: str, repo: str, number: int, body: str) -> Dict[str, Any]:
        """Create a comment on an issue or pull request.

        Args:
            owner: Repository owner
            repo: Repository name
            number: Issue or pull request number
            body: Markdown comment body

        Returns:
            Created comment JSON

        Raises:
            GithubAuthError: On 401/403
            GithubApiError: On any other failure, with a typed code
        """
        url = f"{self.base_url}/repos/{owner}/{repo}/issues/{number}/comments"

        try:
            logger.info(f"Posting comment to {owner}/{repo}#{number} ({len(body)} chars)")
            response = self.session.post(url, json={"body": body}, timeout=self.timeout_s)
        except requests.Timeout as e:
            raise GithubApiError(f"Timed out posting comment to {owner}/{repo}#{number}: {e}", code="TIMEOUT")
        except requests.RequestException as e:
            raise GithubApiError(f"Failed to post comment to {owner}/{repo}#{number}: {e}", code="NETWORK")

        if response.status_code in (401, 403):
            raise GithubAuthError("Invalid GitHub token or insufficient permissions")
        elif response.status_code == 404:
            raise GithubApiError(f"Pull request {owner}/{repo}#{number} not found", code="NOT_FOUND")
        elif response.status_code == 429:
            raise GithubApiError("GitHub API rate limit exceeded", code="RATE_LIMIT")
        elif response.status_code >= 500:
            raise GithubApiError(f"GitHub API error: HTTP {response.status_code}", code="NETWORK")
        elif response.status_code != 201:
            raise GithubApiError(f"GitHub API error: HTTP {response.status_code}")

        data = response.json()
        logger.debug(f"✓ Created comment {data.get('id')}")
        return data

    def close(self) -> None:
        self.session.close()
