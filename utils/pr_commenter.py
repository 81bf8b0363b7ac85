#!/usr/bin/env python3
"""PR comment posting utilities.

Bodies are posted one by one, in order, so the `i/n` markers rendered into
them match the order they show up on the pull request.
"""

from __future__ import annotations

import logging
import random
import time
from typing import List, Optional, Sequence

from configs.config import Config
from clients.github_client import GithubApiError, GithubAuthError
from utils.pr_context import PRContext


logger = logging.getLogger(__name__)


class CommenterError(Exception):
    def __init__(self, message: str, code: str = "UNKNOWN"):
        super().__init__(message)
        self.code = code


def _retryable(code: str) -> bool:
    return code in {"RATE_LIMIT", "NETWORK", "TIMEOUT"}


class PRCommenter:
    def __init__(self, client, *, retry_max: Optional[int] = None, base_sleep: Optional[float] = None):
        self.client = client
        self.retry_max = Config.COMMENT_RETRY_MAX if retry_max is None else retry_max
        self.base_sleep = Config.COMMENT_RETRY_BASE_SLEEP if base_sleep is None else base_sleep

    def _create_issue_comment(self, owner: str, repo: str, number: int, body: str) -> int:
        try:
            created = self.client.create_issue_comment(owner, repo, number, body)
        except GithubAuthError as ge:
            raise CommenterError(str(ge), code="UNAUTHORIZED")
        except GithubApiError as ge:
            raise CommenterError(str(ge), code=ge.code)
        return int(created.get("id", 0))

    def _retry(self, func, *args, **kwargs):
        max_attempts = 1 + self.retry_max
        attempt = 0
        last_err: Optional[CommenterError] = None
        while attempt < max_attempts:
            try:
                return func(*args, **kwargs)
            except CommenterError as ce:
                last_err = ce
                if not _retryable(ce.code):
                    break
                # backoff + jitter
                delay = self.base_sleep * (2 ** attempt) + random.random() * 0.1
                logger.warning(f"Comment post failed ({ce.code}), retrying in {delay:.2f}s")
                time.sleep(delay)
                attempt += 1
        if last_err:
            raise last_err
        raise CommenterError("Unknown failure", code="UNKNOWN")

    def post_comments(self, pr: PRContext, bodies: Sequence[str]) -> List[int]:
        """Post each body as a new PR comment, sequentially and in order.

        Returns the created comment ids. Posting stops at the first body that
        still fails after retries.
        """
        ids: List[int] = []
        for idx, body in enumerate(bodies, start=1):
            cid = self._retry(self._create_issue_comment, pr.owner, pr.repo, pr.number, body)
            logger.info(f"Posted diff comment {idx}/{len(bodies)} (id={cid})")
            ids.append(cid)
        return ids

    def close(self) -> None:
        self.client.close()
