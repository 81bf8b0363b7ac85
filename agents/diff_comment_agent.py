#!/usr/bin/env python3
"""Argo CD diff agent for pull requests.

Lists the Argo CD Applications that follow this repository's trunk, diffs
them against the manifests in the PR checkout, and posts the result as one or
more size-bounded PR comments.
"""

import logging
import sys
from datetime import datetime
from typing import List, Optional

from clients.argocd_client import ArgoCDError, ArgoCDServer
from clients.github_client import GithubAuthError, GithubClient
from utils.action_input import ActionInput, ActionInputError
from utils.app_of_apps import get_app_of_app_target_revisions
from utils.comment_packer import build_comment_bodies
from utils.diff_models import AppDiff
from utils.events import logging_sink
from utils.markdown_renderer import LEGEND, render_header
from utils.pr_commenter import CommenterError, PRCommenter
from utils.pr_context import PRContext, PRContextError
from utils.secrets import header_secrets, scrub_secrets

# Set up logging
logger = logging.getLogger(__name__)


class DiffCommentAgent:
	"""Agent that collects Argo CD diffs and posts them to a pull request."""

	def __init__(
		self,
		action_input: ActionInput,
		pr_context: PRContext,
		*,
		argocd_server: Optional[ArgoCDServer] = None,
		commenter: Optional[PRCommenter] = None,
	):
		"""Initialize the diff comment agent.

		Args:
			action_input: Validated action inputs
			pr_context: Pull request the comments go to
			argocd_server: Optional ArgoCDServer. If None, creates a new one.
			commenter: Optional PRCommenter. If None, one is created lazily
				when there is something to post.
		"""
		self.action_input = action_input
		self.pr = pr_context
		self.argocd_server = argocd_server or ArgoCDServer(action_input)
		self.commenter = commenter
		self._owns_commenter = False
		self.emit = logging_sink(logger)
		logger.info("Diff comment agent initialized")

	def collect_diffs(self) -> Optional[List[AppDiff]]:
		"""Collect local diffs plus app-of-apps revision diffs.

		Returns:
			The diffs in posting order, or None when Argo CD returned no apps
		"""
		argocd = self.action_input.argocd
		self.argocd_server.install_argocd_command(argocd.cli_version, self.action_input.arch)

		app_all_collection = self.argocd_server.get_app_collection()
		if app_all_collection.apps is None:
			# A token without at least read-only access gets no items back
			logger.warning(
				"No Applications were returned from Argo CD. This may be the result of insufficient privileges."
			)
			return None

		# `diff --local` only works for apps sourced from this repo and
		# following its trunk, which is what the PR compares against
		app_local_collection = (
			app_all_collection
			.filter_by_repo(self.pr.full_name)
			.filter_by_target_revision(argocd.target_revisions)
			.filter_by_excluded_path(argocd.exclude_paths)
		)
		logger.info(f"Found apps: {', '.join(app_local_collection.names())}")

		app_diffs = self.argocd_server.get_app_collection_local_diffs(app_local_collection)

		# Only targetRevision changes of child apps are followed here
		targets = get_app_of_app_target_revisions(app_diffs, emit=self.emit)
		app_of_app_diffs = self.argocd_server.get_app_collection_revision_diffs(app_all_collection, targets)

		return [*app_diffs, *app_of_app_diffs]

	def render_comments(self, diffs: List[AppDiff], now: Optional[datetime] = None) -> List[str]:
		"""Render, pack, number and scrub the comment bodies."""
		argocd = self.action_input.argocd
		limit = self.action_input.comment_limit
		header = render_header(
			argocd.fqdn,
			self.pr.owner,
			self.pr.repo,
			self.pr.number,
			self.pr.head_sha,
			timezone=self.action_input.timezone,
			now=now,
		)
		bodies = build_comment_bodies(diffs, header, LEGEND, argocd.uri, limit=limit, emit=self.emit)

		secrets = [argocd.token] + header_secrets(argocd.headers)
		scrubbed = [scrub_secrets(body, secrets) for body in bodies]
		for idx, body in enumerate(scrubbed, start=1):
			# scrubbing runs after packing and could in principle grow a body
			if len(body) > limit:
				logger.warning(f"Comment {idx}/{len(scrubbed)} exceeds {limit} characters after scrubbing secrets")
		return scrubbed

	def _get_commenter(self) -> PRCommenter:
		if self.commenter is None:
			self.commenter = PRCommenter(GithubClient(self.action_input.github_token))
			self._owns_commenter = True
		return self.commenter

	def run(self) -> List[str]:
		"""Run the full flow and return the bodies that were (or would be) posted."""
		diffs = self.collect_diffs()
		if diffs is None:
			return []

		bodies = self.render_comments(diffs)
		if not bodies:
			logger.info("No diffs to report; nothing posted")
			return []

		if self.action_input.dry_run:
			for body in bodies:
				print(body)
			logger.info(f"Dry run: rendered {len(bodies)} comment(s) without posting")
			return bodies

		commenter = self._get_commenter()
		try:
			ids = commenter.post_comments(self.pr, bodies)
		finally:
			# injected commenters are closed by their owner
			if self._owns_commenter:
				commenter.close()
		logger.info(f"✓ Posted {len(ids)} diff comment(s) to {self.pr.full_name}#{self.pr.number}")
		return bodies


def main():
	"""CLI entry point for the diff comment agent."""
	import argparse

	parser = argparse.ArgumentParser(
		description="Argo CD Diff Commenter - Post Argo CD app diffs to a pull request",
		formatter_class=argparse.RawDescriptionHelpFormatter,
		epilog="""
Inputs are read from INPUT_* environment variables (GitHub Actions) or a .env file.

Examples:
  python -m agents.diff_comment_agent
  python -m agents.diff_comment_agent --dry-run --verbose
		"""
	)
	parser.add_argument("--dry-run", action="store_true", default=None, help="Render comments to stdout instead of posting")
	parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

	args = parser.parse_args()

	# Set up logging
	log_level = logging.DEBUG if args.verbose else logging.INFO
	logging.basicConfig(
		level=log_level,
		format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
	)

	# Suppress verbose logs from libraries unless in debug mode
	if not args.verbose:
		logging.getLogger("urllib3").setLevel(logging.WARNING)
		logging.getLogger("clients.github_client").setLevel(logging.WARNING)

	try:
		action_input = ActionInput.from_config(dry_run=args.dry_run)
		pr_context = PRContext.from_environment()
		agent = DiffCommentAgent(action_input, pr_context)
		agent.run()
		sys.exit(0)

	except (ActionInputError, PRContextError, ArgoCDError, CommenterError) as e:
		print(f"Error: {e}", file=sys.stderr)
		if args.verbose:
			logger.exception("Detailed error information:")
		sys.exit(1)

	except GithubAuthError as e:
		print(f"Error: {e}", file=sys.stderr)
		sys.exit(1)

	except KeyboardInterrupt:
		print("\nOperation cancelled by user", file=sys.stderr)
		sys.exit(1)

	except Exception as e:
		# Unexpected error
		print(f"Unexpected error: {e}", file=sys.stderr)
		if args.verbose:
			logger.exception("Detailed error information:")
		else:
			print("Use --verbose for more details", file=sys.stderr)
		sys.exit(1)


if __name__ == "__main__":
	main()
