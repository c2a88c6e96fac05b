"""Fetch from the remote and bring the main branch up to date."""

import logging
from typing import Callable, Optional

from switchmain.branches import NotTracking, TrackingHealthy, UpstreamMissing, classify_tracking, read_branches
from switchmain.credentials import Credentials, get_git_credentials, uses_credential_helper
from switchmain.git import Branch, ConfigurationError, ConsistencyError, GitRepo, Remote
from switchmain.ui import ConsoleUI, name

logger = logging.getLogger(__name__)

CredentialResolver = Callable[[str], Credentials]


class RemoteSync:
    """Fetch, check out main and fast-forward it.

    Every step raises on failure; nothing is retried.
    """

    def __init__(
        self,
        repo: GitRepo,
        ui: ConsoleUI,
        resolve_credentials: CredentialResolver = get_git_credentials,
    ) -> None:
        self.repo = repo
        self.ui = ui
        self.resolve_credentials = resolve_credentials

    def run(self) -> None:
        """Run all steps in order."""
        remote = self.repo.get_single_remote()
        credentials = self._credentials(remote)

        self._fetch(remote, credentials)
        _, main_branch, _ = read_branches(self.repo)
        self._checkout(main_branch)
        if self._should_pull(main_branch):
            self._pull(remote, main_branch, credentials)
        else:
            self.ui.note(f"No changes to pull for branch: {name(main_branch.friendly_name)}.")

    def _credentials(self, remote: Remote) -> Optional[Credentials]:
        if not uses_credential_helper(remote.url):
            logger.debug("Remote %s does not authenticate through a credential helper", remote.name)
            return None
        return self.resolve_credentials(remote.url)

    def _fetch(self, remote: Remote, credentials: Optional[Credentials]) -> None:
        with self.ui.status(f"Fetching from remote: {remote.name}"):
            self.repo.fetch(remote.name, credentials)
        self.ui.success(f"Fetch completed successfully from {name(remote.name)}.")

    def _checkout(self, main_branch: Branch) -> None:
        if self.repo.get_head_canonical_name() == main_branch.canonical_name:
            self.ui.success(f"Already on main branch: {name(main_branch.friendly_name)}.")
            return
        with self.ui.status(f"Checking out main branch: {main_branch.friendly_name}"):
            self.repo.checkout(main_branch)
        self.ui.success(f"Checked out branch: {name(main_branch.friendly_name)}.")

    def _should_pull(self, main_branch: Branch) -> bool:
        """Whether main's upstream points at a different commit than main.

        Raises:
            ConfigurationError: If main has no upstream, or its upstream is gone
        """
        remote_branches, _, _ = read_branches(self.repo)
        tracking = classify_tracking(main_branch, remote_branches)
        if isinstance(tracking, NotTracking):
            raise ConfigurationError("No remote tracking branch found for main branch.")
        if isinstance(tracking, UpstreamMissing):
            raise ConfigurationError(
                f"Remote tracking branch {tracking.upstream.friendly_name} of main branch does not exist."
            )
        if not isinstance(tracking, TrackingHealthy):
            raise ConsistencyError(f"Unexpected tracking state for main branch: {tracking!r}")
        return tracking.remote_branch.tip != main_branch.tip

    def _pull(self, remote: Remote, main_branch: Branch, credentials: Optional[Credentials]) -> None:
        # main_branch.tracked_branch is set, _should_pull checked it
        upstream = main_branch.tracked_branch
        with self.ui.status(f"Pulling latest changes for branch: {main_branch.friendly_name}"):
            signature = self.repo.build_signature()
            self.repo.pull(remote.name, upstream, signature, credentials)
        self.ui.success(f"Pulled changes successfully for branch: {name(main_branch.friendly_name)}.")
