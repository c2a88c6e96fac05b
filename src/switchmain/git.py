"""Git repository operations."""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from git import Actor, GitCommandError, Head, InvalidGitRepositoryError, NoSuchPathError, RemoteReference, Repo

from switchmain.credentials import Credentials

logger = logging.getLogger(__name__)

# Clears any configured helpers, then answers `get` requests from the environment.
CREDENTIAL_HELPER = (
    '!f() { test "$1" = get && echo "username=${SWITCHMAIN_USERNAME}" && echo "password=${SWITCHMAIN_PASSWORD}"; }; f'
)


class GitError(Exception):
    """Git operation error."""


class ConfigurationError(GitError):
    """The repository is not set up the way this tool requires."""


class NotFastForwardError(GitError):
    """Local branch has diverged from its upstream."""


class ConsistencyError(GitError):
    """Branch data contradicts itself. Indicates a bug, not bad input."""


@dataclass(frozen=True)
class Remote:
    """A configured remote."""

    name: str
    url: str


@dataclass(frozen=True)
class TrackedRef:
    """Configured upstream of a local branch."""

    canonical_name: str
    friendly_name: str


@dataclass(frozen=True)
class Branch:
    """Snapshot of a local or remote-tracking branch."""

    canonical_name: str
    friendly_name: str
    is_remote: bool
    tip: str
    tracked_branch: Optional[TrackedRef] = None
    remote_name: Optional[str] = None

    @property
    def is_tracking(self) -> bool:
        return self.tracked_branch is not None


@dataclass(frozen=True)
class Signature:
    """Committer identity stamped on reflog entries written by a merge."""

    name: str
    email: str
    when: datetime

    def environ(self) -> dict[str, str]:
        return {
            "GIT_COMMITTER_NAME": self.name,
            "GIT_COMMITTER_EMAIL": self.email,
            "GIT_COMMITTER_DATE": self.when.isoformat(timespec="seconds"),
        }


def credential_environment(credentials: Optional[Credentials]) -> dict[str, str]:
    """Environment that makes git authenticate with the given credentials."""
    if credentials is None:
        return {}
    return {
        "GIT_CONFIG_COUNT": "2",
        "GIT_CONFIG_KEY_0": "credential.helper",
        "GIT_CONFIG_VALUE_0": "",
        "GIT_CONFIG_KEY_1": "credential.helper",
        "GIT_CONFIG_VALUE_1": CREDENTIAL_HELPER,
        "SWITCHMAIN_USERNAME": credentials.username,
        "SWITCHMAIN_PASSWORD": credentials.password,
    }


class GitRepo:
    """Git repository operations."""

    def __init__(self, path: Path) -> None:
        """Open the repository containing ``path``.

        Parent directories are searched, so any directory inside the working
        tree works.

        Raises:
            ConfigurationError: If no usable repository is found
        """
        try:
            self.repo: Repo = Repo(path, search_parent_directories=True)
        except (GitCommandError, ValueError, InvalidGitRepositoryError, NoSuchPathError) as err:
            raise ConfigurationError(f"Failed to open repository: no git repository found at or above {path}") from err
        if self.repo.bare:
            self.repo.close()
            raise ConfigurationError("Cannot operate on bare repository")
        logger.debug("Opened repository at %s", self.repo.working_tree_dir)

    def __enter__(self) -> "GitRepo":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self.repo.close()

    def get_single_remote(self) -> Remote:
        """Get the only configured remote.

        Raises:
            ConfigurationError: If there is not exactly one remote
        """
        remotes = list(self.repo.remotes)
        if len(remotes) != 1:
            names = ", ".join(remote.name for remote in remotes) or "none"
            raise ConfigurationError(f"Expected exactly one remote, found {len(remotes)} ({names})")
        remote = remotes[0]
        logger.debug("Using remote %s (%s)", remote.name, remote.url)
        return Remote(name=remote.name, url=remote.url)

    def list_branches(self) -> list[Branch]:
        """Enumerate local and remote-tracking branches as they are right now."""
        branches: list[Branch] = []
        for ref in self.repo.refs:
            # RemoteReference subclasses Head, so it must be checked first
            if isinstance(ref, RemoteReference):
                # Skip symbolic refs such as origin/HEAD
                if ref.remote_head == "HEAD":
                    continue
                branches.append(
                    Branch(
                        canonical_name=ref.path,
                        friendly_name=ref.name,
                        is_remote=True,
                        tip=ref.commit.hexsha,
                        remote_name=ref.remote_name,
                    )
                )
            elif isinstance(ref, Head):
                branches.append(self._local_branch(ref))
        return branches

    def _local_branch(self, head: Head) -> Branch:
        tracking = head.tracking_branch()
        tracked = None
        if tracking is not None:
            tracked = TrackedRef(canonical_name=tracking.path, friendly_name=tracking.name)
        return Branch(
            canonical_name=head.path,
            friendly_name=head.name,
            is_remote=False,
            tip=head.commit.hexsha,
            tracked_branch=tracked,
        )

    def get_head_canonical_name(self) -> Optional[str]:
        """Canonical name of the checked out branch, or None when HEAD is detached."""
        if self.repo.head.is_detached:
            return None
        return self.repo.head.ref.path

    def fetch(self, remote_name: str, credentials: Optional[Credentials] = None) -> None:
        """Fetch all refs and tags from a remote, pruning deleted branches."""
        logger.debug("Fetching from %s with prune and all tags", remote_name)
        with self.repo.git.custom_environment(**credential_environment(credentials)):
            self.repo.git.fetch(remote_name, prune=True, tags=True)

    def checkout(self, branch: Branch) -> None:
        """Check out a local branch, updating the working tree and HEAD."""
        logger.debug("Checking out %s", branch.friendly_name)
        self.repo.heads[branch.friendly_name].checkout()

    def build_signature(self, when: Optional[datetime] = None) -> Signature:
        """Build a committer signature from repository configuration."""
        actor = Actor.committer(self.repo.config_reader())
        return Signature(
            name=actor.name or "",
            email=actor.email or "",
            when=when or datetime.now().astimezone(),
        )

    def pull(
        self,
        remote_name: str,
        upstream: TrackedRef,
        signature: Signature,
        credentials: Optional[Credentials] = None,
    ) -> None:
        """Fetch with prune, then fast-forward the checked out branch to its upstream.

        Raises:
            NotFastForwardError: If the branch has diverged from its upstream
            GitCommandError: If fetching or merging fails
        """
        self.fetch(remote_name, credentials)
        if self.repo.is_ancestor(upstream.canonical_name, "HEAD"):
            logger.debug("%s has nothing HEAD does not already contain", upstream.friendly_name)
            return
        if not self.repo.is_ancestor("HEAD", upstream.canonical_name):
            raise NotFastForwardError(
                f"Cannot fast-forward to {upstream.friendly_name}: local and remote histories have diverged"
            )
        logger.debug("Fast-forwarding to %s as %s <%s>", upstream.friendly_name, signature.name, signature.email)
        with self.repo.git.custom_environment(**signature.environ()):
            self.repo.git.merge(upstream.canonical_name, ff_only=True)

    def delete_branch(self, branch: Branch) -> None:
        """Delete a local branch regardless of its merge state."""
        logger.debug("Deleting branch %s at %s", branch.friendly_name, branch.tip)
        # Always use -D since the branch was already confirmed for deletion
        self.repo.git.branch("-D", branch.friendly_name)
