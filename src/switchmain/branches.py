"""Branch classification."""

import logging
from dataclasses import dataclass
from typing import Sequence, Union

from switchmain.git import Branch, ConfigurationError, ConsistencyError, GitRepo, TrackedRef

logger = logging.getLogger(__name__)

MAIN_BRANCH_CANDIDATES = ("refs/heads/main", "refs/heads/master")


@dataclass(frozen=True)
class NotTracking:
    """Branch has no configured upstream."""


@dataclass(frozen=True)
class TrackingHealthy:
    """Branch tracks a remote branch that still exists."""

    remote_branch: Branch


@dataclass(frozen=True)
class UpstreamMissing:
    """Branch tracks a remote branch that no longer exists."""

    upstream: TrackedRef


Tracking = Union[NotTracking, TrackingHealthy, UpstreamMissing]
BranchSet = tuple[list[Branch], Branch, list[Branch]]


def partition_branches(branches: Sequence[Branch]) -> BranchSet:
    """Split branches into remote branches, the main branch and other local branches.

    Raises:
        ConfigurationError: If not exactly one local branch is a main candidate
    """
    remote_branches = [branch for branch in branches if branch.is_remote]
    local_branches = [branch for branch in branches if not branch.is_remote]

    candidates = [branch for branch in local_branches if branch.canonical_name in MAIN_BRANCH_CANDIDATES]
    if len(candidates) != 1:
        names = ", ".join(branch.friendly_name for branch in candidates) or "none"
        raise ConfigurationError(f"Expected exactly one main branch (main or master), found {len(candidates)}: {names}")

    main_branch = candidates[0]
    others = [branch for branch in local_branches if branch is not main_branch]
    return remote_branches, main_branch, others


def read_branches(repo: GitRepo) -> BranchSet:
    """Read the current branch set. Call again after anything that changes refs."""
    return partition_branches(repo.list_branches())


def classify_tracking(branch: Branch, remote_branches: Sequence[Branch]) -> Tracking:
    """Classify a local branch by the state of its upstream.

    Raises:
        ConsistencyError: If several remote branches share the upstream's name
    """
    upstream = branch.tracked_branch
    if upstream is None:
        result: Tracking = NotTracking()
    else:
        matches = [remote for remote in remote_branches if remote.canonical_name == upstream.canonical_name]
        if len(matches) > 1:
            raise ConsistencyError(f"Found {len(matches)} remote branches named {upstream.canonical_name}")
        result = TrackingHealthy(matches[0]) if matches else UpstreamMissing(upstream)
    logger.debug("Classified %s as %s", branch.friendly_name, type(result).__name__)
    return result
