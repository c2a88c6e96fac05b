"""Find local branches whose upstream is gone and offer to delete them."""

import logging
from dataclasses import dataclass, field
from fnmatch import fnmatch
from typing import Sequence

from switchmain.branches import NotTracking, TrackingHealthy, UpstreamMissing, classify_tracking, read_branches
from switchmain.git import Branch, ConsistencyError, GitRepo
from switchmain.ui import ConsoleUI, name

logger = logging.getLogger(__name__)


@dataclass
class ReconcileReport:
    """What happened to each local branch during one pass."""

    healthy: list[str] = field(default_factory=list)
    not_tracking: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    protected: list[str] = field(default_factory=list)


class OrphanReconciler:
    """Walk local branches other than main, once each.

    The branch set is re-read before every step because a deletion can change
    what the remaining branches look like. ``checked`` records friendly names
    already handled so nothing is reported or prompted for twice.
    """

    def __init__(
        self,
        repo: GitRepo,
        ui: ConsoleUI,
        protect: Sequence[str] = (),
        assume_yes: bool = False,
    ) -> None:
        self.repo = repo
        self.ui = ui
        self.protect = [pattern.strip() for pattern in protect if pattern.strip()]
        self.assume_yes = assume_yes
        self.checked: set[str] = set()

    def run(self) -> ReconcileReport:
        report = ReconcileReport()
        while True:
            remote_branches, _, local_branches = read_branches(self.repo)
            unchecked = [branch for branch in local_branches if branch.friendly_name not in self.checked]
            if not unchecked:
                return report

            branch = unchecked[0]
            self._reconcile(branch, remote_branches, report)
            self.checked.add(branch.friendly_name)

    def _reconcile(self, branch: Branch, remote_branches: list[Branch], report: ReconcileReport) -> None:
        tracking = classify_tracking(branch, remote_branches)

        if isinstance(tracking, NotTracking):
            self.ui.note(
                f"Orphan branch detected: {name(branch.friendly_name)}. It is not tracking any remote branch."
            )
            report.not_tracking.append(branch.friendly_name)
        elif isinstance(tracking, TrackingHealthy):
            self.ui.success(
                f"Branch {name(branch.friendly_name)} is tracking remote branch "
                f"{name(tracking.remote_branch.friendly_name)}."
            )
            report.healthy.append(branch.friendly_name)
        elif isinstance(tracking, UpstreamMissing):
            self._handle_orphan(branch, tracking, report)
        else:
            raise ConsistencyError(f"Unexpected tracking state for {branch.friendly_name}: {tracking!r}")

    def _is_protected(self, branch: Branch) -> bool:
        return any(fnmatch(branch.friendly_name, pattern) for pattern in self.protect)

    def _handle_orphan(self, branch: Branch, tracking: UpstreamMissing, report: ReconcileReport) -> None:
        question = (
            f"{name(branch.friendly_name)} is tracking a non-existent remote branch "
            f"{name(tracking.upstream.friendly_name)}."
        )
        if self._is_protected(branch):
            self.ui.note(f"{question} Branch is protected, not deleting it.")
            report.protected.append(branch.friendly_name)
            return

        if self.assume_yes:
            self.ui.note(question)
            delete = True
        else:
            delete = self.ui.confirm(f"{question} Do you want to delete this orphan branch?")

        if not delete:
            logger.debug("User kept orphan branch %s", branch.friendly_name)
            self.ui.note(f"Skipped deletion of orphan branch: {name(branch.friendly_name)}.")
            report.skipped.append(branch.friendly_name)
            return

        with self.ui.status(f"Deleting orphan branch: {branch.friendly_name}"):
            self.repo.delete_branch(branch)
        self.ui.success(f"Deleted orphan branch: {name(branch.friendly_name)}.")
        report.deleted.append(branch.friendly_name)
