"""Test configuration and fixtures."""

from pathlib import Path
from typing import Generator

import pytest
from git import Repo

from tests.helpers import RecordingUI, commit_file, configure_identity


@pytest.fixture
def ui() -> RecordingUI:
    return RecordingUI()


@pytest.fixture
def test_env(tmp_path: Path) -> Generator[tuple[Path, Path], None, None]:
    """Create a test environment with local and remote repositories.

    The local repository is on ``main``, tracking ``origin/main`` with equal tips,
    and has these other branches:

    - ``feature-x``: tracked ``origin/feature-x``, since deleted on the remote
      but not yet pruned locally
    - ``feature/healthy``: tracks ``origin/feature/healthy``, which exists
    - ``scratch``: no upstream

    Returns:
        Tuple of (local_repo_path, remote_repo_path)
    """
    remote_path = tmp_path / "remote"
    local_path = tmp_path / "local"

    remote_repo = Repo.init(remote_path, bare=True, initial_branch="main")
    local_repo = Repo.init(local_path, initial_branch="main")
    configure_identity(local_repo)

    commit_file(local_repo, "README.md", "# Test Repository")
    local_repo.create_remote("origin", url=str(remote_path))
    local_repo.git.push("-u", "origin", "main")

    def create_branch(name: str, push: bool) -> None:
        local_repo.heads.main.checkout()
        local_repo.create_head(name).checkout()
        commit_file(local_repo, f"{name}.txt", f"{name} content")
        if push:
            local_repo.git.push("-u", "origin", name)

    create_branch("feature-x", push=True)
    create_branch("feature/healthy", push=True)
    create_branch("scratch", push=False)
    local_repo.heads.main.checkout()

    # Delete on the remote side only, so the local remote-tracking ref goes stale
    remote_repo.delete_head("feature-x", force=True)

    local_repo.close()
    remote_repo.close()
    yield local_path, remote_path


@pytest.fixture
def local_repo(test_env: tuple[Path, Path]) -> Generator[Repo, None, None]:
    local_path, _ = test_env
    repo = Repo(local_path)
    yield repo
    repo.close()


@pytest.fixture
def remote_clone(test_env: tuple[Path, Path], tmp_path: Path) -> Generator[Repo, None, None]:
    """A second working copy of the remote, used to push changes from elsewhere."""
    _, remote_path = test_env
    clone = Repo.clone_from(str(remote_path), str(tmp_path / "remote_clone"))
    configure_identity(clone)
    yield clone
    clone.close()
