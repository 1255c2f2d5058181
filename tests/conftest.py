"""
Shared fixtures for commitlog tests.

The `git_repo` fixture builds a real repository with this history
(newest first on master):

    Merge feature             (merge commit, HEAD)
    |\\
    | * Feature work           packages/util/a.js
    * | Mainline work          packages/core/b.js
    |/
    * Update docs             docs/guide.md            tag v1.1.0
    * Backport: fix bug       fix.txt
    * Add feature             packages/core/index.js
    * Initial commit          README.md                tag v1.0.0

and `release-1.x` branching from v1.0.0 with one commit whose summary is
also "Backport: fix bug". Both branches are pushed to a bare `origin`.
"""

import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict
from unittest.mock import MagicMock

import pytest

from commitlog.domain import RepoContext
from commitlog.infra import GitClient


def git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def commit_file(repo: Path, relpath: str, content: str, message: str) -> str:
    path = repo / relpath
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    git(repo, "add", relpath)
    git(repo, "commit", "-q", "-m", message)
    return git(repo, "rev-parse", "--short", "HEAD")


@dataclass
class FixtureRepo:
    root: Path
    origin: Path
    shas: Dict[str, str] = field(default_factory=dict)

    @property
    def ctx(self) -> RepoContext:
        return RepoContext.from_path(str(self.root))


@pytest.fixture
def git_repo(tmp_path) -> FixtureRepo:
    """A repository with tags, a release branch, a merge and a bare origin."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    origin = tmp_path / "origin.git"
    root = tmp_path / "work"
    root.mkdir()

    git(tmp_path, "init", "-q", "--bare", str(origin))
    git(root, "init", "-q")
    git(root, "symbolic-ref", "HEAD", "refs/heads/master")
    git(root, "config", "user.name", "Test User")
    git(root, "config", "user.email", "test@example.com")
    git(root, "config", "commit.gpgsign", "false")
    git(root, "remote", "add", "origin", str(origin))

    repo = FixtureRepo(root=root, origin=origin)
    shas = repo.shas

    shas["initial"] = commit_file(root, "README.md", "# demo\n", "Initial commit")
    git(root, "tag", "v1.0.0")

    git(root, "checkout", "-q", "-b", "release-1.x")
    shas["release_backport"] = commit_file(root, "fix.txt", "fixed on release\n", "Backport: fix bug")
    git(root, "checkout", "-q", "master")

    shas["feature"] = commit_file(root, "packages/core/index.js", "export {}\n", "Add feature")
    shas["backport"] = commit_file(root, "fix.txt", "fixed on master\n", "Backport: fix bug")
    shas["docs"] = commit_file(root, "docs/guide.md", "guide\n", "Update docs")
    git(root, "tag", "v1.1.0")

    git(root, "checkout", "-q", "-b", "feature")
    shas["feature_work"] = commit_file(root, "packages/util/a.js", "a\n", "Feature work")
    git(root, "checkout", "-q", "master")
    shas["mainline_work"] = commit_file(root, "packages/core/b.js", "b\n", "Mainline work")
    git(root, "merge", "-q", "--no-ff", "-m", "Merge feature", "feature")
    shas["merge"] = git(root, "rev-parse", "--short", "HEAD")

    git(root, "push", "-q", "origin", "master", "release-1.x")
    return repo


@pytest.fixture
def mock_git_client():
    """A GitClient mock; async methods become AsyncMocks through the spec."""
    return MagicMock(spec=GitClient)


@pytest.fixture
def ctx(tmp_path) -> RepoContext:
    return RepoContext.from_path(str(tmp_path))
