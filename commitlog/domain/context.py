"""
Repository context for commitlog.

Every git query runs against an explicit RepoContext instead of the
process working directory, so the same services can be pointed at any
checkout (including throwaway fixture repositories in tests).
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class RepoContext:
    """
    Where and how git commands are run.

    Attributes:
        root: Absolute path of the repository top-level directory
        remote: Remote used for fetch and duplicate-check branches
        mainline: Branch that duplicate-check branches are compared against
        env: Extra environment variables passed to every git invocation
    """

    root: str
    remote: str = "origin"
    mainline: str = "master"
    env: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'env', dict(self.env))

    @classmethod
    def from_path(
        cls,
        path: str,
        remote: str = "origin",
        mainline: str = "master",
        env: Optional[Mapping[str, str]] = None
    ) -> 'RepoContext':
        """Build a context from a path, expanding ~ and making it absolute."""
        root = str(Path(path).expanduser().resolve())
        return cls(root=root, remote=remote, mainline=mainline, env=dict(env or {}))

    def remote_ref(self, branch: str) -> str:
        """Remote-tracking reference for a branch, e.g. 'origin/release-1.x'."""
        return f"{self.remote}/{branch}"

    @property
    def mainline_ref(self) -> str:
        return self.remote_ref(self.mainline)

    @property
    def name(self) -> str:
        return Path(self.root).name

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'root': self.root,
            'remote': self.remote,
            'mainline': self.mainline,
        }

    def __hash__(self) -> int:
        return hash((self.root, self.remote, self.mainline))
