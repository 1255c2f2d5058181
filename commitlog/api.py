"""
High-level API for commitlog.

Bundles a RepoContext, runtime configuration and the three query
services behind one object.

Example:
    import asyncio
    import commitlog

    log = commitlog.CommitLog("/path/to/repo")
    start = log.last_tag()
    commits = log.list_commits(start, "HEAD", ["release-1.x"])
    paths = asyncio.run(log.changed_paths_many(c.sha for c in commits))
"""

from typing import Any, Dict, Iterable, List, Optional
import logging

from .config import load_config, load_project_config, ProjectConfig
from .domain import RepoContext, CommitRecord
from .infra import GitClient
from .services import TagService, HistoryService, ChangedPathsService

logger = logging.getLogger(__name__)


class CommitLog:
    """
    Entry point for querying one repository.

    Args:
        path: Any path inside the repository (default: current directory)
        config: Runtime configuration (loaded from file/env if None)
        git_client: Git client to use (built from config if None)
        fetch: Override the configured fetch-before-listing behavior
    """

    def __init__(
        self,
        path: str = ".",
        config: Optional[Dict[str, Any]] = None,
        git_client: Optional[GitClient] = None,
        fetch: Optional[bool] = None,
        ctx: Optional[RepoContext] = None
    ):
        self.config = config if config is not None else load_config()
        general = self.config.get('general', {})

        self.git = git_client or GitClient(timeout=general.get('git_timeout_seconds'))
        self.ctx = ctx or self.git.discover(
            path,
            remote=general.get('remote', 'origin'),
            mainline=general.get('mainline', 'master'),
        )

        if fetch is None:
            fetch = general.get('fetch', True)

        self.tags = TagService(self.ctx, git_client=self.git)
        self.history = HistoryService(self.ctx, git_client=self.git, fetch=fetch)
        self.paths = ChangedPathsService(
            self.ctx,
            git_client=self.git,
            max_concurrency=general.get('max_concurrent_operations', 8),
        )

    def list_tag_names(self) -> List[str]:
        return self.tags.list_tag_names()

    def last_tag(self) -> str:
        return self.tags.last_tag()

    def list_commits(
        self,
        from_ref: str,
        to_ref: str = "",
        duplicate_check_branches: Iterable[str] = ()
    ) -> List[CommitRecord]:
        return self.history.list_commits(from_ref, to_ref, duplicate_check_branches)

    async def changed_paths(self, sha: str) -> List[str]:
        return await self.paths.changed_paths(sha)

    async def changed_paths_many(self, shas: Iterable[str]) -> Dict[str, List[str]]:
        return await self.paths.changed_paths_many(shas)

    def project_config(self, next_version_from_metadata: bool = False) -> ProjectConfig:
        """Changelog settings from package.json / lerna.json at the repository root."""
        return load_project_config(self.ctx.root, next_version_from_metadata)

    def __repr__(self) -> str:
        return f"CommitLog(root={self.ctx.root!r})"


def create(path: str = ".", **kwargs) -> CommitLog:
    """Create a CommitLog for the repository containing path."""
    return CommitLog(path, **kwargs)
