"""
Changed-paths service for commitlog.

Resolves the files a commit touched. Lookups are coroutines so a caller
can resolve a whole history at once:

    service = ChangedPathsService(ctx, max_concurrency=8)
    paths_by_sha = asyncio.run(service.changed_paths_many(c.sha for c in commits))

Merge commits are diffed with `-m` against each parent in turn: a path
is listed when the merge differs from any of its parents there, even if
it matches the first parent. Paths reported by several parent diffs are
listed once, in first-seen order.
"""

import asyncio
from typing import Dict, Iterable, List, Optional, Sequence
import logging

from ..domain import RepoContext
from ..infra import GitClient

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 8
PACKAGES_DIR = "packages"


class ChangedPathsService:
    """
    Service for resolving the paths modified by commits.

    Example:
        service = ChangedPathsService(RepoContext.from_path("."))
        paths = asyncio.run(service.changed_paths("abc123"))
    """

    def __init__(
        self,
        ctx: RepoContext,
        git_client: Optional[GitClient] = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    ):
        """
        Initialize ChangedPathsService.

        Args:
            ctx: Repository to query
            git_client: Git client instance (creates default if None)
            max_concurrency: Maximum git processes running at once in
                changed_paths_many()
        """
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")
        self.ctx = ctx
        self.git = git_client or GitClient()
        self.max_concurrency = max_concurrency

    @staticmethod
    def show_args(sha: str) -> List[str]:
        # --first-parent would restrict merge diffs to the first parent
        return ["show", "-m", "--name-only", "--pretty=format:", sha]

    async def changed_paths(self, sha: str) -> List[str]:
        """
        Paths modified by a commit.

        Raises:
            GitCommandError: If sha cannot be resolved
        """
        lines = await self.git.lines_async(self.ctx, self.show_args(sha))
        return list(dict.fromkeys(lines))

    async def changed_paths_many(self, shas: Iterable[str]) -> Dict[str, List[str]]:
        """
        Resolve many commits concurrently.

        At most max_concurrency git processes run at the same time.
        The first failure propagates; no partial result is returned.

        Returns:
            Mapping of sha to its changed paths, in input order
        """
        unique_shas = list(dict.fromkeys(shas))
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(sha: str) -> List[str]:
            async with semaphore:
                return await self.changed_paths(sha)

        results = await asyncio.gather(*[bounded(sha) for sha in unique_shas])
        logger.debug(f"Resolved changed paths for {len(unique_shas)} commits")
        return dict(zip(unique_shas, results))

    def changed_paths_sync(self, sha: str) -> List[str]:
        """Blocking wrapper around changed_paths() for non-async callers."""
        return asyncio.run(self.changed_paths(sha))


def packages_for_paths(
    paths: Iterable[str],
    ignore_file_path: Sequence[str] = (),
    packages_dir: str = PACKAGES_DIR
) -> List[str]:
    """
    Sub-projects a set of changed paths belongs to.

    A path under `<packages_dir>/<name>/` belongs to package `<name>`.
    Paths starting with any ignore_file_path prefix are skipped.

    Args:
        paths: Repository-relative paths
        ignore_file_path: Path prefixes to leave out
        packages_dir: Directory holding the sub-projects

    Returns:
        Sorted unique package names
    """
    prefix = packages_dir.rstrip('/') + '/'
    packages = set()

    for path in paths:
        if any(path.startswith(ignored) for ignored in ignore_file_path if ignored):
            continue
        if not path.startswith(prefix):
            continue
        parts = path[len(prefix):].split('/')
        # Files directly inside packages_dir do not belong to a package
        if len(parts) > 1 and parts[0]:
            packages.add(parts[0])

    return sorted(packages)
