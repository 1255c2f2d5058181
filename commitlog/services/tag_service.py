"""
Tag service for commitlog.

Read-only access to the tags of a repository.
"""

from typing import List, Optional
import logging

from ..domain import RepoContext
from ..infra import GitClient

logger = logging.getLogger(__name__)


class TagService:
    """
    Service for querying repository tags.

    Example:
        service = TagService(RepoContext.from_path("."))
        for name in service.list_tag_names():
            print(name)
        print(service.last_tag())
    """

    def __init__(self, ctx: RepoContext, git_client: Optional[GitClient] = None):
        """
        Initialize TagService.

        Args:
            ctx: Repository to query
            git_client: Git client instance (creates default if None)
        """
        self.ctx = ctx
        self.git = git_client or GitClient()

    def list_tag_names(self) -> List[str]:
        """
        All tags in the repository.

        Returns:
            Tag names in the order git lists them, blank lines removed

        Raises:
            GitCommandError: If the context is not a repository
        """
        tags = self.git.lines(self.ctx, ["tag"])
        logger.debug(f"Found {len(tags)} tags in {self.ctx.name}")
        return tags

    def last_tag(self) -> str:
        """
        The nearest tag reachable from the current position.

        Raises:
            GitCommandError: If no tag is reachable
        """
        return self.git.run(self.ctx, ["describe", "--abbrev=0", "--tags"])
