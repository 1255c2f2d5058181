"""
Service layer for commitlog.

Services contain the query logic and orchestrate the git client:
- TagService: Tag enumeration and nearest reachable tag
- HistoryService: Commit ranges with duplicate-branch suppression
- ChangedPathsService: Files touched by commits (asyncio)

Services accept a RepoContext and an optional GitClient, so they can be
tested with a mock client or pointed at any repository.
"""

from .tag_service import TagService
from .history_service import HistoryService
from .changed_paths_service import ChangedPathsService, packages_for_paths

__all__ = [
    'TagService',
    'HistoryService',
    'ChangedPathsService',
    'packages_for_paths',
]
