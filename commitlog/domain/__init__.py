"""
Domain layer for commitlog.

Contains pure domain objects with no I/O or side effects:
- RepoContext: Which repository (and remote/mainline) a query runs against
- CommitRecord: One commit parsed from marker-formatted log output

Tag names and changed paths are plain strings.
"""

from .context import RepoContext
from .commit import CommitRecord, parse_log_line, LOG_FORMAT

__all__ = [
    'RepoContext',
    'CommitRecord',
    'parse_log_line',
    'LOG_FORMAT',
]
