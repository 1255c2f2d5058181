"""
Infrastructure layer for commitlog.

Contains abstractions for external systems:
- GitClient: Git command execution (blocking and asyncio)

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import GitClient, split_lines

__all__ = [
    'GitClient',
    'split_lines',
]
