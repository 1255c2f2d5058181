"""
commitlog - Commit history extraction for changelog generation.

commitlog reads the tags, commit ranges and changed files of a git
repository and hands them to a changelog renderer as structured records.

Quick Start:
    import asyncio
    import commitlog

    log = commitlog.CommitLog("/path/to/repo")

    # Tags
    print(log.list_tag_names())
    print(log.last_tag())

    # Commits since the last tag, hiding backports already
    # released from origin/release-1.x
    commits = log.list_commits(log.last_tag(), "", ["release-1.x"])

    # Changed files, resolved concurrently
    paths = asyncio.run(log.changed_paths_many(c.sha for c in commits))

Domain Objects:
    RepoContext - Repository root, remote and mainline branch
    CommitRecord - One commit (sha, ref_name, summary, date)

Services (for advanced use):
    TagService - Tag enumeration, nearest reachable tag
    HistoryService - Commit ranges with duplicate suppression
    ChangedPathsService - Files touched by commits
"""

__version__ = "0.3.0"

# High-level API
from .api import CommitLog, create

# Domain objects
from .domain import RepoContext, CommitRecord, parse_log_line

# Infrastructure
from .infra import GitClient

# Services (for advanced use)
from .services import (
    TagService,
    HistoryService,
    ChangedPathsService,
    packages_for_paths,
)

# Errors
from .exit_codes import (
    CommandError,
    ConfigError,
    GitCommandError,
    GitNotFoundError,
    NotARepositoryError,
)

# Configuration
from .config import load_config, load_project_config, ProjectConfig

__all__ = [
    # Version
    "__version__",
    # High-level API
    "CommitLog",
    "create",
    # Domain objects
    "RepoContext",
    "CommitRecord",
    "parse_log_line",
    # Infrastructure
    "GitClient",
    # Services
    "TagService",
    "HistoryService",
    "ChangedPathsService",
    "packages_for_paths",
    # Errors
    "CommandError",
    "ConfigError",
    "GitCommandError",
    "GitNotFoundError",
    "NotARepositoryError",
    # Configuration
    "load_config",
    "load_project_config",
    "ProjectConfig",
]
