#!/usr/bin/env python3
"""
Configuration for commitlog.

Two kinds of settings are resolved here:

- Runtime settings for the tool itself (git timeout, concurrency, remote,
  mainline branch, log level). Defaults are merged with an optional user
  file and COMMITLOG_* environment variables.
- Project changelog settings read from the `changelog` key of the
  repository's package.json or lerna.json (repo identity, labels, ignored
  committers and paths, next version).
"""

import os
import json
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import logging
import sys

import yaml

from .exit_codes import ConfigError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("commitlog")

CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']

DEFAULT_LABELS = {
    "breaking": ":boom: Breaking Change",
    "enhancement": ":rocket: Enhancement",
    "bug": ":bug: Bug Fix",
    "documentation": ":memo: Documentation",
    "internal": ":house: Internal",
}

DEFAULT_IGNORE_COMMITTERS = [
    "dependabot-bot",
    "dependabot[bot]",
    "greenkeeperio-bot",
    "greenkeeper[bot]",
    "renovate-bot",
    "renovate[bot]",
]

GITHUB_REPO_RE = re.compile(r"github\.com[:/]([^./]+/[^./]+)(?:\.git)?")


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. COMMITLOG_CONFIG environment variable
    2. ~/.commitlog/ directory
    """
    if 'COMMITLOG_CONFIG' in os.environ:
        path = Path(os.environ['COMMITLOG_CONFIG'])
        if path.exists():
            return path

    config_dir = Path.home() / '.commitlog'
    for filename in CONFIG_FILENAMES:
        path = config_dir / filename
        if path.exists():
            return path

    # If no file exists, return default path for saving
    return config_dir / 'config.json'


def get_default_config():
    """Get default configuration."""
    return {
        "general": {
            "git_timeout_seconds": 60,
            "max_concurrent_operations": 8,
            "remote": "origin",
            "mainline": "master",
            "fetch": True
        },
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s"
        }
    }


def _read_config_file(config_path: Path) -> Dict[str, Any]:
    suffix = config_path.suffix.lower()
    if suffix == '.toml':
        with open(config_path, 'rb') as f:
            return tomllib.load(f)
    if suffix in ('.yaml', '.yml'):
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    with open(config_path, 'r') as f:
        return json.load(f)


def load_config():
    """Load runtime configuration from file and environment."""
    config_path = get_config_path()

    config = get_default_config()

    if config_path.exists():
        try:
            file_config = _read_config_file(config_path)
            if not isinstance(file_config, dict):
                raise ValueError("top level must be a mapping")
            config = merge_configs(config, file_config)
        except Exception as e:
            logger.error(f"Error loading config from {config_path}: {e}")

    config = apply_env_overrides(config)

    return config


def save_config(config, config_path: Optional[Path] = None):
    """Save configuration to file (JSON or YAML by suffix)."""
    config_path = Path(config_path) if config_path else get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    if config_path.suffix.lower() in ['.yaml', '.yml']:
        with open(config_path, 'w') as f:
            yaml.safe_dump(config, f, default_flow_style=False)
    else:
        if config_path.suffix.lower() == '.toml':
            logger.warning("Writing TOML is not supported. Saving as JSON instead.")
            config_path = config_path.with_suffix('.json')
        with open(config_path, 'w') as f:
            json.dump(config, f, indent=2)

    logger.info(f"Configuration saved to {config_path}")
    return config_path


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: COMMITLOG_SECTION_KEY
    For example: COMMITLOG_GENERAL_GIT_TIMEOUT_SECONDS=30
    """
    env_prefix = "COMMITLOG_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix):
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        if value.lower() in ('true', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
        else:
            typed_value = value

        current_level = config
        i = 0
        while i < len(key_parts):
            # Longest config key matching the remaining env var parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts = config_key.split('_')
                if key_parts[i : i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if not matched_key:
                break

            if i + best_match_len == len(key_parts):
                current_level[matched_key] = typed_value
                break

            if isinstance(current_level[matched_key], dict):
                current_level = current_level[matched_key]
                i += best_match_len
            else:
                # Env var is longer than the config path
                break

    return config


def configure_logging(config: Optional[Dict[str, Any]] = None, verbose: bool = False) -> None:
    """Apply the configured log level to the commitlog logger."""
    level_name = "DEBUG" if verbose else (config or {}).get("logging", {}).get("level", "INFO")
    level = logging.getLevelName(str(level_name).upper())
    if not isinstance(level, int):
        logger.warning(f"Unknown log level {level_name!r}, using INFO")
        level = logging.INFO
    logger.setLevel(level)


# Project changelog settings

@dataclass
class ProjectConfig:
    """Changelog settings of one repository."""
    repo: str
    root_path: str
    labels: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_LABELS))
    ignore_committers: List[str] = field(default_factory=lambda: list(DEFAULT_IGNORE_COMMITTERS))
    ignore_file_path: List[str] = field(default_factory=list)
    specified_projects: List[str] = field(default_factory=list)
    cache_dir: Optional[str] = None
    next_version: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'repo': self.repo,
            'root_path': self.root_path,
            'labels': self.labels,
            'ignore_committers': self.ignore_committers,
            'ignore_file_path': self.ignore_file_path,
            'specified_projects': self.specified_projects,
            'cache_dir': self.cache_dir,
            'next_version': self.next_version,
        }


def _read_json(path: Path) -> Optional[Dict[str, Any]]:
    if not path.is_file():
        return None
    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Could not parse {path.name}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Top level of {path.name} must be an object")
    return data


def _changelog_section(root: Path) -> Dict[str, Any]:
    """The `changelog` key of package.json, else of lerna.json."""
    for filename in ('package.json', 'lerna.json'):
        data = _read_json(root / filename)
        # An empty section still counts as configured
        if data is None or data.get('changelog') is None:
            continue
        section = data['changelog']
        if not isinstance(section, dict):
            raise ConfigError(f'"changelog" in {filename} must be an object')
        return section
    return {}


def _or_default(value, default):
    """Keep explicitly configured values, including empty ones."""
    return default if value is None else value


def normalize_git_url(url: str) -> str:
    """Normalize npm-style repository URLs (git+https, git@host:, github:)."""
    url = url.strip()
    if url.startswith('git+'):
        url = url[len('git+'):]
    if url.startswith('github:'):
        url = 'https://github.com/' + url[len('github:'):]
    elif re.match(r'^[^/:@]+/[^/:@]+$', url):
        # npm shorthand "owner/name"
        url = 'https://github.com/' + url
    match = re.match(r'^[^@/]+@([^:]+):(.*)$', url)
    if match:
        url = f"ssh://git@{match.group(1)}/{match.group(2)}"
    return url


def find_repo_from_pkg(pkg: Dict[str, Any]) -> Optional[str]:
    """
    `owner/name` GitHub slug from a package.json `repository` field.

    Returns:
        The slug, or None if the field does not point at GitHub
    """
    repository = pkg.get('repository')
    if not repository:
        return None
    url = repository.get('url') if isinstance(repository, dict) else repository
    if not isinstance(url, str) or not url:
        return None

    match = GITHUB_REPO_RE.search(normalize_git_url(url))
    if not match:
        return None
    return match.group(1)


def find_next_version(root: Path) -> Optional[str]:
    """`v`-prefixed version from package.json, else lerna.json."""
    for filename in ('package.json', 'lerna.json'):
        data = _read_json(root / filename) or {}
        if data.get('version'):
            return f"v{data['version']}"
    return None


def load_project_config(root_path: str, next_version_from_metadata: bool = False) -> ProjectConfig:
    """
    Resolve the changelog settings of a repository.

    Args:
        root_path: Repository top-level directory
        next_version_from_metadata: Take next_version from the package version

    Raises:
        ConfigError: If the repo slug or a requested next version cannot be inferred
    """
    root = Path(root_path)
    section = _changelog_section(root)

    repo = section.get('repo')
    if not repo:
        pkg = _read_json(root / 'package.json')
        repo = find_repo_from_pkg(pkg) if pkg else None
        if not repo:
            raise ConfigError('Could not infer "repo" from the "package.json" file.')

    next_version = section.get('nextVersion')
    if next_version_from_metadata or section.get('nextVersionFromMetadata'):
        next_version = find_next_version(root)
        if not next_version:
            raise ConfigError('Could not infer "nextVersion" from the "package.json" file.')

    return ProjectConfig(
        repo=repo,
        root_path=str(root),
        labels=_or_default(section.get('labels'), dict(DEFAULT_LABELS)),
        ignore_committers=_or_default(section.get('ignoreCommitters'), list(DEFAULT_IGNORE_COMMITTERS)),
        ignore_file_path=_or_default(section.get('ignoreFilePath'), []),
        specified_projects=_or_default(section.get('specifiedProjects'), []),
        cache_dir=section.get('cacheDir'),
        next_version=next_version,
    )
