"""
Git client infrastructure for commitlog.

Provides a clean abstraction over git command execution.
All git operations go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from business logic

Unlike a best-effort status tool, every failure here is fatal: a non-zero
exit, a timeout, a missing git executable or a path outside a repository
raises GitCommandError (or a subclass) naming the call that failed.
"""

import asyncio
import os
import subprocess
from typing import Dict, List, Optional, Sequence
import logging

from ..domain import RepoContext
from ..exit_codes import GitCommandError, GitNotFoundError, NotARepositoryError

logger = logging.getLogger(__name__)

GIT_EXECUTABLE = "git"
DEFAULT_TIMEOUT = 60


def split_lines(output: str) -> List[str]:
    """Split command output into lines, dropping blank ones."""
    return [line for line in output.split('\n') if line.strip()]


class GitClient:
    """
    Abstraction over git commands.

    Commands run with an explicit RepoContext as working directory and
    environment. Output is returned with trailing whitespace trimmed.

    Example:
        client = GitClient(timeout=30)
        ctx = RepoContext.from_path("/path/to/repo")
        print(client.run(ctx, ["describe", "--abbrev=0", "--tags"]))
    """

    def __init__(self, timeout: Optional[float] = DEFAULT_TIMEOUT, executable: str = GIT_EXECUTABLE):
        """
        Initialize GitClient.

        Args:
            timeout: Command timeout in seconds (None disables it)
            executable: Name or path of the git binary
        """
        self.timeout = timeout
        self.executable = executable

    def _env(self, ctx: RepoContext) -> Optional[Dict[str, str]]:
        if not ctx.env:
            return None
        env = os.environ.copy()
        env.update(ctx.env)
        return env

    def _error(self, args: Sequence[str], returncode: int, stderr: str) -> GitCommandError:
        """Build the error for a failed invocation."""
        if "not a git repository" in stderr.lower():
            return NotARepositoryError(args, returncode, stderr)
        return GitCommandError(args, returncode, stderr)

    def run(self, ctx: RepoContext, args: Sequence[str]) -> str:
        """
        Run a git command and wait for it to finish.

        Args:
            ctx: Repository context (working directory and environment)
            args: Arguments after 'git' (e.g., ['tag'])

        Returns:
            Captured stdout with trailing whitespace removed

        Raises:
            GitCommandError: On non-zero exit or timeout
            GitNotFoundError: If git is not installed
            NotARepositoryError: If ctx.root is not inside a repository
        """
        args = list(args)
        logger.debug(f"git {' '.join(args)} (cwd={ctx.root})")

        try:
            result = subprocess.run(
                [self.executable] + args,
                cwd=ctx.root,
                env=self._env(ctx),
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except FileNotFoundError as e:
            # Either git itself or the working directory is missing
            if not os.path.isdir(ctx.root):
                raise NotARepositoryError(args, reason=f"directory does not exist: {ctx.root}") from e
            raise GitNotFoundError(args, reason=f"executable not found: {self.executable}") from e
        except subprocess.TimeoutExpired as e:
            logger.error(f"Git command timed out: git {' '.join(args)}")
            raise GitCommandError(args, reason=f"timed out after {self.timeout}s") from e

        if result.returncode != 0:
            logger.error(f"Git command failed: git {' '.join(args)} - {result.stderr.strip()}")
            raise self._error(args, result.returncode, result.stderr)

        return result.stdout.rstrip()

    async def run_async(self, ctx: RepoContext, args: Sequence[str]) -> str:
        """
        Run a git command without blocking the event loop.

        Same contract as run(); intended to be gathered with other calls.
        """
        args = list(args)
        logger.debug(f"git {' '.join(args)} (cwd={ctx.root}, async)")

        try:
            process = await asyncio.create_subprocess_exec(
                self.executable, *args,
                cwd=ctx.root,
                env=self._env(ctx),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
        except FileNotFoundError as e:
            if not os.path.isdir(ctx.root):
                raise NotARepositoryError(args, reason=f"directory does not exist: {ctx.root}") from e
            raise GitNotFoundError(args, reason=f"executable not found: {self.executable}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            logger.error(f"Git command timed out: git {' '.join(args)}")
            raise GitCommandError(args, reason=f"timed out after {self.timeout}s") from e

        stderr_text = stderr.decode(errors='replace')
        if process.returncode != 0:
            logger.error(f"Git command failed: git {' '.join(args)} - {stderr_text.strip()}")
            raise self._error(args, process.returncode, stderr_text)

        return stdout.decode(errors='replace').rstrip()

    def lines(self, ctx: RepoContext, args: Sequence[str]) -> List[str]:
        """Run a git command and return its non-blank output lines."""
        return split_lines(self.run(ctx, args))

    async def lines_async(self, ctx: RepoContext, args: Sequence[str]) -> List[str]:
        """Async variant of lines()."""
        return split_lines(await self.run_async(ctx, args))

    def toplevel(self, path: str) -> str:
        """Top-level directory of the repository containing path."""
        return self.run(RepoContext.from_path(path), ["rev-parse", "--show-toplevel"])

    def discover(self, path: str = ".", remote: str = "origin", mainline: str = "master") -> RepoContext:
        """
        Build a RepoContext for the repository containing path.

        Raises:
            NotARepositoryError: If path is not inside a repository
        """
        return RepoContext.from_path(self.toplevel(path), remote=remote, mainline=mainline)

    def fetch(self, ctx: RepoContext) -> None:
        """Synchronize remote-tracking references. Raises on failure."""
        self.run(ctx, ["fetch"])
