"""
Standard exit codes for commitlog commands.

Following Unix/POSIX conventions for command-line tools.
"""
from typing import Optional, Sequence

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
CONFIG_ERROR = 66        # Configuration file error
NETWORK_ERROR = 68       # Network connection failed
DATA_ERROR = 70          # Data format or validation error
GIT_ERROR = 72           # A git invocation failed
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'FileNotFoundError': GENERAL_ERROR,
    'ConnectionError': NETWORK_ERROR,
    'TimeoutError': NETWORK_ERROR,
    'ValueError': DATA_ERROR,
    'JSONDecodeError': DATA_ERROR,
    'ConfigError': CONFIG_ERROR,
    'GitCommandError': GIT_ERROR,
    'NotARepositoryError': GIT_ERROR,
    'GitNotFoundError': GIT_ERROR,
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: BaseException) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    exit_code = getattr(exc, 'exit_code', None)
    if isinstance(exit_code, int):
        return exit_code
    exc_name = exc.__class__.__name__
    return EXCEPTION_EXIT_CODES.get(exc_name, GENERAL_ERROR)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class ConfigError(CommandError):
    """Raised when there's a configuration error."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)


class GitCommandError(CommandError):
    """
    Raised when a git invocation fails.

    Covers non-zero exits, timeouts, invalid references and fetch
    failures. The message always names the git call that failed.

    Attributes:
        args_list: Arguments passed to git (without the leading 'git')
        returncode: Process exit status, or None if it never ran to completion
        stderr: Captured standard error (may be empty)
    """
    def __init__(
        self,
        args_list: Sequence[str],
        returncode: Optional[int] = None,
        stderr: str = "",
        reason: Optional[str] = None
    ):
        self.args_list = list(args_list)
        self.returncode = returncode
        self.stderr = stderr.strip()

        command = "git " + " ".join(self.args_list)
        if reason is None:
            reason = self.stderr or f"exited with status {returncode}"
        super().__init__(f"`{command}` failed: {reason}", GIT_ERROR)


class NotARepositoryError(GitCommandError):
    """Raised when git is invoked outside a repository."""


class GitNotFoundError(GitCommandError):
    """Raised when the git executable cannot be found."""
