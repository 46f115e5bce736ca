"""
Exceptions raised by multigit.

Each error carries the process exit code the CLI uses when it aborts an
invocation. Per-repository errors are normally caught by the executor and
recorded in that repository's result instead of reaching the CLI.
"""

# Exit codes follow the POSIX conventions for command-line tools.
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_CONFIG = 66
EXIT_INTERRUPTED = 130


class MultigitError(Exception):
    """Base class for all multigit errors."""

    exit_code = EXIT_FAILURE


class ConfigError(MultigitError):
    """The registry file could not be read or is malformed."""

    exit_code = EXIT_CONFIG


class InvalidFilter(MultigitError):
    """An unknown filter tag was requested."""

    exit_code = EXIT_USAGE

    def __init__(self, tag: str, choices: list[str] | None = None):
        self.tag = tag
        self.choices = choices or []
        message = f"Unknown filter: {tag!r}"
        if self.choices:
            message += f" (expected one of: {', '.join(self.choices)})"
        super().__init__(message)


class DiscoveryError(MultigitError):
    """A path handed to discovery does not exist."""

    exit_code = EXIT_USAGE


class RepositoryError(MultigitError):
    """A git operation failed for a single repository."""

    def __init__(self, path, message: str):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")
