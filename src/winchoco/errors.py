from typing import Optional


class WinchocoError(Exception):
    """Base class for every error raised by winchoco."""


class InvalidRequest(WinchocoError):
    """Package names and versions do not pair up."""


class ParseError(WinchocoError):
    """choco list output did not match the name|version format."""


class ExecutionError(WinchocoError):
    """A choco invocation exited non-zero or timed out."""

    def __init__(self, message: str, command: str = "", exit_status: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.command = command
        self.exit_status = exit_status
        self.stderr = stderr


class UnresolvableCandidate(WinchocoError):
    """No available version exists for a package we were asked to install."""

    def __init__(self, names):
        self.names = list(names)
        super().__init__(f"No candidate version available for: {', '.join(self.names)}")


class ConfigError(WinchocoError, ValueError):
    """A configuration value (file or command line) is invalid."""
