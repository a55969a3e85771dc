from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import PureWindowsPath
from typing import Optional

from .errors import ExecutionError
from .logger import setup_logger

_logger = setup_logger()


@dataclass(frozen=True)
class CommandResult:
    stdout: str
    exit_status: int


class CommandRunner:
    """
    Blocking executor for choco command lines.
    Non-zero exits and timeouts surface as ExecutionError; nothing is retried.
    """

    def run(self, command_line: str, timeout: Optional[float] = None) -> CommandResult:
        _logger.debug("Running: %s (timeout=%s)", command_line, timeout)
        try:
            proc = subprocess.run(
                command_line,
                shell=True,
                check=True,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            _logger.error("Command timed out after %ss: %s", timeout, command_line)
            raise ExecutionError(f"Command timed out after {timeout}s: {command_line}", command=command_line) from e
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            _logger.error("Command failed (exit %d): %s", e.returncode, stderr or command_line)
            raise ExecutionError(
                f"Command exited with status {e.returncode}: {command_line}",
                command=command_line,
                exit_status=e.returncode,
                stderr=stderr,
            ) from e
        return CommandResult(stdout=proc.stdout or "", exit_status=proc.returncode)


class BinaryLocator:
    """
    Finds choco.exe.

    An explicit path (from config) wins; otherwise the machine-scope
    ChocolateyInstall environment variable is read through PowerShell.
    The result is looked up once per locator.
    """

    ENV_QUERY = "[System.Environment]::GetEnvironmentVariable('ChocolateyInstall', 'MACHINE')"

    def __init__(self, choco_path: Optional[str] = None) -> None:
        self._choco_exe: Optional[str] = choco_path

    @property
    def choco_exe(self) -> str:
        if self._choco_exe is None:
            self._choco_exe = str(PureWindowsPath(self._install_root(), "bin", "choco.exe"))
            _logger.debug("Located choco at %s", self._choco_exe)
        return self._choco_exe

    def _install_root(self) -> str:
        try:
            proc = subprocess.run(
                ["powershell", "-NoProfile", "-Command", self.ENV_QUERY],
                check=True,
                capture_output=True,
                text=True,
            )
        except (OSError, subprocess.CalledProcessError) as e:
            raise ExecutionError(f"Unable to query ChocolateyInstall through PowerShell: {e}") from e

        root = (proc.stdout or "").strip()
        if not root:
            raise ExecutionError("ChocolateyInstall is not set; is Chocolatey installed?")
        return root
