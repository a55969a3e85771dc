from __future__ import annotations

from typing import Dict, Optional, Sequence

from .errors import ParseError
from .logger import setup_logger
from .planner import args_to_string
from .runner import BinaryLocator, CommandRunner

_logger = setup_logger()


def parse_list_output(text: str) -> Dict[str, str]:
    """
    Convert `choco list -r` output to a name -> version dict.
    Names are lowercased for case-insensitive matching.
    """
    packages: Dict[str, str] = {}
    for lineno, line in enumerate(text.splitlines(), start=1):
        fields = line.split("|")
        if len(fields) != 2:
            raise ParseError(f"Malformed list output at line {lineno}: {line!r}")
        name, version = fields
        packages[name.lower()] = version.rstrip()
    return packages


class PackageQueryCache:
    """
    Memoized views of installed and available packages.

    Each view is filled by a single `choco list` call the first time it is
    read. One instance belongs to one reconciliation run; first access is
    check-then-populate, so do not share an instance between threads.
    """

    def __init__(
        self,
        runner: CommandRunner,
        locator: BinaryLocator,
        names: Sequence[str] = (),
        source: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.runner = runner
        self.locator = locator
        self.names = list(names)
        self.source = source
        self.timeout = timeout
        self._installed: Optional[Dict[str, str]] = None
        self._available: Optional[Dict[str, str]] = None

    @property
    def installed_packages(self) -> Dict[str, str]:
        if self._installed is None:
            self._installed = self._query("list -l -r")
        return self._installed

    @property
    def available_packages(self) -> Dict[str, str]:
        if self._available is None:
            self._available = self._query(
                "list -r",
                *self.names,
                f"-source {self.source}" if self.source else None,
            )
        return self._available

    def get_installed(self, name: str) -> Optional[str]:
        return self.installed_packages.get(name.lower())

    def get_available(self, name: str) -> Optional[str]:
        return self.available_packages.get(name.lower())

    def _query(self, *args: Optional[str]) -> Dict[str, str]:
        command_line = args_to_string(self.locator.choco_exe, *args)
        result = self.runner.run(command_line, timeout=self.timeout)
        packages = parse_list_output(result.stdout)
        _logger.debug("%s -> %d package(s)", command_line, len(packages))
        return packages
