"""
winchoco - Desired-state package management on top of Chocolatey.

Given package names, optional version pins and an action, winchoco works
out which choco.exe invocations bring the machine to that state.

Modules:
- cli: Command-line interface entry point.
- operations: ReconciliationDriver and command implementations.
- planner: Action verbs, command line builder and batch planning.
- cache: Memoized installed/available package queries.
- resolver: Package request to name/version mapping.
- runner: choco.exe execution and discovery.
- config: Configuration management.
"""

from .cli import main
from .errors import ExecutionError, InvalidRequest, ParseError, UnresolvableCandidate, WinchocoError
from .operations import ReconciliationDriver
from .planner import Action, BatchPlanner, CommandLine
from .resolver import PackageRequest

__all__ = [
    "main",
    "Action",
    "BatchPlanner",
    "CommandLine",
    "PackageRequest",
    "ReconciliationDriver",
    "ExecutionError",
    "InvalidRequest",
    "ParseError",
    "UnresolvableCandidate",
    "WinchocoError",
]
