from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .errors import InvalidRequest
from .logger import log_deprecation, setup_logger

_logger = setup_logger()


class Action(Enum):
    INSTALL = "install"
    UPGRADE = "upgrade"
    REMOVE = "remove"
    PURGE = "purge"
    UNINSTALL = "uninstall"  # deprecated, same as REMOVE

    @classmethod
    def has_value(cls, value: str) -> bool:
        return bool(value) and value.lower() in (item.value for item in cls)


# choco has no dpkg-style purge, so both removal actions use "uninstall"
CHOCO_VERBS = {
    Action.INSTALL: "install",
    Action.UPGRADE: "upgrade",
    Action.REMOVE: "uninstall",
    Action.PURGE: "uninstall",
}


def normalize_action(action: Union[str, Action]) -> Action:
    """Map a verb to its canonical Action; the deprecated uninstall becomes remove."""
    if not isinstance(action, Action):
        if not Action.has_value(action):
            raise ValueError(f"Unknown action '{action}'")
        action = Action(action.lower())

    if action is Action.UNINSTALL:
        log_deprecation("The use of action 'uninstall' is deprecated, please use 'remove'")
        return Action.REMOVE
    return action


def args_to_string(*args: Optional[str]) -> str:
    """
    Join string arguments with single spaces, dropping None and empty
    strings so missing arguments never leave double spaces behind.
    """
    return " ".join(a for a in args if a)


def select_declared(names: Sequence[str], desired: Dict[str, Optional[str]]) -> Dict[str, Optional[str]]:
    """
    Filter the desired map down to `names`, matching case-insensitively.
    Keeps the declared spelling and order; unknown names are an InvalidRequest.
    """
    wanted = {n.lower() for n in names}
    selected = {n: v for n, v in desired.items() if n.lower() in wanted}

    declared = {n.lower() for n in selected}
    unknown = [n for n in names if n.lower() not in declared]
    if unknown:
        raise InvalidRequest(f"Package(s) not part of the request: {', '.join(unknown)}")
    return selected


@dataclass(frozen=True)
class CommandLine:
    """One choco invocation."""

    binary: str
    verb: str
    flags: Tuple[str, ...] = ("-y",)
    version: Optional[str] = None
    options: Optional[str] = None
    source: Optional[str] = None
    targets: Tuple[str, ...] = ()

    def format(self) -> str:
        return args_to_string(
            self.binary,
            self.verb,
            *self.flags,
            f"-version {self.version}" if self.version else None,
            self.options,
            f"-source {self.source}" if self.source else None,
            *self.targets,
        )

    def __str__(self) -> str:
        return self.format()


class BatchPlanner:
    """
    Turns an action over a set of names into choco command lines.

    choco cannot install several packages that each carry their own
    -version pin in one call, so pinned packages get one command each.
    Unpinned packages are batched into a single command issued last.
    """

    def __init__(self, binary: str, source: Optional[str] = None, options: Optional[str] = None) -> None:
        self.binary = binary
        self.source = source
        self.options = options

    def plan(
        self,
        action: Union[str, Action],
        names: Sequence[str],
        desired: Dict[str, Optional[str]],
    ) -> List[CommandLine]:
        action = normalize_action(action)
        selected = select_declared(names, desired)
        if not selected:
            return []

        verb = CHOCO_VERBS[action]
        if action in (Action.REMOVE, Action.PURGE):
            # version pins are meaningless for removal
            return [self._command(verb, targets=selected.keys())]

        pinned = {n: v for n, v in selected.items() if v is not None}
        unpinned = [n for n, v in selected.items() if v is None]

        commands = [self._command(verb, version=v, targets=[n]) for n, v in pinned.items()]
        if unpinned:
            commands.append(self._command(verb, targets=unpinned))

        _logger.debug(
            "Planned %s: %d pinned, %d batched (%d command(s))",
            verb,
            len(pinned),
            len(unpinned),
            len(commands),
        )
        return commands

    def _command(self, verb: str, targets, version: Optional[str] = None) -> CommandLine:
        return CommandLine(
            binary=self.binary,
            verb=verb,
            version=version,
            options=self.options,
            source=self.source,
            targets=tuple(targets),
        )
