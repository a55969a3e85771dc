from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Union

from tqdm import tqdm

from .cache import PackageQueryCache
from .config import Config
from .errors import UnresolvableCandidate
from .logger import set_level, setup_logger
from .planner import Action, BatchPlanner, CommandLine, normalize_action
from .resolver import PackageRequest, desired_name_versions, versions_for
from .runner import BinaryLocator, CommandRunner

_logger = setup_logger()

# module-level config (initialized by init(cfg))
_cfg: Optional[Config] = None


class ReconciliationDriver:
    """
    Converges installed Chocolatey packages towards a PackageRequest.

    All state (query caches, located binary, desired map) lives on the
    instance, so one driver is one reconciliation run.
    """

    def __init__(
        self,
        request: PackageRequest,
        runner: Optional[CommandRunner] = None,
        locator: Optional[BinaryLocator] = None,
        timeout: Optional[float] = None,
        dry_run: bool = False,
        cache: Optional[PackageQueryCache] = None,
    ) -> None:
        self.request = request
        self.runner = runner or CommandRunner()
        self.locator = locator or BinaryLocator()
        self.timeout = timeout
        self.dry_run = dry_run
        self.cache = cache or PackageQueryCache(
            self.runner, self.locator, names=request.names, source=request.source, timeout=timeout
        )
        self._desired: Optional[Dict[str, Optional[str]]] = None
        self._planner: Optional[BatchPlanner] = None

    @property
    def desired(self) -> Dict[str, Optional[str]]:
        if self._desired is None:
            self._desired = desired_name_versions(self.request)
        return self._desired

    @property
    def planner(self) -> BatchPlanner:
        if self._planner is None:
            self._planner = BatchPlanner(self.locator.choco_exe, source=self.request.source, options=self.request.options)
        return self._planner

    # -------------------------
    # State discovery
    # -------------------------
    def load_current_state(self, names: Optional[Sequence[str]] = None) -> List[Optional[str]]:
        """Installed versions, index-aligned with names (None = not installed)."""
        names = self.request.names if names is None else names
        return [self.cache.get_installed(name) for name in names]

    def resolve_candidate_state(self, names: Optional[Sequence[str]] = None) -> List[Optional[str]]:
        """
        Available versions, index-aligned with names. None means the package
        is not installable; that only becomes an error when an install or
        upgrade is attempted.
        """
        names = self.request.names if names is None else names
        return [self.cache.get_available(name) for name in names]

    # -------------------------
    # Actions
    # -------------------------
    # `versions` is accepted for symmetry with the names subset; pins always
    # come from the full request.
    def install(self, names: Sequence[str], versions: Optional[Sequence[Optional[str]]] = None) -> List[str]:
        return self._dispatch(Action.INSTALL, names)

    def upgrade(self, names: Sequence[str], versions: Optional[Sequence[Optional[str]]] = None) -> List[str]:
        return self._dispatch(Action.UPGRADE, names)

    def remove(self, names: Sequence[str], versions: Optional[Sequence[Optional[str]]] = None) -> List[str]:
        return self._dispatch(Action.REMOVE, names)

    def purge(self, names: Sequence[str], versions: Optional[Sequence[Optional[str]]] = None) -> List[str]:
        return self._dispatch(Action.PURGE, names)

    def uninstall(self, names: Sequence[str], versions: Optional[Sequence[Optional[str]]] = None) -> List[str]:
        """Deprecated alias of remove."""
        return self._dispatch(Action.UNINSTALL, names)

    def reconcile(self, action: Union[str, Action]) -> List[str]:
        """
        Act only on the requested packages whose state differs from what
        the action asks for. Returns the names acted upon.
        """
        action = normalize_action(action)
        names = self._names_needing(action)
        if not names:
            _logger.info("Nothing to %s: all packages already in desired state.", action.value)
            return []

        _logger.info("Packages to %s: %s", action.value, ", ".join(names))
        self._dispatch(action, names)
        return names

    # -------------------------
    # Internals
    # -------------------------
    def _names_needing(self, action: Action) -> List[str]:
        desired = self.desired
        names = list(desired)
        out: List[str] = []
        for name, current in zip(names, self.load_current_state(names)):
            wanted = desired[name]
            if action in (Action.REMOVE, Action.PURGE):
                if current is not None:
                    out.append(name)
                continue

            if current is None or (wanted is not None and wanted != current):
                out.append(name)
            elif action is Action.UPGRADE and wanted is None:
                candidate = self.cache.get_available(name)
                if candidate is not None and candidate != current:
                    out.append(name)
        return out

    def _dispatch(self, action: Action, names: Sequence[str]) -> List[str]:
        action = normalize_action(action)
        # planning is pure and rejects undeclared names before any query
        commands = self.planner.plan(action, names, self.desired)
        if action in (Action.INSTALL, Action.UPGRADE):
            self._check_candidates(names)
        return self._execute(commands)

    def _check_candidates(self, names: Sequence[str]) -> None:
        missing = [n for n, v in zip(names, self.resolve_candidate_state(names)) if v is None]
        if missing:
            raise UnresolvableCandidate(missing)

    def _execute(self, commands: List[CommandLine]) -> List[str]:
        executed: List[str] = []
        # Strictly sequential: choco holds an exclusive lock on its state
        for command in tqdm(commands, desc="choco", unit="cmd", disable=self.dry_run or len(commands) < 2):
            command_line = command.format()
            if self.dry_run:
                _logger.info("Would run: %s", command_line)
            else:
                _logger.info("Running: %s", command_line)
                self.runner.run(command_line, timeout=self.timeout)
            executed.append(command_line)
        return executed


# -------------------------
# CLI commands
# -------------------------
def init(config: Config) -> None:
    """Initialize module config and apply its log level."""
    global _cfg
    _cfg = config
    set_level(config.log_level)
    _logger.debug("operations initialized with timeout=%s, source=%s", config.timeout, config.source)


def _ensure_initialized() -> None:
    if _cfg is None:
        raise RuntimeError("operations not initialized; call operations.init(config) first")


def _build_driver(
    packages: Sequence[str],
    version: Optional[Sequence[Optional[str]]],
    source: Optional[str],
    options: Optional[str],
    timeout: Optional[int],
    noop: bool,
) -> ReconciliationDriver:
    _ensure_initialized()
    request = PackageRequest.from_lists(
        packages,
        versions=version,
        source=source or _cfg.source,
        options=options or _cfg.options,
    )
    return ReconciliationDriver(
        request,
        locator=BinaryLocator(_cfg.choco_path),
        timeout=timeout or _cfg.timeout,
        dry_run=noop,
    )


def _converge(action: Action, **kwargs) -> None:
    driver = _build_driver(**kwargs)
    names = driver.reconcile(action)
    if names:
        verb = "planned" if driver.dry_run else "done"
        print(f"{action.value.capitalize()} {verb}: {', '.join(names)}")


def install(packages, version=None, source=None, options=None, timeout=None, noop=False) -> None:
    _converge(Action.INSTALL, packages=packages, version=version, source=source, options=options, timeout=timeout, noop=noop)


def upgrade(packages, version=None, source=None, options=None, timeout=None, noop=False) -> None:
    _converge(Action.UPGRADE, packages=packages, version=version, source=source, options=options, timeout=timeout, noop=noop)


def remove(packages, version=None, source=None, options=None, timeout=None, noop=False) -> None:
    _converge(Action.REMOVE, packages=packages, version=version, source=source, options=options, timeout=timeout, noop=noop)


def purge(packages, version=None, source=None, options=None, timeout=None, noop=False) -> None:
    _converge(Action.PURGE, packages=packages, version=version, source=source, options=options, timeout=timeout, noop=noop)


def uninstall(packages, version=None, source=None, options=None, timeout=None, noop=False) -> None:
    _converge(Action.UNINSTALL, packages=packages, version=version, source=source, options=options, timeout=timeout, noop=noop)


def status(packages, version=None, source=None, options=None, timeout=None) -> None:
    """Print desired, installed and candidate versions side by side."""
    driver = _build_driver(packages, version, source, options, timeout, noop=True)
    desired = versions_for(packages, driver.desired)
    current = driver.load_current_state(packages)
    candidate = driver.resolve_candidate_state(packages)

    print(f"{'NAME':<30} {'DESIRED':<15} {'INSTALLED':<15} {'CANDIDATE':<15}")
    print("-" * 78)
    for name, want, cur, cand in zip(packages, desired, current, candidate):
        print(f"{name:<30} {want or '-':<15} {cur or '-':<15} {cand or '-':<15}")
