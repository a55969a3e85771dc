import logging
from unittest import mock

import pytest

from winchoco import operations
from winchoco.config import Config
from winchoco.errors import ExecutionError, InvalidRequest, UnresolvableCandidate
from winchoco.operations import ReconciliationDriver
from winchoco.planner import Action
from winchoco.resolver import PackageRequest

from conftest import FakeRunner


def make_driver(runner, locator, names, versions=None, **kwargs):
    request = PackageRequest(names=names, versions=versions, source=kwargs.pop("source", None))
    return ReconciliationDriver(request, runner=runner, locator=locator, **kwargs)


# -------------------------
# State discovery
# -------------------------
def test_current_and_candidate_state_are_index_aligned(runner, locator):
    driver = make_driver(runner, locator, ["a", "b"])
    assert driver.load_current_state(["a", "b"]) == [None, None]
    assert driver.resolve_candidate_state(["a", "b"]) == [None, None]


def test_state_matches_names_case_insensitively(runner, locator):
    driver = make_driver(runner, locator, ["Git", "unknown", "NodeJS"])
    assert driver.load_current_state() == ["2.40.0", None, None]
    assert driver.resolve_candidate_state() == ["2.41.0", None, "20.1.0"]


def test_each_view_queried_once_per_run(runner, locator):
    driver = make_driver(runner, locator, ["git", "vim"])
    driver.load_current_state()
    driver.load_current_state(["vim"])
    driver.resolve_candidate_state()
    driver.resolve_candidate_state()
    assert len(runner.calls) == 2


# -------------------------
# Actions
# -------------------------
def test_install_runs_pinned_first_then_batch(runner, locator):
    driver = make_driver(runner, locator, ["git", "vim", "nodejs"], ["2.41.0", None, "20.1.0"])
    driver.install(["git", "vim", "nodejs"])
    assert runner.actions() == [
        "choco.exe install -y -version 2.41.0 git",
        "choco.exe install -y -version 20.1.0 nodejs",
        "choco.exe install -y vim",
    ]


def test_install_uses_pins_from_full_request(runner, locator):
    driver = make_driver(runner, locator, ["git", "nodejs"], ["2.41.0", "20.1.0"])
    driver.install(["nodejs"], [None])
    assert runner.actions() == ["choco.exe install -y -version 20.1.0 nodejs"]


def test_install_unknown_package_is_unresolvable(runner, locator):
    driver = make_driver(runner, locator, ["git", "nosuchpkg"])
    with pytest.raises(UnresolvableCandidate) as exc:
        driver.install(["git", "nosuchpkg"])
    assert exc.value.names == ["nosuchpkg"]
    assert runner.actions() == []


def test_upgrade_unknown_package_is_unresolvable(runner, locator):
    driver = make_driver(runner, locator, ["vim", "nosuchpkg"], [None, "1.0"])
    with pytest.raises(UnresolvableCandidate) as exc:
        driver.upgrade(["vim", "nosuchpkg"])
    assert exc.value.names == ["nosuchpkg"]
    assert runner.actions() == []


def test_install_subset_with_different_case(runner, locator):
    driver = make_driver(runner, locator, ["git"], ["2.41.0"])
    executed = driver.install(["Git"])
    assert executed == ["choco.exe install -y -version 2.41.0 git"]
    assert runner.actions() == ["choco.exe install -y -version 2.41.0 git"]


def test_remove_subset_with_different_case(runner, locator):
    driver = make_driver(runner, locator, ["Git", "vim"])
    driver.remove(["git", "VIM"])
    assert runner.actions() == ["choco.exe uninstall -y Git vim"]


def test_undeclared_subset_name_is_invalid(runner, locator):
    driver = make_driver(runner, locator, ["git"])
    with pytest.raises(InvalidRequest):
        driver.remove(["nodejs"])
    with pytest.raises(InvalidRequest):
        driver.install(["nodejs"])
    # rejected before any choco call, queries included
    assert runner.calls == []


def test_mismatched_versions_are_invalid(runner, locator):
    driver = make_driver(runner, locator, ["git", "vim"], ["1.0"])
    with pytest.raises(InvalidRequest):
        driver.install(["git"])


def test_first_failure_aborts_remaining_commands(locator):
    runner = FakeRunner(available="a|1\nb|2\nc|3\n", fail_on="-version 2")
    driver = make_driver(runner, locator, ["a", "b", "c"], ["1", "2", None])
    with pytest.raises(ExecutionError):
        driver.upgrade(["a", "b", "c"])
    assert runner.actions() == [
        "choco.exe upgrade -y -version 1 a",
        "choco.exe upgrade -y -version 2 b",
    ]


def test_remove_batches_everything(runner, locator):
    driver = make_driver(runner, locator, ["git", "vim"], ["2.40.0", None], source="repo")
    driver.remove(["git", "vim"])
    assert runner.actions() == ["choco.exe uninstall -y -source repo git vim"]


def test_purge_same_as_remove(runner, locator):
    driver = make_driver(runner, locator, ["git", "vim"])
    driver.purge(["git", "vim"])
    assert runner.actions() == ["choco.exe uninstall -y git vim"]


def test_uninstall_warns_and_removes(runner, locator, caplog):
    driver = make_driver(runner, locator, ["git"])
    with caplog.at_level(logging.WARNING, logger="winchoco"):
        driver.uninstall(["git"])
    assert "[DEPRECATED]" in caplog.text
    assert runner.actions() == ["choco.exe uninstall -y git"]


def test_dry_run_plans_without_executing(runner, locator):
    driver = make_driver(runner, locator, ["git", "vim"], dry_run=True)
    executed = driver.upgrade(["git", "vim"])
    assert executed == ["choco.exe upgrade -y git vim"]
    assert runner.actions() == []


def test_timeout_passed_to_every_command(locator):
    timeouts = []

    class Runner(FakeRunner):
        def run(self, command_line, timeout=None):
            timeouts.append(timeout)
            return super().run(command_line, timeout)

    runner = Runner(available="a|1\nb|2\n")
    make_driver(runner, locator, ["a", "b"], ["1", None], timeout=30).install(["a", "b"])
    assert timeouts == [30, 30, 30]


# -------------------------
# Convergence
# -------------------------
def test_reconcile_install_skips_satisfied_packages(runner, locator):
    driver = make_driver(runner, locator, ["Git", "vim", "nodejs"], [None, "9.1.0", None])
    assert driver.reconcile(Action.INSTALL) == ["vim", "nodejs"]
    assert runner.actions() == [
        "choco.exe install -y -version 9.1.0 vim",
        "choco.exe install -y nodejs",
    ]


def test_reconcile_install_nothing_to_do(runner, locator):
    driver = make_driver(runner, locator, ["git", "vim"], ["2.40.0", None])
    assert driver.reconcile("install") == []
    assert runner.actions() == []


def test_reconcile_upgrade_uses_candidate_versions(runner, locator):
    # git has a newer candidate, vim is current
    driver = make_driver(runner, locator, ["git", "vim"])
    assert driver.reconcile(Action.UPGRADE) == ["git"]
    assert runner.actions() == ["choco.exe upgrade -y git"]


def test_reconcile_remove_only_installed(runner, locator):
    driver = make_driver(runner, locator, ["git", "nodejs", "VIM"])
    assert driver.reconcile(Action.REMOVE) == ["git", "VIM"]
    assert runner.actions() == ["choco.exe uninstall -y git VIM"]


# -------------------------
# CLI commands
# -------------------------
@pytest.fixture
def config(tmp_path):
    cfg = Config(config_dir=tmp_path)
    cfg.choco_path = "choco.exe"
    cfg.source = "internal"
    cfg.timeout = 60
    operations.init(cfg)
    yield cfg
    operations._cfg = None


def test_commands_require_init():
    operations._cfg = None
    with pytest.raises(RuntimeError):
        operations.install(["git"])


def test_install_command_uses_config_defaults(config, runner, capsys):
    with mock.patch("winchoco.operations.CommandRunner", return_value=runner):
        operations.install(["nodejs"], version=["20.1.0"])
    assert runner.actions() == ["choco.exe install -y -version 20.1.0 -source internal nodejs"]
    assert "Install done: nodejs" in capsys.readouterr().out


def test_cli_source_overrides_config(config, runner):
    with mock.patch("winchoco.operations.CommandRunner", return_value=runner):
        operations.remove(["git"], source="other")
    assert runner.actions() == ["choco.exe uninstall -y -source other git"]


def test_noop_command_runs_nothing(config, runner, capsys):
    with mock.patch("winchoco.operations.CommandRunner", return_value=runner):
        operations.upgrade(["git"], noop=True)
    assert runner.actions() == []
    assert "Upgrade planned: git" in capsys.readouterr().out


def test_status_prints_table(config, runner, capsys):
    with mock.patch("winchoco.operations.CommandRunner", return_value=runner):
        operations.status(["Git", "nosuchpkg"], version=["2.41.0", None])
    out = capsys.readouterr().out
    assert "NAME" in out
    git_line = next(line for line in out.splitlines() if line.startswith("Git"))
    assert git_line.split() == ["Git", "2.41.0", "2.40.0", "2.41.0"]
    missing_line = next(line for line in out.splitlines() if line.startswith("nosuchpkg"))
    assert missing_line.split() == ["nosuchpkg", "-", "-", "-"]
