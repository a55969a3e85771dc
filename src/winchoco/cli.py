# cli.py
import argparse
import sys

from . import operations
from .config import Config, parse_log_level
from .errors import ConfigError, WinchocoError
from .logger import setup_logger

_logger = setup_logger()

# Placeholder for "no pin" inside a --version list
NO_PIN = "_"


class SplitCommaSeparated(argparse.Action):
    """Turn "1.0,_,2.0" into ["1.0", None, "2.0"]."""

    def __call__(self, parser, namespace, values, option_string=None):
        items = [v.strip() for v in values.split(",")]
        setattr(namespace, self.dest, [None if v in ("", NO_PIN) else v for v in items])


def _add_package_args(p, with_noop=True):
    p.add_argument("packages", nargs="+", help="Package names")
    p.add_argument(
        "--version",
        "-V",
        action=SplitCommaSeparated,
        help=f"Comma separated versions, one per package ('{NO_PIN}' for no pin)",
    )
    p.add_argument("--source", "-s", help="Repository to install from")
    p.add_argument("--options", "-o", help="Extra options passed to choco")
    p.add_argument("--timeout", "-t", type=int, help="Per-command timeout in seconds")
    if with_noop:
        p.add_argument("--noop", "-n", action="store_true", help="Print commands without running them")


def build_parser():
    parser = argparse.ArgumentParser(prog="winchoco", description="Desired-state Chocolatey package manager")
    parser.add_argument("--log-level", "-l", dest="log_level", help="Override the configured log level")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # ------------------------
    # Package Actions
    # ------------------------

    # install / in
    p_install = subparsers.add_parser("install", aliases=["in"], help="Install missing or mis-pinned packages")
    _add_package_args(p_install)
    p_install.set_defaults(func=operations.install)

    # upgrade / up
    p_upgrade = subparsers.add_parser("upgrade", aliases=["up"], help="Upgrade packages to candidate or pinned versions")
    _add_package_args(p_upgrade)
    p_upgrade.set_defaults(func=operations.upgrade)

    # remove / rm
    p_remove = subparsers.add_parser("remove", aliases=["rm"], help="Remove installed packages")
    _add_package_args(p_remove)
    p_remove.set_defaults(func=operations.remove)

    # purge (same as remove for choco)
    p_purge = subparsers.add_parser("purge", help="Alias of remove")
    _add_package_args(p_purge)
    p_purge.set_defaults(func=operations.purge)

    # uninstall (deprecated)
    p_uninstall = subparsers.add_parser("uninstall", help="Deprecated, use remove")
    _add_package_args(p_uninstall)
    p_uninstall.set_defaults(func=operations.uninstall)

    # ------------------------
    # Package Queries
    # ------------------------

    # status / st
    p_status = subparsers.add_parser("status", aliases=["st"], help="Show desired, installed and candidate versions")
    _add_package_args(p_status, with_noop=False)
    p_status.set_defaults(func=operations.status)

    return parser


def main(argv=None):
    # ------------------------
    # Initialize config + operations
    # ------------------------
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = Config()
        if args.log_level:
            config.log_level = parse_log_level(args.log_level)
    except ConfigError as e:
        _logger.error("Invalid configuration: %s", e)
        sys.exit(1)
    operations.init(config)

    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        sys.exit(1)

    arg_dict = vars(args)
    arg_dict.pop("func", None)
    arg_dict.pop("command", None)
    arg_dict.pop("log_level", None)

    try:
        func(**arg_dict)
    except WinchocoError as e:
        _logger.error("%s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
