"""Install the latest GE-Proton release when it is newer than the installed one."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from app.config import INSTALL_DIR_ENV, NOTIFICATIONS_ENV, load_installer_config
from app.version import get_app_version
from services.update.models import PreflightError
from services.update.preflight import resolve_home_directory
from services.update.runner import EXIT_FAILURE, build_notifier, run_installer
from shared.logging_config import LogVerbosity, ensure_installer_logging

_LOGGER = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="proton-ge-auto-installer", description=__doc__)
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON file overriding the bundled defaults.",
    )
    parser.add_argument(
        "--install-dir",
        type=Path,
        default=None,
        help="Directory that receives the extracted release (compatibilitytools.d).",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only report whether a newer release exists; do not download it.",
    )
    parser.add_argument(
        "--no-notify",
        action="store_true",
        help="Disable desktop notifications.",
    )
    parser.add_argument(
        "--verbosity",
        choices=[level.value for level in LogVerbosity if level is not LogVerbosity.DISABLED],
        default=LogVerbosity.INFO.value,
        help="Minimum severity written to the log file.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {get_app_version()}",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    environ = dict(os.environ)
    if args.install_dir is not None:
        environ[INSTALL_DIR_ENV] = str(args.install_dir.expanduser().resolve())
    if args.no_notify:
        environ[NOTIFICATIONS_ENV] = "0"

    try:
        home = resolve_home_directory(environ)
    except PreflightError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    config = load_installer_config(home, args.config, environ)
    ensure_installer_logging(
        config.paths.log_file,
        max_bytes=config.thresholds.max_log_bytes,
        verbosity=args.verbosity,
        log_to_stderr=True,
    )
    _LOGGER.debug(
        "proton-ge-auto-installer %s (install dir %s)",
        get_app_version(),
        config.paths.install_dir,
    )
    return run_installer(config, check_only=args.check, notifier=build_notifier(config))


if __name__ == "__main__":
    raise SystemExit(main())
