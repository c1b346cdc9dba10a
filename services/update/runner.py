"""Helpers for constructing the update service and running one installer pass."""

from __future__ import annotations

import contextlib
import logging
import signal
import threading
from typing import Iterator

from app.config import InstallerConfig
from services.update.installers import Installer, TarballInstaller
from services.update.locking import InstanceLock
from services.update.models import InstanceLockedError, UpdateError, UpdateResult
from services.update.preflight import run_preflight
from services.update.providers import GitHubReleaseProvider, LocalFolderReleaseProvider, ReleaseProvider
from services.update.service import UpdateService
from services.update.workspace import TemporaryArtifacts
from shared.notifications import DesktopNotifier, Notifier, NullNotifier


_LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


class TerminationRequested(BaseException):
    """Raised from the signal handler so ``finally`` blocks run on SIGTERM/SIGHUP."""

    def __init__(self, signum: int) -> None:
        super().__init__(signum)
        self.signum = signum


def build_release_provider(config: InstallerConfig) -> ReleaseProvider:
    local_dir = config.local_release_dir
    if local_dir is not None:
        if local_dir.is_dir():
            _LOGGER.info("Using local release source at %s", local_dir)
            return LocalFolderReleaseProvider(local_dir)
        _LOGGER.warning("Configured local release directory does not exist: %s", local_dir)
    network = config.network
    return GitHubReleaseProvider(
        network.api_url,
        download_base_url=network.download_base_url,
        connect_timeout=network.api_connect_timeout,
        total_timeout=network.api_total_timeout,
    )


def build_notifier(config: InstallerConfig) -> Notifier:
    if not config.notifications:
        return NullNotifier()
    return DesktopNotifier()


def build_update_service(
    config: InstallerConfig,
    workspace: TemporaryArtifacts,
    *,
    notifier: Notifier | None = None,
    installer: Installer | None = None,
    provider: ReleaseProvider | None = None,
) -> UpdateService:
    """Construct an :class:`UpdateService` for ``config``."""

    return UpdateService(
        provider or build_release_provider(config),
        installer or TarballInstaller(),
        install_dir=config.paths.install_dir,
        network=config.network,
        workspace=workspace,
        notifier=notifier,
        tag_prefix=config.tag_prefix,
    )


def run_installer(
    config: InstallerConfig,
    *,
    check_only: bool = False,
    notifier: Notifier | None = None,
    installer: Installer | None = None,
    provider: ReleaseProvider | None = None,
) -> int:
    """Run preflight, take the instance lock and perform one update pass.

    Returns the process exit code.  The lock and every temporary file are
    released on all paths, including SIGINT and SIGTERM.
    """

    notifier = notifier or build_notifier(config)
    try:
        with _termination_signals_raise():
            result = _run_locked(
                config,
                check_only=check_only,
                notifier=notifier,
                installer=installer,
                provider=provider,
            )
    except InstanceLockedError as exc:
        _LOGGER.info("%s; exiting", exc)
        return EXIT_OK
    except UpdateError as exc:
        _LOGGER.error("%s", exc)
        notifier.notify(f"ERROR: {exc}")
        return EXIT_FAILURE
    except KeyboardInterrupt:
        _LOGGER.error("Interrupted; temporary files and lock removed")
        return EXIT_FAILURE
    except TerminationRequested as exc:
        _LOGGER.error("Terminated by signal %s; temporary files and lock removed", exc.signum)
        return EXIT_FAILURE

    _LOGGER.debug("Installer finished with outcome %s", result.outcome.value)
    return EXIT_OK


def _run_locked(
    config: InstallerConfig,
    *,
    check_only: bool,
    notifier: Notifier,
    installer: Installer | None,
    provider: ReleaseProvider | None,
) -> UpdateResult:
    run_preflight(config)
    lock = InstanceLock(
        config.paths.lock_file, stale_after=config.thresholds.lock_stale_seconds
    )
    with lock, TemporaryArtifacts(config.paths.temp_dir) as workspace:
        service = build_update_service(
            config,
            workspace,
            notifier=notifier,
            installer=installer,
            provider=provider,
        )
        return service.check_for_updates(check_only=check_only)


@contextlib.contextmanager
def _termination_signals_raise() -> Iterator[None]:
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handler(signum, frame):
        raise TerminationRequested(signum)

    previous = {
        signum: signal.signal(signum, _handler)
        for signum in (signal.SIGTERM, signal.SIGHUP)
    }
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)


__all__ = [
    "EXIT_FAILURE",
    "EXIT_OK",
    "TerminationRequested",
    "build_notifier",
    "build_release_provider",
    "build_update_service",
    "run_installer",
]
