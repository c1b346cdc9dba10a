"""Central logging configuration for the auto-installer.

Every run appends timestamped lines to a single user-scoped log file and,
when stderr is attached to something that reads it, mirrors INFO and above
there as well.  The configuration avoids duplicate handler registration when
invoked repeatedly (as happens in tests).

The log file is rotated in place: once it has reached the configured size,
the next record renames it to ``<name>.old`` (replacing any previous one) and
starts a fresh file.

``PROTON_GE_LOG_FILE`` overrides the log path when no explicit path is given.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from enum import Enum
from pathlib import Path
from typing import Iterable

_LOG_FILE_ENV = "PROTON_GE_LOG_FILE"
_DEFAULT_LOGNAME = ".proton_ge_auto_installer.log"
_DEFAULT_MAX_BYTES = 1_000_000
_ROTATED_SUFFIX = ".old"
_CONFIGURED = False
_LOG_PATH: Path | None = None
_HANDLER_TAG = "_proton_ge_logging_handler"

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class LogVerbosity(str, Enum):
    """Verbosity levels supported by the installer log file."""

    DISABLED = "disabled"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    VERBOSE = "verbose"


_VERBOSITY_LEVELS: dict[LogVerbosity, int] = {
    LogVerbosity.DISABLED: logging.CRITICAL + 1,
    LogVerbosity.ERROR: logging.ERROR,
    LogVerbosity.WARNING: logging.WARNING,
    LogVerbosity.INFO: logging.INFO,
    LogVerbosity.VERBOSE: logging.DEBUG,
}

_DEFAULT_VERBOSITY = LogVerbosity.INFO
_CURRENT_VERBOSITY = _DEFAULT_VERBOSITY


def rotated_log_path(log_path: Path) -> Path:
    return log_path.with_name(f"{log_path.name}{_ROTATED_SUFFIX}")


class OldSuffixRotatingFileHandler(logging.handlers.RotatingFileHandler):
    """Rotate to a single ``.old`` file once the log has reached ``max_bytes``.

    Unlike the stock handler the size check looks at the file as it is on
    disk, so a log that already reached the limit in a previous run rotates on
    the first record of this one.
    """

    def __init__(self, filename: Path, max_bytes: int = _DEFAULT_MAX_BYTES) -> None:
        super().__init__(
            filename,
            maxBytes=max_bytes,
            backupCount=1,
            encoding="utf-8",
            delay=True,
        )
        self.namer = _old_suffix_namer

    def shouldRollover(self, record: logging.LogRecord) -> bool:  # noqa: N802 - logging API
        if self.stream is not None:
            self.stream.flush()
        try:
            size = os.stat(self.baseFilename).st_size
        except FileNotFoundError:
            return False
        return size >= self.maxBytes

    def doRollover(self) -> None:  # noqa: N802 - logging API
        super().doRollover()
        rotated = self.rotation_filename(f"{self.baseFilename}.1")
        notice = logging.LogRecord(
            __name__,
            logging.INFO,
            __file__,
            0,
            "Log file rotated: %s created",
            (rotated,),
            None,
        )
        logging.FileHandler.emit(self, notice)


def _old_suffix_namer(default_name: str) -> str:
    base, _, _ = default_name.rpartition(".")
    return f"{base}{_ROTATED_SUFFIX}"


def ensure_installer_logging(
    log_path: Path | None = None,
    *,
    max_bytes: int = _DEFAULT_MAX_BYTES,
    verbosity: LogVerbosity | str | None = None,
    log_to_stderr: bool | None = None,
) -> Path:
    """Configure the root logger for the installer.

    The first invocation installs the rotating file handler and, when
    ``log_to_stderr`` is true (or stderr is interactive when it is ``None``),
    a stderr handler at INFO.  Subsequent calls are no-ops and return the
    already configured log file path.

    Returns
    -------
    Path
        Location of the log file.
    """

    global _CONFIGURED, _LOG_PATH, _CURRENT_VERBOSITY

    if _CONFIGURED and _LOG_PATH is not None:
        return _LOG_PATH

    if verbosity is not None:
        _CURRENT_VERBOSITY = _parse_verbosity(verbosity)

    resolved = _resolve_log_path(log_path)
    resolved.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    file_handler = OldSuffixRotatingFileHandler(resolved, max_bytes=max_bytes)
    file_handler.setLevel(_VERBOSITY_LEVELS[_CURRENT_VERBOSITY])
    file_handler.setFormatter(formatter)
    setattr(file_handler, _HANDLER_TAG, True)
    root.addHandler(file_handler)

    wants_stderr = _should_log_to_stderr(root.handlers) if log_to_stderr is None else log_to_stderr
    if wants_stderr:
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(
            min(logging.INFO, _VERBOSITY_LEVELS[_CURRENT_VERBOSITY])
        )
        stream_handler.setFormatter(formatter)
        setattr(stream_handler, _HANDLER_TAG, True)
        root.addHandler(stream_handler)

    _CONFIGURED = True
    _LOG_PATH = resolved

    logging.getLogger(__name__).debug(
        "Writing installer logs to %s (verbosity=%s)",
        resolved,
        _CURRENT_VERBOSITY.value,
    )
    return resolved


def _parse_verbosity(verbosity: LogVerbosity | str) -> LogVerbosity:
    if isinstance(verbosity, LogVerbosity):
        return verbosity
    try:
        return LogVerbosity(verbosity.lower())
    except ValueError as exc:
        raise ValueError(f"Unsupported log verbosity: {verbosity}") from exc


def _resolve_log_path(log_path: Path | None) -> Path:
    if log_path is not None:
        return Path(log_path)

    env_file = os.environ.get(_LOG_FILE_ENV)
    if env_file:
        return Path(env_file).expanduser()

    return Path.home() / _DEFAULT_LOGNAME


def _should_log_to_stderr(handlers: Iterable[logging.Handler]) -> bool:
    if not hasattr(sys, "stderr"):
        return False
    stderr = sys.stderr
    is_tty = getattr(stderr, "isatty", None)
    if callable(is_tty):
        try:
            if not is_tty():
                return False
        except Exception:  # pragma: no cover
            return False
    else:
        return False

    for handler in handlers:
        if isinstance(handler, logging.StreamHandler) and handler.stream is stderr:
            return False
    return True


def _reset_for_tests() -> None:
    """Remove handlers installed by :func:`ensure_installer_logging`."""

    global _CONFIGURED, _LOG_PATH, _CURRENT_VERBOSITY

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            root.removeHandler(handler)
            try:
                handler.close()
            except Exception:  # pragma: no cover
                pass

    _CONFIGURED = False
    _LOG_PATH = None
    _CURRENT_VERBOSITY = _DEFAULT_VERBOSITY
