"""Process-owned temporary files for a single installer run."""

from __future__ import annotations

import logging
import os
import tempfile
import time
from pathlib import Path

from services.update.constants import TEMP_FILE_PREFIX


_LOGGER = logging.getLogger(__name__)


class TemporaryArtifacts:
    """Allocate uniquely named scratch files and remove them on exit.

    Names follow ``proton_ge_<epoch>_XXXXXX<suffix>`` in a shared temporary
    directory so unrelated concurrent runs never collide.
    """

    def __init__(self, directory: Path | None = None) -> None:
        self._directory = Path(directory) if directory is not None else Path(tempfile.gettempdir())
        self._paths: list[Path] = []

    @property
    def paths(self) -> tuple[Path, ...]:
        return tuple(self._paths)

    def allocate(self, suffix: str) -> Path:
        self._directory.mkdir(parents=True, exist_ok=True)
        handle, name = tempfile.mkstemp(
            prefix=f"{TEMP_FILE_PREFIX}{int(time.time())}_",
            suffix=suffix,
            dir=self._directory,
        )
        os.close(handle)
        path = Path(name)
        self._paths.append(path)
        _LOGGER.debug("Allocated temporary file %s", path)
        return path

    def cleanup(self) -> None:
        while self._paths:
            path = self._paths.pop()
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError:
                _LOGGER.debug("Unable to remove temporary file %s", path, exc_info=True)

    def __enter__(self) -> "TemporaryArtifacts":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()
