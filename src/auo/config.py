"""Configuration directory resolution and atomic file writes.

* **Directory layout** -- the configuration lives in ``~/.auo/`` by default.
  ``AUO_CONFIG_DIR`` (or the ``--config-dir`` CLI flag, which reads the same
  variable) points it somewhere else. See :func:`get_config_dir`.
* **Atomic writes** -- :func:`atomic_write` writes through a temp file in
  the target directory and renames it into place, so a crash never leaves
  a half-written ``config.json``. Files are created ``0o600`` because they
  hold API tokens.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path

_APP_NAME = "auo"

CONFIG_DIR_ENV = "AUO_CONFIG_DIR"
DEFAULT_CONFIG_FILENAME = "config.json"


def get_config_dir() -> Path:
    """Return the configuration directory (not created here).

    ``$AUO_CONFIG_DIR`` when set and non-empty, otherwise ``~/.auo/``.
    """
    env_value = os.environ.get(CONFIG_DIR_ENV, "")
    if env_value:
        return Path(env_value).expanduser().absolute()
    return Path.home() / f".{_APP_NAME}"


def atomic_write(path: Path, data: str, mode: int = 0o600) -> None:
    """Write *data* to *path* atomically using temp file + rename.

    The temporary file is created next to *path* so that ``os.replace`` is
    an atomic rename on POSIX. It gets *mode* before any content is written,
    so a token never sits in a file readable by other users. On failure the
    temp file is removed and the error re-raised.

    Raises:
        OSError: If the directory is not writable, the disk is full, etc.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    # mkstemp opens the file 0o600 already; chmod covers a caller-supplied mode.
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        os.chmod(tmp_name, mode)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            fd = -1  # closed by the context manager from here on
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        # Includes KeyboardInterrupt: never leave a stray temp file behind.
        if fd != -1:
            os.close(fd)
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise
