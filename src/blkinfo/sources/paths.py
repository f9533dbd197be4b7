from __future__ import annotations

import errno
import os
from pathlib import Path

from blkinfo.utils.errors import InvalidStateError, NotFoundError
from blkinfo.utils.logging import get_logger

logger = get_logger(__name__)


def resolve_path(path: str | os.PathLike) -> str:
    """Return the absolute, symlink-free form of ``path``.

    Every component must exist; a component that is a regular file where a
    directory is expected counts as missing. Access denial surfaces as the
    builtin ``PermissionError`` and a symlink loop as ``OSError(ELOOP)``.
    """
    if not str(path):
        raise InvalidStateError("a path is not given")
    try:
        resolved = Path(path).resolve(strict=True)
    except (FileNotFoundError, NotADirectoryError) as exc:
        raise NotFoundError(f"{path} not found") from exc
    except RuntimeError as exc:
        # Python < 3.13 reports symlink loops as RuntimeError
        raise OSError(errno.ELOOP, os.strerror(errno.ELOOP), str(path)) from exc
    logger.debug("resolved_path path=%s resolved=%s", path, resolved)
    return str(resolved)
