"""Exception types raised while resolving block device metadata."""

from __future__ import annotations

__all__ = ["BlkInfoError", "NotFoundError", "InvalidStateError"]


class BlkInfoError(RuntimeError):
    """Base class for lookup failures raised by blkinfo."""


class NotFoundError(BlkInfoError):
    """Raised when a path, mount entry, sysfs entry or udev record is absent."""


class InvalidStateError(BlkInfoError):
    """Raised when a file is a directory or a data file is malformed."""
