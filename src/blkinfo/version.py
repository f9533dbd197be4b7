"""Version and build metadata, overridden by release builds."""

__version__ = "0.0.1"
REVISION = "devel"
BUILT_AT = ""


def version() -> str:
    return __version__


def revision() -> str:
    return REVISION


def built_at() -> str:
    return BUILT_AT or "unknown"
