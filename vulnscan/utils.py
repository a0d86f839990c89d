"""File and cache-directory helpers."""

from __future__ import annotations

import os
import shutil
import stat
import sys
import tempfile

_APP_DIR = "vulnscan"
_settings: dict[str, str] = {"cache_dir": ""}


def _user_cache_dir() -> str:
    if sys.platform == "win32":
        local = os.environ.get("LocalAppData")
        if not local:
            raise OSError("%LocalAppData% is not defined")
        return local
    if sys.platform == "darwin":
        home = os.environ.get("HOME")
        if not home:
            raise OSError("$HOME is not defined")
        return os.path.join(home, "Library", "Caches")
    xdg = os.environ.get("XDG_CACHE_HOME")
    if xdg:
        return xdg
    home = os.environ.get("HOME")
    if not home:
        raise OSError("neither $XDG_CACHE_HOME nor $HOME are defined")
    return os.path.join(home, ".cache")


def default_cache_dir() -> str:
    """Return the default cache directory, falling back to the temp directory."""
    try:
        base = _user_cache_dir()
    except OSError:
        base = tempfile.gettempdir()
    return os.path.join(base, _APP_DIR)


def cache_dir() -> str:
    """Return the cache directory currently in use."""
    return _settings["cache_dir"]


def set_cache_dir(directory: str) -> None:
    """Set the cache directory used by later operations."""
    _settings.update(cache_dir=directory)


def copy_file(src: str, dst: str) -> int:
    """Copy the regular file ``src`` to ``dst`` and return the number of bytes copied."""
    if not stat.S_ISREG(os.stat(src).st_mode):
        raise OSError(f"{src} is not a regular file")
    with open(src, "rb") as source, open(dst, "wb") as destination:
        shutil.copyfileobj(source, destination)
        return destination.tell()