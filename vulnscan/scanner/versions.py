"""Formatting of package versions as epoch:version-release."""

from __future__ import annotations

from ..types import Package


def _format(epoch: int, version: str, release: str) -> str:
    text = f"{version}-{release}" if release else version
    return f"{epoch}:{text}" if epoch != 0 else text


def format_version(pkg: Package) -> str:
    """Return the package's version with its epoch and release."""
    return _format(pkg.epoch, pkg.version, pkg.release)


def format_src_version(pkg: Package) -> str:
    """Return the package's source version with its source epoch and release."""
    return _format(pkg.src_epoch, pkg.src_version, pkg.src_release)