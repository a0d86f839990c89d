import pytest

from vulnscan.scanner.versions import format_src_version, format_version
from vulnscan.types import Package


@pytest.mark.parametrize(
    "pkg, want",
    [
        (Package(src_version="1.2.3", src_release="1"), "1.2.3-1"),
        (Package(src_epoch=2, src_version="1.2.3", src_release="alpha"), "2:1.2.3-alpha"),
    ],
    ids=["happy path", "with epoch"],
)
def test_format_src_version(pkg, want):
    assert format_src_version(pkg) == want


@pytest.mark.parametrize(
    "pkg, want",
    [
        (Package(version="1.2.3", release="1"), "1.2.3-1"),
        (Package(epoch=2, version="1.2.3", release="alpha"), "2:1.2.3-alpha"),
    ],
    ids=["happy path", "with epoch"],
)
def test_format_version(pkg, want):
    assert format_version(pkg) == want


def test_format_version_without_release():
    assert format_version(Package(version="1.2.3")) == "1.2.3"


def test_format_version_ignores_source_fields():
    pkg = Package(version="1.0", src_version="9.9", src_epoch=3)
    assert format_version(pkg) == "1.0"
    assert format_src_version(pkg) == "3:9.9"