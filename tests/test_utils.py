import os
import sys
import tempfile

import pytest

from vulnscan.utils import cache_dir, copy_file, default_cache_dir, set_cache_dir


def test_copy_file_happy_path(tmp_path):
    content = b"this is a content"
    src = tmp_path / "src"
    src.write_bytes(content)
    dst = tmp_path / "dst"
    dst.touch()

    copied = copy_file(str(src), str(dst))

    assert copied == len(content)
    assert dst.read_bytes() == content


def test_copy_file_overwrites_destination(tmp_path):
    src = tmp_path / "src"
    src.write_bytes(b"new")
    dst = tmp_path / "dst"
    dst.write_bytes(b"much older content")
    assert copy_file(str(src), str(dst)) == 3
    assert dst.read_bytes() == b"new"


def test_copy_file_rejects_directory(tmp_path):
    with pytest.raises(OSError, match="is not a regular file"):
        copy_file(str(tmp_path), str(tmp_path / "dst"))


def test_copy_file_missing_source(tmp_path):
    with pytest.raises(FileNotFoundError):
        copy_file(str(tmp_path / "missing"), str(tmp_path / "dst"))


def test_set_and_get_cache_dir(tmp_path):
    previous = cache_dir()
    try:
        set_cache_dir(str(tmp_path))
        assert cache_dir() == str(tmp_path)
    finally:
        set_cache_dir(previous)


def test_default_cache_dir_uses_xdg(monkeypatch, tmp_path):
    monkeypatch.setattr(sys, "platform", "linux")
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path))
    assert default_cache_dir() == os.path.join(str(tmp_path), "vulnscan")


def test_default_cache_dir_uses_home(monkeypatch, tmp_path):
    monkeypatch.setattr(sys, "platform", "linux")
    monkeypatch.delenv("XDG_CACHE_HOME", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    assert default_cache_dir() == os.path.join(str(tmp_path), ".cache", "vulnscan")


def test_default_cache_dir_falls_back_to_temp(monkeypatch):
    monkeypatch.setattr(sys, "platform", "linux")
    monkeypatch.delenv("XDG_CACHE_HOME", raising=False)
    monkeypatch.delenv("HOME", raising=False)
    assert default_cache_dir() == os.path.join(tempfile.gettempdir(), "vulnscan")