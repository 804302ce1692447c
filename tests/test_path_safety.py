"""Tests for path safety helpers."""
from __future__ import annotations

from pathlib import Path

import pytest

from mindevc.path_safety import member_path, safe_relpath


class TestSafeRelpath:

    @pytest.mark.parametrize("path,expected", [
        ("fd", "fd"),
        ("fd-v10.2.0/fd", "fd-v10.2.0/fd"),
        ("./bin/rg", "bin/rg"),
        ("a//b", "a/b"),
    ])
    def test_accepts(self, path, expected):
        assert safe_relpath(path) == expected

    @pytest.mark.parametrize("path", ["", ".", "/etc/passwd", "../x", "a/../../x", "a\\b", "a\x00b"])
    def test_rejects(self, path):
        with pytest.raises(ValueError, match="unsafe path"):
            safe_relpath(path)


class TestMemberPath:

    def test_plain_member(self):
        root = Path("/cache/tools/x86_64/fd")
        assert member_path(root, "fd-v10.2.0/fd") == root / "fd-v10.2.0" / "fd"

    def test_dot_prefix_and_trailing_slash(self):
        root = Path("/cache/tools/x86_64/fd")
        assert member_path(root, "./fd-v10.2.0/") == root / "fd-v10.2.0"

    def test_root_entry(self):
        root = Path("/cache/tools/x86_64/fd")
        assert member_path(root, "./") == root

    @pytest.mark.parametrize("name", ["../evil", "a/../../evil", "/etc/passwd", "a\\b", "a\x00"])
    def test_rejects(self, name):
        with pytest.raises(ValueError, match="unsafe archive member"):
            member_path(Path("/cache"), name)
