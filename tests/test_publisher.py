"""Tests for symlink publication."""
from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from mindevc.errors import PublishError
from mindevc.extractor import Extraction
from mindevc.models import ExtractedArtifact, LinkSpec, RelativePath
from mindevc.publisher import SymlinkPublisher, resolve_link_target


@pytest.fixture
def publisher():
    return SymlinkPublisher()


@pytest.fixture
def tree_extraction(tmp_path):
    root = tmp_path / "cache" / "tools" / "x86_64" / "fd"
    (root / "fd-v10.2.0").mkdir(parents=True)
    (root / "fd-v10.2.0" / "fd").write_bytes(b"fd binary")
    (root / "fd-v10.2.0" / "fd").chmod(0o755)
    return Extraction(root=root, artifact=root)


@pytest.fixture
def bin_extraction(tmp_path):
    root = tmp_path / "cache" / "tools" / "x86_64" / "gosu"
    root.mkdir(parents=True)
    artifact = root / "gosu"
    artifact.write_bytes(b"gosu binary")
    artifact.chmod(0o644)
    return Extraction(root=root, artifact=artifact)


class TestResolveLinkTarget:

    def test_relative_path(self, tree_extraction):
        target = resolve_link_target(tree_extraction, RelativePath("fd-v10.2.0/fd"))
        assert target == tree_extraction.root / "fd-v10.2.0" / "fd"

    def test_extracted_artifact(self, bin_extraction):
        assert resolve_link_target(bin_extraction, ExtractedArtifact()) == bin_extraction.artifact


class TestPublish:

    def test_creates_symlink(self, publisher, tree_extraction, tmp_path):
        link = tmp_path / "bin" / "fd"

        created = publisher.publish(tree_extraction, [LinkSpec(link, RelativePath("fd-v10.2.0/fd"))])

        assert created == [link]
        assert link.is_symlink()
        assert Path(os.readlink(link)) == tree_extraction.root / "fd-v10.2.0" / "fd"
        assert link.read_bytes() == b"fd binary"

    def test_creates_missing_parents(self, publisher, tree_extraction, tmp_path):
        link = tmp_path / "deeply" / "nested" / "bin" / "fd"

        publisher.publish(tree_extraction, [LinkSpec(link, RelativePath("fd-v10.2.0/fd"))])

        assert link.is_symlink()

    def test_publish_twice_is_idempotent(self, publisher, tree_extraction, tmp_path):
        link = tmp_path / "bin" / "fd"
        links = [LinkSpec(link, RelativePath("fd-v10.2.0/fd"))]

        publisher.publish(tree_extraction, links)
        publisher.publish(tree_extraction, links)

        assert Path(os.readlink(link)) == tree_extraction.root / "fd-v10.2.0" / "fd"
        assert sorted(p.name for p in link.parent.iterdir()) == ["fd"]

    def test_replaces_existing_file(self, publisher, tree_extraction, tmp_path):
        link = tmp_path / "bin" / "fd"
        link.parent.mkdir()
        link.write_text("old fd")

        publisher.publish(tree_extraction, [LinkSpec(link, RelativePath("fd-v10.2.0/fd"))])

        assert link.is_symlink()
        assert link.read_bytes() == b"fd binary"

    def test_replaces_existing_directory(self, publisher, tree_extraction, tmp_path):
        link = tmp_path / "bin" / "fd"
        (link / "junk").mkdir(parents=True)
        (link / "junk" / "file").write_text("x")

        publisher.publish(tree_extraction, [LinkSpec(link, RelativePath("fd-v10.2.0/fd"))])

        assert link.is_symlink()

    def test_replaces_dangling_symlink(self, publisher, tree_extraction, tmp_path):
        link = tmp_path / "bin" / "fd"
        link.parent.mkdir()
        os.symlink(tmp_path / "does-not-exist", link)

        publisher.publish(tree_extraction, [LinkSpec(link, RelativePath("fd-v10.2.0/fd"))])

        assert link.read_bytes() == b"fd binary"

    def test_repoints_symlink_to_new_version(self, publisher, tree_extraction, tmp_path):
        link = tmp_path / "bin" / "fd"
        publisher.publish(tree_extraction, [LinkSpec(link, RelativePath("fd-v10.2.0/fd"))])

        (tree_extraction.root / "fd-v10.3.0").mkdir()
        (tree_extraction.root / "fd-v10.3.0" / "fd").write_bytes(b"newer fd")
        publisher.publish(tree_extraction, [LinkSpec(link, RelativePath("fd-v10.3.0/fd"))])

        assert link.read_bytes() == b"newer fd"

    def test_dangling_target_is_allowed(self, publisher, tree_extraction, tmp_path):
        link = tmp_path / "bin" / "missing"

        publisher.publish(tree_extraction, [LinkSpec(link, RelativePath("not/in/archive"))])

        assert link.is_symlink()
        assert not link.exists()

    def test_bin_sentinel_marks_artifact_executable(self, publisher, bin_extraction, tmp_path):
        link = tmp_path / "bin" / "gosu"

        publisher.publish(bin_extraction, [LinkSpec(link, ExtractedArtifact())])

        mode = stat.S_IMODE(bin_extraction.artifact.stat().st_mode)
        assert mode & 0o111 == 0o111
        assert Path(os.readlink(link)) == bin_extraction.artifact

    def test_links_published_in_order(self, publisher, tree_extraction, tmp_path):
        (tree_extraction.root / "trurl").write_bytes(b"trurl")
        links = [
            LinkSpec(tmp_path / "bin" / "fd", RelativePath("fd-v10.2.0/fd")),
            LinkSpec(tmp_path / "bin" / "trurl", RelativePath("trurl")),
        ]

        created = publisher.publish(tree_extraction, links)

        assert created == [tmp_path / "bin" / "fd", tmp_path / "bin" / "trurl"]

    def test_no_links(self, publisher, tree_extraction):
        assert publisher.publish(tree_extraction, []) == []


class TestPublishFailures:

    def test_missing_artifact_for_bin_sentinel(self, publisher, tmp_path):
        root = tmp_path / "empty"
        root.mkdir()
        extraction = Extraction(root=root, artifact=root / "gone")

        with pytest.raises(PublishError, match="executable"):
            publisher.publish(extraction, [LinkSpec(tmp_path / "bin" / "gone", ExtractedArtifact())])

    def test_parent_is_a_file(self, publisher, tree_extraction, tmp_path):
        blocker = tmp_path / "bin"
        blocker.write_text("not a directory")

        with pytest.raises(PublishError, match="directory"):
            publisher.publish(tree_extraction, [LinkSpec(blocker / "fd", RelativePath("fd-v10.2.0/fd"))])

    @pytest.mark.skipif(os.geteuid() == 0, reason="root ignores directory permissions")
    def test_unwritable_link_directory(self, publisher, tree_extraction, tmp_path):
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir()
        bin_dir.chmod(0o555)
        try:
            with pytest.raises(PublishError, match="symlink"):
                publisher.publish(tree_extraction, [LinkSpec(bin_dir / "fd", RelativePath("fd-v10.2.0/fd"))])
        finally:
            bin_dir.chmod(0o755)
