"""
Unit tests for path mapping (packs_parity/comparison/path_mapper.py)
"""

import hashlib
from pathlib import Path

from packs_parity.comparison.path_mapper import DEFAULT_CACHE_DIR, PathMapper


class TestFileId:
    """Tests for input path digests."""

    def test_file_id_is_md5_of_path(self):
        """Test identifier matches packwerk's cache naming."""
        expected = hashlib.md5(b"app/models/user.rb").hexdigest()
        assert PathMapper.file_id("app/models/user.rb") == expected

    def test_file_id_is_stable(self):
        """Test repeated calls return the same identifier."""
        mapper = PathMapper()
        ids = {mapper.file_id("app/models/user.rb") for _ in range(5)}
        assert len(ids) == 1

    def test_file_id_known_value(self):
        """Test identifier is stable across processes (fixed known digest)."""
        assert PathMapper.file_id("a") == "0cc175b9c0f1b6a831c399e269772661"

    def test_file_id_is_not_normalized(self):
        """Test path strings are hashed exactly as given."""
        assert PathMapper.file_id("app/a.rb") != PathMapper.file_id("./app/a.rb")

    def test_file_id_length(self):
        """Test identifier is a fixed-length hex digest."""
        assert len(PathMapper.file_id("app/views/index.html.erb")) == 32


class TestLocate:
    """Tests for artifact location derivation."""

    def test_locate_builds_both_paths(self, tmp_path):
        """Test baseline and experimental locations."""
        mapper = PathMapper(tmp_path)
        paths = mapper.locate("app/models/user.rb")

        assert paths.file_id == PathMapper.file_id("app/models/user.rb")
        assert paths.baseline == tmp_path / paths.file_id
        assert paths.experimental == tmp_path / f"{paths.file_id}-experimental"

    def test_locate_digest_matches_locate(self, tmp_path):
        """Test locating by digest gives the same pair."""
        mapper = PathMapper(tmp_path)
        by_path = mapper.locate("lib/tasks/db.rake")
        assert mapper.locate_digest(by_path.file_id) == by_path

    def test_locate_performs_no_io(self, tmp_path):
        """Test locating a path does not create anything."""
        mapper = PathMapper(tmp_path / "missing")
        mapper.locate("app/a.rb")
        assert not (tmp_path / "missing").exists()

    def test_default_cache_dir(self):
        """Test default cache directory."""
        assert PathMapper().cache_dir == Path(DEFAULT_CACHE_DIR)
        assert DEFAULT_CACHE_DIR == Path("tmp/cache/packwerk")
