"""
Tests for cache persistence.
"""

import json
import os
import time
from pathlib import Path

import pytest

from sth.core.models.index import RecipeIndex, RecipeIndexEntry
from sth.core.persistence.cache import is_fresh, load_cache, save_cache


class TestCacheFile:
    """Tests for the JSON cache file."""

    def test_save_and_load(self, tmp_path: Path):
        """A model roundtrips as plain JSON."""
        path = tmp_path / ".sth.cache"
        index = RecipeIndex(recipes={"jq": RecipeIndexEntry(slug="jq", path="recipes/jq/recipe.yml")})
        save_cache(path, index)

        data = json.loads(path.read_text())
        assert data["recipes"]["jq"]["slug"] == "jq"
        assert RecipeIndex.model_validate(load_cache(path)) == index

    def test_save_creates_directories(self, tmp_path: Path):
        path = tmp_path / "deep" / "nested" / "cache.json"
        save_cache(path, {"a": 1})
        assert path.is_file()

    def test_no_temp_files_left(self, tmp_path: Path):
        save_cache(tmp_path / "cache.json", {"a": 1})
        assert [p.name for p in tmp_path.iterdir()] == ["cache.json"]

    def test_load_corrupt_raises(self, tmp_path: Path):
        path = tmp_path / "cache.json"
        path.write_text("not json at all {{{")
        with pytest.raises(ValueError):
            load_cache(path)


class TestFreshness:
    """Tests for mtime-based freshness."""

    def test_missing_is_stale(self, tmp_path: Path):
        assert not is_fresh(tmp_path / "missing", 60)

    def test_recent_is_fresh(self, tmp_path: Path):
        path = tmp_path / "c"
        path.write_text("{}")
        assert is_fresh(path, 60)

    def test_old_is_stale(self, tmp_path: Path):
        path = tmp_path / "c"
        path.write_text("{}")
        old = time.time() - 3600
        os.utime(path, (old, old))
        assert not is_fresh(path, 60)
