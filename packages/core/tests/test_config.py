"""配置常量测试"""

from pathlib import Path

import pytest
from smarttask.core.config import SIMILARITY_THRESHOLD, get_db_path, get_embedding_dimensions


class TestDbPath:
    def test_explicit_path(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("SMARTTASK_DB_PATH", "/tmp/x.db")
        assert get_db_path() == "/tmp/x.db"

    def test_derived_from_data_dir(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("SMARTTASK_DB_PATH", raising=False)
        monkeypatch.setenv("SMARTTASK_DATA_DIR", "/var/smarttask")
        assert Path(get_db_path()) == Path("/var/smarttask/sqlite/smarttask.db")


class TestEmbeddingDimensions:
    def test_default(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("SMARTTASK_EMBEDDING_DIMENSIONS", raising=False)
        assert get_embedding_dimensions() == 256

    def test_override(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("SMARTTASK_EMBEDDING_DIMENSIONS", "512")
        assert get_embedding_dimensions() == 512

    @pytest.mark.parametrize("value", ["abc", "0", "-8"])
    def test_invalid_falls_back(self, monkeypatch: pytest.MonkeyPatch, value: str):
        monkeypatch.setenv("SMARTTASK_EMBEDDING_DIMENSIONS", value)
        assert get_embedding_dimensions() == 256


def test_similarity_threshold_fixed():
    assert SIMILARITY_THRESHOLD == 0.7
