"""Embedding 生成器与相似度排序测试"""

import math
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from smarttask.provider import (
    HashingEmbedder,
    LiteLLMEmbedder,
    RemoteCallError,
    cosine_similarity,
    rank_by_similarity,
)
from smarttask.provider.embedding import tokenize


class TestTokenize:
    def test_lowercase_and_punctuation(self):
        assert tokenize("Buy Groceries, today!") == ["buy", "groceries", "today"]

    def test_empty(self):
        assert tokenize("   ") == []


class TestHashingEmbedder:
    async def test_unit_length(self):
        embedder = HashingEmbedder(dimensions=64)
        result = await embedder.embed("Buy groceries for the week")
        assert len(result.vector) == 64
        assert math.isclose(math.sqrt(sum(v * v for v in result.vector)), 1.0)
        assert result.model == "hashing-bow"

    def test_deterministic(self):
        embedder = HashingEmbedder()
        assert embedder.embed_sync("Buy groceries") == embedder.embed_sync("buy GROCERIES")

    def test_empty_text_is_zero_vector(self):
        embedder = HashingEmbedder(dimensions=8)
        assert embedder.embed_sync("") == [0.0] * 8

    def test_identical_titles_fully_similar(self):
        embedder = HashingEmbedder()
        a = embedder.embed_sync("Buy groceries")
        b = embedder.embed_sync("buy groceries")
        assert math.isclose(cosine_similarity(a, b), 1.0)

    def test_invalid_dimensions(self):
        with pytest.raises(ValueError):
            HashingEmbedder(dimensions=0)


class TestCosineSimilarity:
    def test_orthogonal(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0

    def test_negative_clamped_to_zero(self):
        assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == 0.0

    def test_length_mismatch(self):
        assert cosine_similarity([1.0], [1.0, 0.0]) == 0.0

    def test_zero_vector(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0


class TestRankBySimilarity:
    def test_strictly_above_threshold_descending(self):
        query = [1.0, 0.0]
        candidates = [
            ("low", [0.0, 1.0]),
            ("exact", [1.0, 0.0]),
            ("close", [0.9, 0.1]),
            ("below", [0.6, 0.8]),
        ]
        ranked = rank_by_similarity(query, candidates, threshold=0.7)

        assert [item for item, _ in ranked] == ["exact", "close"]
        assert all(score > 0.7 for _, score in ranked)

    def test_ties_keep_input_order(self):
        ranked = rank_by_similarity(
            [1.0, 0.0],
            [("first", [2.0, 0.0]), ("second", [1.0, 0.0])],
            threshold=0.7,
        )
        assert [item for item, _ in ranked] == ["first", "second"]

    def test_no_candidates(self):
        assert rank_by_similarity([1.0], [], threshold=0.7) == []


class TestLiteLLMEmbedder:
    async def test_embed(self):
        response = MagicMock()
        response.data = [{"embedding": [0.1, 0.2, 0.3]}]
        response.model = "text-embedding-3-small"

        with patch(
            "smarttask.provider.embedding.aembedding",
            new_callable=AsyncMock,
            return_value=response,
        ) as mock_embed:
            embedder = LiteLLMEmbedder(proxy_api_key="sk-test", timeout_s=10)
            result = await embedder.embed("Buy groceries")

        assert result.vector == [0.1, 0.2, 0.3]
        assert result.model == "text-embedding-3-small"
        kwargs = mock_embed.call_args.kwargs
        assert kwargs["model"] == "embedding"
        assert kwargs["input"] == ["Buy groceries"]
        assert kwargs["timeout"] == 10

    async def test_failure_raises_remote_call_error(self):
        with patch(
            "smarttask.provider.embedding.aembedding",
            new_callable=AsyncMock,
            side_effect=ConnectionError("proxy down"),
        ):
            embedder = LiteLLMEmbedder()
            with pytest.raises(RemoteCallError) as exc_info:
                await embedder.embed("Buy groceries")

        assert exc_info.value.function_name == "litellm-embedding"
