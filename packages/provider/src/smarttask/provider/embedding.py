"""Embedding 生成器

- HashingEmbedder: 离线模式，词袋特征哈希到定长向量并做 L2 归一化
- LiteLLMEmbedder: 经 LiteLLM Proxy 调用 embedding 模型

两者都实现 ``embed(text) -> EmbeddingResult``。
"""

import hashlib
import math
import re
import time

import structlog
from litellm import aembedding

from .exceptions import RemoteCallError
from .models import EmbeddingResult

log = structlog.get_logger()

_TOKEN_PATTERN = re.compile(r"[\w']+", re.UNICODE)


def tokenize(text: str) -> list[str]:
    """小写化并切分为词（去掉标点）"""
    return [token.strip("'") for token in _TOKEN_PATTERN.findall(text.lower()) if token.strip("'")]


class HashingEmbedder:
    """特征哈希 embedder

    每个词经 blake2b 哈希映射到一个维度并累加计数，结果向量非负且单位长度，
    因此两个向量的点积即余弦相似度，取值范围为 [0, 1]。
    """

    model_name = "hashing-bow"

    def __init__(self, dimensions: int = 256) -> None:
        if dimensions <= 0:
            raise ValueError("dimensions must be positive")
        self._dimensions = dimensions

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def _bucket(self, token: str) -> int:
        digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
        return int.from_bytes(digest, "big") % self._dimensions

    def embed_sync(self, text: str) -> list[float]:
        """同步计算向量（空文本返回零向量）"""
        vector = [0.0] * self._dimensions
        for token in tokenize(text):
            vector[self._bucket(token)] += 1.0
        norm = math.sqrt(sum(v * v for v in vector))
        if norm == 0:
            return vector
        return [v / norm for v in vector]

    async def embed(self, text: str) -> EmbeddingResult:
        return EmbeddingResult(vector=self.embed_sync(text), model=self.model_name)


class LiteLLMEmbedder:
    """LiteLLM Proxy embedding 封装"""

    def __init__(
        self,
        proxy_base_url: str = "http://localhost:4000",
        proxy_api_key: str = "",
        model_alias: str = "embedding",
        timeout_s: float | None = None,
    ) -> None:
        self._proxy_base_url = proxy_base_url.rstrip("/")
        self._proxy_api_key = proxy_api_key
        self._model_alias = model_alias
        self._timeout_s = timeout_s

    async def embed(self, text: str) -> EmbeddingResult:
        """调用 embedding 模型

        Raises:
            RemoteCallError: Proxy 不可达或模型调用失败
        """
        start_time = time.monotonic()
        call_kwargs = {
            "model": self._model_alias,
            "input": [text],
            "api_base": self._proxy_base_url,
            "api_key": self._proxy_api_key or "no-key",
        }
        if self._timeout_s is not None:
            call_kwargs["timeout"] = self._timeout_s

        try:
            response = await aembedding(**call_kwargs)
            vector = list(response.data[0]["embedding"])
        except Exception as e:
            log.error(
                "litellm_embedding_failed",
                model_alias=self._model_alias,
                error_type=type(e).__name__,
            )
            raise RemoteCallError("litellm-embedding", original_error=e) from e

        duration_ms = int((time.monotonic() - start_time) * 1000)
        log.debug(
            "litellm_embedding_completed",
            model_alias=self._model_alias,
            dimensions=len(vector),
            duration_ms=duration_ms,
        )
        return EmbeddingResult(
            vector=vector,
            model=getattr(response, "model", None) or self._model_alias,
            duration_ms=duration_ms,
        )
