"""相似度排序

为本地语义搜索提供余弦相似度计算和阈值过滤排序。
"""

import math
from collections.abc import Iterable, Sequence
from typing import TypeVar

T = TypeVar("T")


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """计算余弦相似度，结果截断到 [0, 1]

    维度不一致或任一向量为零向量时返回 0.0。
    """
    if len(a) != len(b) or not a:
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return max(0.0, min(1.0, dot / (norm_a * norm_b)))


def rank_by_similarity(
    query_vector: Sequence[float],
    candidates: Iterable[tuple[T, Sequence[float]]],
    threshold: float,
) -> list[tuple[T, float]]:
    """按相似度降序排序并过滤

    只保留相似度严格大于 threshold 的候选；相似度相同时保持输入顺序。

    Args:
        query_vector: 查询向量
        candidates: (item, vector) 序列
        threshold: 相似度阈值

    Returns:
        [(item, similarity), ...] 降序
    """
    scored = [
        (item, cosine_similarity(query_vector, vector)) for item, vector in candidates
    ]
    kept = [(item, score) for item, score in scored if score > threshold]
    # sorted 是稳定排序，相同得分保持候选原始顺序
    return sorted(kept, key=lambda pair: pair[1], reverse=True)
