"""SmartTask Provider -- 外部函数调用抽象层

packages/provider 的公开接口导出：托管函数客户端、embedding 与子任务建议生成器、
相似度排序工具、配置与异常。
"""

from .client import EdgeFunctionClient

# 配置
from .config import FunctionsConfig, load_functions_config
from .embedding import HashingEmbedder, LiteLLMEmbedder

# 异常
from .exceptions import ProviderError, RemoteCallError

# 数据模型
from .models import EmbeddingResult, SmartSearchResponse, SubtaskSuggestionResponse
from .ranking import cosine_similarity, rank_by_similarity
from .suggestion import EchoSuggestionAdapter, LiteLLMSuggestionGenerator

__all__ = [
    "EmbeddingResult",
    "SmartSearchResponse",
    "SubtaskSuggestionResponse",
    "EdgeFunctionClient",
    "HashingEmbedder",
    "LiteLLMEmbedder",
    "EchoSuggestionAdapter",
    "LiteLLMSuggestionGenerator",
    "cosine_similarity",
    "rank_by_similarity",
    "FunctionsConfig",
    "load_functions_config",
    "ProviderError",
    "RemoteCallError",
]
