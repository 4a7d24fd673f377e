"""子任务建议生成器

- EchoSuggestionAdapter: 离线模式，按固定模板拆解任务标题
- LiteLLMSuggestionGenerator: 经 LiteLLM Proxy 调用聊天模型，要求返回 JSON

两者都实现 ``suggest(title) -> list[str]``，返回顺序即生成顺序，不再排序。
"""

import asyncio
import json
import time

import structlog
from litellm import acompletion

from .exceptions import RemoteCallError

log = structlog.get_logger()

_ECHO_TEMPLATES = (
    "Plan: {title}",
    "Do: {title}",
    "Review: {title}",
)

SUGGESTION_SYSTEM_PROMPT = """You break a personal to-do item into concrete subtasks.

RULES:
1. Each subtask starts with an action verb.
2. Each subtask is completable in under 30 minutes.
3. Return between 3 and 7 subtasks, in the order they should be done.
4. No nested subtasks.

Output JSON only:
{"subtasks": ["...", "..."]}
"""


class EchoSuggestionAdapter:
    """离线建议生成器 -- 不依赖任何外部服务"""

    def __init__(self, templates: tuple[str, ...] = _ECHO_TEMPLATES) -> None:
        self._templates = templates

    async def suggest(self, title: str) -> list[str]:
        # 模拟少量延迟
        await asyncio.sleep(0.01)
        clean = title.strip()
        return [template.format(title=clean) for template in self._templates]


def parse_suggestion_content(content: str) -> list[str]:
    """解析模型输出为候选列表

    兼容 ```json 代码块包裹；接受 ``{"subtasks": [...]}`` 或纯数组。

    Raises:
        ValueError: 内容不是合法 JSON 或结构不符
    """
    text = content.strip()
    if text.startswith("```"):
        text = text.strip("`")
        if text.lower().startswith("json"):
            text = text[4:]
    data = json.loads(text)
    if isinstance(data, dict):
        data = data.get("subtasks")
    if not isinstance(data, list):
        raise ValueError("expected a list of subtasks")
    return [str(item).strip() for item in data if str(item).strip()]


class LiteLLMSuggestionGenerator:
    """LiteLLM Proxy 子任务建议生成器"""

    def __init__(
        self,
        proxy_base_url: str = "http://localhost:4000",
        proxy_api_key: str = "",
        model_alias: str = "main",
        timeout_s: float | None = None,
    ) -> None:
        self._proxy_base_url = proxy_base_url.rstrip("/")
        self._proxy_api_key = proxy_api_key
        self._model_alias = model_alias
        self._timeout_s = timeout_s

    async def suggest(self, title: str) -> list[str]:
        """生成候选子任务

        Raises:
            RemoteCallError: 模型调用失败或输出无法解析
        """
        start_time = time.monotonic()
        call_kwargs = {
            "model": self._model_alias,
            "messages": [
                {"role": "system", "content": SUGGESTION_SYSTEM_PROMPT},
                {"role": "user", "content": title},
            ],
            "api_base": self._proxy_base_url,
            "api_key": self._proxy_api_key or "no-key",
            "temperature": 0.3,
        }
        if self._timeout_s is not None:
            call_kwargs["timeout"] = self._timeout_s

        try:
            response = await acompletion(**call_kwargs)
        except Exception as e:
            log.error(
                "litellm_suggestion_failed",
                model_alias=self._model_alias,
                error_type=type(e).__name__,
            )
            raise RemoteCallError("litellm-suggestion", original_error=e) from e

        content = response.choices[0].message.content or ""
        try:
            suggestions = parse_suggestion_content(content)
        except ValueError as e:
            log.warning(
                "litellm_suggestion_unparseable",
                model_alias=self._model_alias,
                content_length=len(content),
            )
            raise RemoteCallError(
                "litellm-suggestion",
                original_error=e,
                detail="model output is not a subtask list",
            ) from e

        log.info(
            "litellm_suggestion_completed",
            model_alias=self._model_alias,
            count=len(suggestions),
            duration_ms=int((time.monotonic() - start_time) * 1000),
        )
        return suggestions
