"""packages/provider 测试配置"""

import json

import httpx
import pytest


class RecordingHandler:
    """httpx.MockTransport handler：记录请求并返回预设响应"""

    def __init__(self, status_code: int = 200, payload: object | None = None) -> None:
        self.status_code = status_code
        self.payload = payload if payload is not None else {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def last_body(self) -> dict:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def recording_handler():
    """构造 RecordingHandler 的工厂"""
    return RecordingHandler
