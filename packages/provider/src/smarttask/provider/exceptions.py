"""Provider 异常体系"""


class ProviderError(Exception):
    """Provider 包基础异常"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 用户重新触发操作是否可能成功
        """
        super().__init__(message)
        self.recoverable = recoverable


class RemoteCallError(ProviderError):
    """外部函数调用失败（非 2xx 响应、传输层失败或响应体无法解析）

    ``status_code`` 为 None 表示请求未得到可用的 HTTP 响应。
    """

    def __init__(
        self,
        function_name: str,
        status_code: int | None = None,
        original_error: Exception | None = None,
        detail: str = "",
    ) -> None:
        """
        Args:
            function_name: 被调用的函数名（如 generate-subtasks）
            status_code: HTTP 状态码
            original_error: 原始异常
            detail: 附加说明（例如响应体格式错误的原因）
        """
        if not detail:
            if status_code is not None:
                detail = f"HTTP {status_code}"
            elif original_error is not None:
                detail = type(original_error).__name__
            else:
                detail = "unknown error"
        super().__init__(f"Remote function {function_name} failed: {detail}")
        self.function_name = function_name
        self.status_code = status_code
        self.original_error = original_error
