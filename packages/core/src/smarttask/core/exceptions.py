"""SmartTask 异常体系

每个异常携带 HTTP 映射所需的 ``code`` 与 ``status_code``，
``message`` 面向用户展示，不包含底层异常细节。
"""


class SmartTaskError(Exception):
    """基础异常"""

    code: str = "INTERNAL_ERROR"
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(SmartTaskError):
    """输入校验失败（例如标题为空或仅含空白）"""

    code = "VALIDATION_ERROR"
    status_code = 422


class NotAuthenticatedError(SmartTaskError):
    """当前没有已认证的用户身份"""

    code = "NOT_AUTHENTICATED"
    status_code = 401

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class NotFoundError(SmartTaskError):
    """目标记录不存在，或不属于当前用户"""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} with id {entity_id} does not exist")
        self.entity = entity
        self.entity_id = entity_id


class StoreError(SmartTaskError):
    """存储层操作失败

    原始 aiosqlite 异常通过 ``__cause__`` 保留，只写入服务端日志。
    """

    code = "STORE_ERROR"
    status_code = 500

    def __init__(self, operation: str) -> None:
        super().__init__(f"Storage operation failed: {operation}")
        self.operation = operation
