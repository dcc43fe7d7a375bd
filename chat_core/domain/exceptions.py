"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在控制器层做统一捕获并转换成用户可读的错误状态。
"""

from typing import Optional


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "NETWORK_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 path、method 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class TransportError(BusinessError):
    """与后端交互失败：网络错误或非成功响应。

    cause 保存原始异常，便于诊断；同时通过 ``raise ... from`` 链接到 __cause__。
    """

    def __init__(
        self,
        code: str,
        message: str,
        http_status: int = 502,
        cause: Optional[BaseException] = None,
        **extra,
    ):
        super().__init__(code=code, message=message, http_status=http_status, **extra)
        self.cause = cause


class NetworkError(TransportError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(TransportError):
    """后端返回非 2xx 状态或无法解析的响应体时抛出。"""


class StoreError(BusinessError):
    """会话令牌持久化读写失败。"""
