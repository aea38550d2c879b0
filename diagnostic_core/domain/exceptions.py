"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在 ConversationStore 或 UI 层做统一捕获与用户提示。
"""

from typing import Any, Mapping, Optional


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "NETWORK_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 body、session_id 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(BusinessError):
    """诊断服务返回非 2xx/429 错误时抛出。"""


class RateLimitError(BusinessError):
    """诊断服务限流错误，本模块不做自动重试。"""


class ValidationError(BusinessError):
    """参数或配置校验失败。"""


class RemoteFault(BusinessError):
    """诊断服务正常响应，但显式标记 success=false 拒绝了本次请求。"""


def fault_message(exc: Any, default: str) -> str:
    """从任意异常中提取面向用户的错误文本。

    优先级：结构化 body.message > 通用 message > 字符串本身 > default。
    对无法识别的异常对象也保证返回非空字符串。
    """

    body = _fault_body(exc)
    if isinstance(body, Mapping) and body.get("message"):
        return str(body["message"])
    if isinstance(exc, str):
        return exc or default
    message = getattr(exc, "message", None)
    if message:
        return str(message)
    if isinstance(exc, BaseException) and str(exc):
        return str(exc)
    return default


def _fault_body(exc: Any) -> Optional[Any]:
    body = getattr(exc, "body", None)
    if body is not None:
        return body
    extra = getattr(exc, "extra", None)
    if isinstance(extra, Mapping):
        return extra.get("body")
    return None
