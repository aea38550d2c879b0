"""诊断服务响应归一化。

服务端返回的形状不受约束：可能是字符串、带 message/error/sessionId
字段的结构体，或者任意其他结构。本模块把它们按固定优先级映射为
InvocationOutcome（第一条命中即返回）：

1. 空响应：不在这里处理，调用方应先走降级回复（is_absent）。
2. 字符串 → TextOutcome。
3. 带非空字符串 message 字段 → TextOutcome（message 优先于 error）。
4. 带 error 字段 → ErrorOutcome。
5. 其他 → UnrecognizedOutcome，由调用方用 serialize_payload 展示。
"""

import dataclasses
import json
from typing import Any, Mapping, Optional

from diagnostic_core.domain.exceptions import ValidationError
from diagnostic_core.domain.models import (
    ErrorOutcome,
    InvocationOutcome,
    NormalizedResponse,
    TextOutcome,
    UnrecognizedOutcome,
)

_MISSING = object()
_SESSION_FIELDS = ("sessionId", "session_id")


def is_absent(payload: Any) -> bool:
    """判断响应是否为"无结果"（None、空串、False、0）。

    空的 dict/list 不算无结果，它们会作为 UnrecognizedOutcome 展示。
    """

    if payload is None:
        return True
    if isinstance(payload, (str, bytes)):
        return not payload
    if isinstance(payload, (bool, int, float)):
        return not payload
    return False


def get_field(payload: Any, name: str) -> Any:
    """读取结构化响应中的字段，兼容 Mapping 与普通对象属性。"""

    if isinstance(payload, (str, bytes)):
        return _MISSING
    if isinstance(payload, Mapping):
        return payload.get(name, _MISSING)
    return getattr(payload, name, _MISSING)


def extract_session_id(payload: Any) -> Optional[str]:
    for name in _SESSION_FIELDS:
        value = get_field(payload, name)
        if value is not _MISSING and value:
            return str(value)
    return None


def classify(payload: Any) -> InvocationOutcome:
    if isinstance(payload, str):
        return TextOutcome(payload)
    message = get_field(payload, "message")
    if isinstance(message, str) and message:
        return TextOutcome(message)
    error = get_field(payload, "error")
    if error is not _MISSING and error:
        return ErrorOutcome(error if isinstance(error, str) else serialize_payload(error))
    return UnrecognizedOutcome(payload)


def normalize_response(payload: Any) -> NormalizedResponse:
    if is_absent(payload):
        raise ValidationError(code="EMPTY_PAYLOAD", message="empty payload must be routed to fallback")
    return NormalizedResponse(outcome=classify(payload), session_id=extract_session_id(payload))


def serialize_payload(raw: Any) -> str:
    """无法识别的响应的规范化结构序列化（紧凑 JSON）。

    JSON 无法表示的值（非字符串键、自引用结构等）退回到 repr，保证总能得到文本。
    """

    try:
        return json.dumps(raw, ensure_ascii=False, separators=(",", ":"), default=_json_default)
    except (TypeError, ValueError):
        return repr(raw)


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    if hasattr(value, "__dict__"):
        return vars(value)
    return str(value)
