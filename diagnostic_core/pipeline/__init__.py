"""会话编排流水线。

- formatter: 助手回复 → 安全 HTML 片段。
- normalizer: 任意响应形状 → InvocationOutcome。
- fallback: 降级模式下的关键词脚本回复。
- invoker: 远端调用封装（含降级与拒绝识别）。
- store: 会话状态机（唯一写入方）。
"""

from diagnostic_core.pipeline.fallback import FallbackResponder
from diagnostic_core.pipeline.formatter import format_reply
from diagnostic_core.pipeline.invoker import RemoteInvoker
from diagnostic_core.pipeline.normalizer import normalize_response, serialize_payload
from diagnostic_core.pipeline.store import ConversationStore

__all__ = [
    "ConversationStore",
    "FallbackResponder",
    "RemoteInvoker",
    "format_reply",
    "normalize_response",
    "serialize_payload",
]
