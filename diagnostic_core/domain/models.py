"""请求结果与通知的统一数据模型。

本模块定义了诊断助手内部在各组件之间共享的标准数据结构：

- TextOutcome / ErrorOutcome / UnrecognizedOutcome: 归一化后的调用结果。
- NormalizedResponse: 调用结果 + 响应中携带的 sessionId（带外信息）。
- Notifier: 面向用户的 toast 通知能力（fire-and-forget）。

远端诊断服务的响应形状不受约束，ResponseNormalizer 负责把它
转换成这里的有限分类；这些对象只在一次请求周期内存在，不会被持久化。
"""

from dataclasses import dataclass
from typing import Any, Literal, Optional, Protocol, Union


@dataclass(frozen=True)
class TextOutcome:
    """服务返回了可直接展示的文本。"""

    text: str


@dataclass(frozen=True)
class ErrorOutcome:
    """服务正常响应，但在 error 字段中标记了逻辑错误。"""

    error: str


@dataclass(frozen=True)
class UnrecognizedOutcome:
    """无法识别的响应形状，原样保留，由调用方做结构化序列化。"""

    raw: Any


InvocationOutcome = Union[TextOutcome, ErrorOutcome, UnrecognizedOutcome]


@dataclass(frozen=True)
class NormalizedResponse:
    """归一化结果。

    - outcome: 三选一的结果分类。
    - session_id: 响应中携带的会话标识（若有），由 ConversationStore
      按 first-write-wins 规则决定是否采用。
    """

    outcome: InvocationOutcome
    session_id: Optional[str] = None


# toast 通知类型
NotificationKind = Literal["info", "success", "error"]


class Notifier(Protocol):
    """用户可见通知的接收方。"""

    def notify(self, kind: NotificationKind, title: str, message: str) -> None:
        ...
