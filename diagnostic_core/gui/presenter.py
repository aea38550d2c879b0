"""展示层适配器。

把 ConversationStore 的状态映射为可渲染的 ViewState，并把用户意图
（提交、清空、关闭）转交给 store。本模块不依赖任何 UI 框架，
tkinter 控制台（console.py）以及测试都只通过这里与流水线交互。
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from diagnostic_core.domain.conversation import Message, SessionSnapshot
from diagnostic_core.pipeline.store import ConversationStore


@dataclass(frozen=True)
class MessageView:
    id: str
    role: str
    text: Optional[str]
    html: Optional[str]
    is_ai: bool
    is_error: bool
    timestamp: str
    css_class: str


@dataclass(frozen=True)
class ViewState:
    messages: Tuple[MessageView, ...]
    is_sending: bool
    error_text: str
    input_echo: str
    show_welcome: bool
    is_send_disabled: bool
    character_count: int


ViewListener = Callable[[ViewState], None]


def format_timestamp(dt: datetime) -> str:
    """本地时间的 h:mm AM/PM 形式。"""

    local = dt.astimezone() if dt.tzinfo else dt
    hours = local.hour
    suffix = "PM" if hours >= 12 else "AM"
    display_hours = hours % 12 or 12
    return f"{display_hours}:{local.minute:02d} {suffix}"


def to_view(message: Message) -> MessageView:
    return MessageView(
        id=message.id,
        role=message.role,
        text=None if message.is_ai else message.raw_text,
        html=message.formatted_text if message.is_ai else None,
        is_ai=message.is_ai,
        is_error=message.is_error,
        timestamp=format_timestamp(message.created_at),
        css_class=f"message-wrapper {'ai-message' if message.is_ai else 'user-message'}",
    )


class ChatPresenter:
    """ConversationStore 的只读投影 + 意图转发。"""

    def __init__(self, store: ConversationStore, on_close: Optional[Callable[[], None]] = None):
        self._store = store
        self._on_close = on_close
        self._input = ""
        self._listeners: List[ViewListener] = []
        self._store.subscribe(self._on_store_change)

    @property
    def store(self) -> ConversationStore:
        return self._store

    @property
    def input_value(self) -> str:
        return self._input

    def view(self) -> ViewState:
        return self._build_view(self._store.snapshot())

    def subscribe(self, listener: ViewListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ---- 用户意图 ----

    def set_input(self, value: Optional[str]) -> None:
        """输入框内容变化；同时清除当前展示的错误。"""

        self._input = value or ""
        if self._store.last_error is not None:
            # store 发布变更时会顺带刷新视图
            self._store.dismiss_error()
        else:
            self._emit()

    def submit_text(self, text: Optional[str] = None) -> Optional[asyncio.Task]:
        """提交指定文本（默认取当前输入框内容）。

        只有提交输入框内容且被接受时才清空输入框；显式传入 text 不影响输入框。
        """

        value = self._input if text is None else text
        if self._store.processing or not (value or "").strip():
            return None
        task = self._store.submit(value)
        if task is not None and text is None:
            self._input = ""
            self._emit()
        return task

    def send_message(self, text: Optional[str]) -> Optional[asyncio.Task]:
        """供外部程序调用的发送入口，空白文本直接忽略。"""

        if not text or not text.strip():
            return None
        self._input = text
        return self.submit_text()

    def handle_key(self, key: str, shift: bool = False, ctrl: bool = False, meta: bool = False) -> bool:
        """Enter 发送（Shift+Enter 换行），Ctrl/Cmd+Enter 也发送。

        返回 True 表示按键已被消费。
        """

        if key != "Enter":
            return False
        if not shift or ctrl or meta:
            self.submit_text()
            return True
        return False

    def reset(self) -> None:
        self._input = ""
        self._store.reset()

    def close(self) -> None:
        if self._on_close is not None:
            self._on_close()

    # ---- 内部 ----

    def _build_view(self, snapshot: SessionSnapshot) -> ViewState:
        return ViewState(
            messages=tuple(to_view(m) for m in snapshot.messages),
            is_sending=snapshot.processing,
            error_text=snapshot.last_error or "",
            input_echo=self._input,
            show_welcome=not snapshot.messages and not snapshot.processing,
            is_send_disabled=snapshot.processing or not self._input.strip(),
            character_count=len(self._input),
        )

    def _on_store_change(self, snapshot: SessionSnapshot) -> None:
        self._emit(snapshot)

    def _emit(self, snapshot: Optional[SessionSnapshot] = None) -> None:
        if not self._listeners:
            return
        state = self._build_view(snapshot or self._store.snapshot())
        for listener in list(self._listeners):
            listener(state)
