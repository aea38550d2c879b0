"""会话状态机。

ConversationStore 独占 ConversationSession，是会话状态的唯一写入方：

- Idle (processing=False) 与 Processing (processing=True) 两个状态，
  任意时刻最多只有一个请求在途。
- submit() 追加用户消息并调度一次请求周期；周期结束时无论成功失败
  都回到 Idle。
- reset() 在任何状态下都可调用，并递增 generation；之前发出的请求
  即使稍后返回，也会因为 generation 不匹配而被丢弃。

所有逻辑都运行在同一个 asyncio 事件循环上，挂起点只有远端调用
与降级回复的人工延迟，因此不需要锁。
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from uuid import uuid4

from diagnostic_core.config.settings import settings
from diagnostic_core.domain.conversation import ConversationSession, Message, Role, SessionSnapshot
from diagnostic_core.domain.exceptions import fault_message
from diagnostic_core.domain.models import (
    ErrorOutcome,
    InvocationOutcome,
    Notifier,
    TextOutcome,
    UnrecognizedOutcome,
)
from diagnostic_core.infrastructure.logging.logger import logger
from diagnostic_core.pipeline.formatter import format_reply
from diagnostic_core.pipeline.invoker import RemoteInvoker
from diagnostic_core.pipeline.normalizer import serialize_payload

Listener = Callable[[SessionSnapshot], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConversationStore:
    def __init__(
        self,
        invoker: RemoteInvoker,
        notifier: Optional[Notifier] = None,
        formatter: Callable[[Any], str] = format_reply,
        default_error_message: Optional[str] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._invoker = invoker
        self._notifier = notifier
        self._format = formatter
        self._default_error = default_error_message or settings.default_error_message
        self._clock = clock
        self._session = ConversationSession()
        self._generation = 0
        self._counter = 0
        self._pending: Optional[asyncio.Task] = None
        self._listeners: List[Listener] = []

    # ---- 只读投影 ----

    @property
    def messages(self) -> Tuple[Message, ...]:
        return tuple(self._session.messages)

    @property
    def session_id(self) -> Optional[str]:
        return self._session.session_id

    @property
    def processing(self) -> bool:
        return self._session.processing

    @property
    def last_error(self) -> Optional[str]:
        return self._session.last_error

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot.of(self._session)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """注册状态变更监听器，返回取消订阅函数。"""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ---- 状态迁移 ----

    def submit(self, text: Optional[str]) -> Optional[asyncio.Task]:
        """提交一条用户消息。

        空白输入或 Processing 状态下调用都是 no-op，返回 None；
        否则返回本次请求周期的 Task。必须在运行中的事件循环里调用。
        """

        if self._session.processing:
            logger.info("Submission ignored while processing", extra={"extra": {"reason": "busy"}})
            return None
        trimmed = (text or "").strip()
        if not trimmed:
            return None

        loop = asyncio.get_running_loop()
        self._session.messages.append(self._new_message("user", trimmed))
        self._session.last_error = None
        self._session.processing = True
        generation = self._generation
        session_id = self._session.session_id
        self._publish()

        task = loop.create_task(self._run_cycle(trimmed, session_id, generation))
        self._pending = task
        return task

    def reset(self) -> None:
        """清空消息、会话标识与错误，回到 Idle；在途请求的结果将被丢弃。"""

        self._generation += 1
        self._session = ConversationSession()
        self._counter = 0
        self._pending = None
        logger.info("Conversation reset", extra={"extra": {"generation": self._generation}})
        self._publish()

    def dismiss_error(self) -> None:
        if self._session.last_error is None:
            return
        self._session.last_error = None
        self._publish()

    async def wait_idle(self) -> None:
        """等待当前在途请求周期结束（若有）。"""

        pending = self._pending
        if pending is not None and not pending.done():
            await pending

    # ---- 请求周期 ----

    async def _run_cycle(self, text: str, session_id: Optional[str], generation: int) -> None:
        log_ctx: Dict[str, Any] = {
            "trace_id": f"tr-{uuid4().hex}",
            "session_id": session_id,
            "generation": generation,
        }
        self._log(logging.INFO, "Request cycle started", log_ctx, chars=len(text))
        try:
            response = await self._invoker.invoke(text, session_id)
        except Exception as exc:
            if self._is_stale(generation):
                self._log(logging.INFO, "Discarded stale failure", log_ctx)
                return
            extra = getattr(exc, "extra", None)
            if isinstance(extra, Mapping):
                self._capture_session_id(extra.get("session_id"))
            message = fault_message(exc, self._default_error)
            self._log(logging.ERROR, "Request cycle failed", log_ctx, error=message)
            self._fail(message)
        else:
            if self._is_stale(generation):
                self._log(logging.INFO, "Discarded stale response", log_ctx)
                return
            self._capture_session_id(response.session_id)
            try:
                self._apply(response.outcome)
            except Exception as exc:
                message = fault_message(exc, self._default_error)
                self._log(logging.ERROR, "Failed to apply response", log_ctx, error=message)
                self._fail(message)
                return
            self._log(
                logging.INFO,
                "Request cycle completed",
                log_ctx,
                outcome=type(response.outcome).__name__,
            )
        finally:
            if not self._is_stale(generation):
                self._session.processing = False
                self._publish()

    def _apply(self, outcome: InvocationOutcome) -> None:
        if isinstance(outcome, TextOutcome):
            self._append_assistant(outcome.text)
        elif isinstance(outcome, ErrorOutcome):
            self._fail(outcome.error)
        elif isinstance(outcome, UnrecognizedOutcome):
            self._append_assistant(serialize_payload(outcome.raw))
        else:
            raise TypeError(f"Unknown outcome: {outcome!r}")

    def _append_assistant(self, text: str) -> None:
        self._session.messages.append(self._new_message("assistant", text))

    def _fail(self, message: str) -> None:
        self._session.last_error = message
        if self._notifier is None:
            return
        try:
            self._notifier.notify("error", "Error", message)
        except Exception as e:
            logger.warning("Notifier failed", extra={"extra": {"error": str(e)}})

    def _capture_session_id(self, session_id: Optional[str]) -> None:
        # first-write-wins：同一会话内 sessionId 不会变化
        if session_id and not self._session.session_id:
            self._session.session_id = session_id

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation

    def _new_message(self, role: Role, text: str, is_error: bool = False) -> Message:
        self._counter += 1
        now = self._clock()
        return Message(
            id=f"msg_{self._counter}_{int(now.timestamp() * 1000)}",
            role=role,
            raw_text=text,
            formatted_text=self._format(text) if role == "assistant" else None,
            is_error=is_error,
            created_at=now,
        )

    def _publish(self) -> None:
        if not self._listeners:
            return
        snapshot = SessionSnapshot.of(self._session)
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Session listener failed")

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
