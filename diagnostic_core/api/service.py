"""对外 API 服务模块。

提供简化的函数接口供上层应用调用。
"""

from typing import Optional, Dict, Any

from diagnostic_core.config.settings import settings as default_settings
from diagnostic_core.domain.models import Notifier
from diagnostic_core.gui.presenter import ChatPresenter, format_timestamp
from diagnostic_core.infrastructure.logging.logger import logger
from diagnostic_core.infrastructure.notifications import LoggingNotifier
from diagnostic_core.pipeline.fallback import FallbackResponder
from diagnostic_core.pipeline.invoker import RemoteInvoker
from diagnostic_core.pipeline.store import ConversationStore
from diagnostic_core.providers import create_remote
from diagnostic_core.providers.base import RemoteCapability

_UNSET: Any = object()

_store: Optional[ConversationStore] = None
_presenter: Optional[ChatPresenter] = None


def build_store(
    settings=None,
    remote: Optional[RemoteCapability] = _UNSET,
    notifier: Optional[Notifier] = None,
) -> ConversationStore:
    """按配置组装一条完整的会话流水线。

    Args:
        settings: 配置对象（默认取全局 settings）
        remote: 远端能力；不传时由配置决定，显式传 None 表示降级模式
        notifier: 通知接收方（默认写日志）

    Returns:
        新的 ConversationStore 实例
    """
    cfg = settings or default_settings
    if remote is _UNSET:
        remote = create_remote(cfg)
    invoker = RemoteInvoker(remote, FallbackResponder(delay=cfg.fallback_delay))
    logger.info(
        "Built conversation store",
        extra={"extra": {"degraded": invoker.degraded}},
    )
    return ConversationStore(
        invoker,
        notifier=notifier or LoggingNotifier(),
        default_error_message=cfg.default_error_message,
    )


def get_default_store() -> ConversationStore:
    """获取默认的 ConversationStore 实例（单例）。"""
    global _store
    if _store is None:
        _store = build_store()
    return _store


def get_default_presenter() -> ChatPresenter:
    """获取绑定默认 store 的 ChatPresenter 实例（单例）。"""
    global _presenter
    if _presenter is None:
        _presenter = ChatPresenter(get_default_store())
    return _presenter


async def run_diagnostic_chat(user_input: str, store: Optional[ConversationStore] = None) -> Dict[str, Any]:
    """提交一条消息并等待本轮请求结束。

    Args:
        user_input: 用户输入内容
        store: 目标会话（可选，默认使用单例）

    Returns:
        包含 session_id、accepted、error 与全部消息的字典
    """
    store = store or get_default_store()
    task = store.submit(user_input)
    if task is not None:
        await task
    return {
        "session_id": store.session_id,
        "accepted": task is not None,
        "error": store.last_error,
        "messages": [
            {
                "id": m.id,
                "role": m.role,
                "content": m.raw_text,
                "html": m.formatted_text,
                "timestamp": format_timestamp(m.created_at),
                "created_at": m.created_at.isoformat(),
            }
            for m in store.messages
        ],
    }
