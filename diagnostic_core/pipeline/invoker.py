"""远端调用封装。

RemoteInvoker 只返回结果或抛出异常，从不修改会话本身；
所有会话状态变更都集中在 ConversationStore。
"""

import inspect
import logging
from typing import Any, Dict, Optional

from diagnostic_core.domain.exceptions import RemoteFault
from diagnostic_core.domain.models import NormalizedResponse, TextOutcome
from diagnostic_core.infrastructure.logging.logger import logger
from diagnostic_core.pipeline.fallback import FallbackResponder
from diagnostic_core.pipeline.normalizer import (
    extract_session_id,
    get_field,
    is_absent,
    normalize_response,
)
from diagnostic_core.providers.base import RemoteCapability


class RemoteInvoker:
    def __init__(self, remote: Optional[RemoteCapability], fallback: Optional[FallbackResponder] = None):
        self._remote = remote
        self._fallback = fallback or FallbackResponder()

    @property
    def degraded(self) -> bool:
        return self._remote is None

    async def invoke(self, user_text: str, session_id: Optional[str]) -> NormalizedResponse:
        """调用远端能力并返回归一化结果。

        - 未配置远端能力或返回空值：走本地降级回复（非错误）。
        - 远端抛出异常：记录日志后原样抛出，不做重试。
        - 显式 success=false 且带 error：视为服务端拒绝，抛出 RemoteFault。
        """

        log_ctx: Dict[str, Any] = {"session_id": session_id}
        if self._remote is None:
            self._log(logging.INFO, "Remote capability absent, using fallback", log_ctx)
            return await self._degraded(user_text)

        log_ctx["remote"] = getattr(self._remote, "name", type(self._remote).__name__)
        try:
            result = self._remote.process_user_message(user_text, session_id)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            self._log(logging.ERROR, "Remote call failed", log_ctx, error=str(e), error_type=type(e).__name__)
            raise

        if is_absent(result):
            self._log(logging.INFO, "Remote returned nothing, using fallback", log_ctx)
            return await self._degraded(user_text)

        if get_field(result, "success") is False and get_field(result, "error"):
            error = str(get_field(result, "error"))
            self._log(logging.WARNING, "Remote rejected request", log_ctx, error=error)
            raise RemoteFault(
                code="BACKEND_REJECTED",
                message=error,
                session_id=extract_session_id(result),
            )

        normalized = normalize_response(result)
        self._log(
            logging.INFO,
            "Remote call completed",
            log_ctx,
            outcome=type(normalized.outcome).__name__,
            returned_session_id=normalized.session_id,
        )
        return normalized

    async def _degraded(self, user_text: str) -> NormalizedResponse:
        reply = await self._fallback.respond(user_text)
        return NormalizedResponse(outcome=TextOutcome(reply))

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
