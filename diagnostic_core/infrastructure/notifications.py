"""通知接收方的默认实现：写入结构化日志。"""

import logging

from diagnostic_core.domain.models import NotificationKind
from diagnostic_core.infrastructure.logging.logger import logger

_LEVELS = {
    "info": logging.INFO,
    "success": logging.INFO,
    "error": logging.ERROR,
}


class LoggingNotifier:
    def notify(self, kind: NotificationKind, title: str, message: str) -> None:
        logger.log(
            _LEVELS.get(kind, logging.INFO),
            f"{title}: {message}",
            extra={"extra": {"notification": kind, "title": title}},
        )
