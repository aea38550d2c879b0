import json
import logging
from pathlib import Path
from datetime import datetime, timezone
from diagnostic_core.config.settings import settings

# 可能包含用户输入或服务端原文的字段，脱敏时与 msg 一起截断
CONTENT_FIELDS = ("error", "title")
# 会话关联字段，始终放在 JSON 行的固定位置，便于按请求周期检索
CONTEXT_FIELDS = ("trace_id", "session_id", "generation")


class JsonFormatter(logging.Formatter):
    def __init__(self, redact: bool = False):
        super().__init__()
        self._redact = redact

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if self._redact:
            msg = (msg or "")[:64]
        payload = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "msg": msg,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            for key in CONTEXT_FIELDS:
                if key in extra:
                    payload[key] = extra[key]
            for key, value in extra.items():
                if self._redact and key in CONTENT_FIELDS and isinstance(value, str):
                    value = value[:64]
                payload[key] = value
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger() -> logging.Logger:
    logger = logging.getLogger("diagnostic_core")
    logger.setLevel(logging.INFO)
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(log_dir / "assistant.log", encoding="utf-8")
    fh.setLevel(logging.INFO)
    fh.setFormatter(JsonFormatter(redact=settings.log_redact_content))
    logger.addHandler(fh)
    return logger


logger = setup_logger()
