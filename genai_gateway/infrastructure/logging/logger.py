import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

logger = logging.getLogger("genai_gateway")

_HANDLER_MARK = "_genai_gateway_handler"


class JsonFormatter(logging.Formatter):
    def __init__(self, redact_content: bool = False):
        super().__init__()
        self._redact_content = redact_content

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if self._redact_content:
            msg = (msg or "")[:64]
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "msg": msg,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger(settings: Optional[object] = None) -> logging.Logger:
    """按配置为 genai_gateway logger 挂载 JSON handler（重复调用只替换 handler）。"""

    log_dir = getattr(settings, "log_dir", None)
    level = logging.getLevelName(str(getattr(settings, "log_level", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            logger.removeHandler(handler)
            handler.close()

    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(path / "gateway.log", encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter(bool(getattr(settings, "log_redact_content", False))))
    setattr(handler, _HANDLER_MARK, True)
    logger.addHandler(handler)
    return logger


def log_event(level: int, message: str, **fields) -> None:
    """结构化日志：字段通过 extra={"extra": ...} 交给 JsonFormatter 展开。"""

    logger.log(level, message, extra={"extra": fields})
