"""JSON 行格式日志。

日志写入 <log_dir>/chat.log，每行一个 JSON 对象；结构化字段通过
extra={"extra": {...}} 传入。厂商错误体与 URL 中可能带有密钥，
写入前统一打码。
"""

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path

from chat_core.config.settings import settings

# URL 查询串中的 key=...（Google）与 Bearer 令牌
_SECRET_PATTERN = re.compile(r"(key=|Bearer\s+)[^\s&\"']+")


def mask_secrets(text: str) -> str:
    return _SECRET_PATTERN.sub(r"\1***", text)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        msg = mask_secrets(record.getMessage())
        if settings.log_redact_content:
            msg = msg[:64]
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "msg": msg,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger() -> logging.Logger:
    logger = logging.getLogger("chat_core")
    logger.setLevel(settings.log_level.upper())
    if logger.handlers:
        return logger
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(log_dir / "chat.log", encoding="utf-8")
    fh.setFormatter(JsonFormatter())
    logger.addHandler(fh)
    return logger


logger = setup_logger()
