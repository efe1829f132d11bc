import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from sage_core.config.settings import settings


class JsonFormatter(logging.Formatter):
    def __init__(self, redact_content: bool = False):
        super().__init__()
        self._redact_content = redact_content

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if self._redact_content:
            msg = (msg or "")[:64]
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "msg": msg,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        return json.dumps(payload, ensure_ascii=False)


def setup_logger(log_dir: Optional[str] = None, level: int = logging.INFO) -> logging.Logger:
    """给 sage_core 日志挂上 JSON 行格式的文件 handler。

    需要显式调用：导入本模块不会创建任何文件。
    """

    log = logging.getLogger("sage_core")
    log.setLevel(level)
    path = Path(log_dir or settings.log_dir)
    path.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(path / "sage.log", encoding="utf-8")
    fh.setLevel(level)
    fh.setFormatter(JsonFormatter(redact_content=settings.log_redact_content))
    log.addHandler(fh)
    return log


logger = logging.getLogger("sage_core")
