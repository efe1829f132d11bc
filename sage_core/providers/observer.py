"""传输层调试观察者。

传输层本身不做任何日志/文件 I/O，所有调试事件都通过 StreamObserver
发出。默认使用 NullObserver；开启 debug 时使用 LoggingObserver 写入
sage_core 日志。观察者方法在后台 I/O 线程上调用。
"""

import logging
from typing import Any, Dict, Protocol

from sage_core.infrastructure.logging.logger import logger


class StreamObserver(Protocol):
    def on_request(self, url: str, model: str, message_count: int, stream: bool) -> None:
        ...

    def on_line(self, line: str) -> None:
        ...

    def on_token(self, token: str, token_count: int, content_length: int) -> None:
        ...

    def on_fallback(self, body_length: int) -> None:
        ...

    def on_finish(self, status_code: int, token_count: int, content_length: int) -> None:
        ...

    def on_failure(self, code: str, message: str) -> None:
        ...


class NullObserver:
    """什么都不做的观察者。"""

    def on_request(self, url: str, model: str, message_count: int, stream: bool) -> None:
        pass

    def on_line(self, line: str) -> None:
        pass

    def on_token(self, token: str, token_count: int, content_length: int) -> None:
        pass

    def on_fallback(self, body_length: int) -> None:
        pass

    def on_finish(self, status_code: int, token_count: int, content_length: int) -> None:
        pass

    def on_failure(self, code: str, message: str) -> None:
        pass


class LoggingObserver:
    """把调试事件转发给 sage_core 日志。"""

    def __init__(self, log: logging.Logger = logger):
        self._logger = log

    def _log(self, level: int, message: str, **fields: Any) -> None:
        payload: Dict[str, Any] = dict(fields)
        self._logger.log(level, message, extra={"extra": payload})

    def on_request(self, url: str, model: str, message_count: int, stream: bool) -> None:
        self._log(logging.INFO, "Sending request", url=url, model=model, message_count=message_count, stream=stream)

    def on_line(self, line: str) -> None:
        self._log(logging.DEBUG, "SSE line", line=line[:200])

    def on_token(self, token: str, token_count: int, content_length: int) -> None:
        self._log(logging.DEBUG, "Token", token_count=token_count, content_length=content_length)

    def on_fallback(self, body_length: int) -> None:
        self._log(logging.WARNING, "No streamed content, reconciling body", body_length=body_length)

    def on_finish(self, status_code: int, token_count: int, content_length: int) -> None:
        self._log(
            logging.INFO,
            "Request finished",
            status_code=status_code,
            token_count=token_count,
            content_length=content_length,
        )

    def on_failure(self, code: str, message: str) -> None:
        self._log(logging.WARNING, "Request failed", code=code, error=message)
