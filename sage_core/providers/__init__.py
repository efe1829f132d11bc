"""Chat Completions 传输层。

该包下的模块负责：
- SSE 行解析 (sse) 与增量文本提取 (extract)。
- 流式内容为空时的兜底解析 (reconcile)。
- 请求会话与取消句柄 (session)。
- 具体的 HTTP 客户端实现 (openrouter_client)。
"""

from typing import Optional

from sage_core.config.settings import settings
from sage_core.infrastructure.scheduling.main_loop import Scheduler
from sage_core.providers.base import ChatClient, StreamCallbacks
from sage_core.providers.observer import LoggingObserver, NullObserver, StreamObserver
from sage_core.providers.openrouter_client import OpenRouterClient


def create_client(
    scheduler: Optional[Scheduler] = None,
    observer: Optional[StreamObserver] = None,
) -> ChatClient:
    """根据配置创建客户端；开启 debug 时默认挂上 LoggingObserver。"""

    if observer is None:
        observer = LoggingObserver() if getattr(settings, "debug", False) else NullObserver()
    return OpenRouterClient(settings, scheduler=scheduler, observer=observer)


__all__ = ["ChatClient", "OpenRouterClient", "StreamCallbacks", "create_client"]
