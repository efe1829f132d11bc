"""单次请求的会话状态与取消句柄。

StreamSession 在请求发出时创建，在终止回调（on_complete/on_error）
触发或 cancel 之后即失效。RequestHandle 是调用方唯一能拿到的引用。
"""

import threading
from typing import Any, Callable, List, Optional

from sage_core.infrastructure.scheduling.main_loop import Scheduler
from sage_core.providers.sse import LineBuffer


class StreamSession:
    """一个进行中请求的传输层状态。

    计数器与行缓冲只在 I/O 线程上读写；cancelled/finished 两个标志在
    主线程上派发回调前检查。
    """

    def __init__(self, scheduler: Scheduler):
        self._scheduler = scheduler
        self._lock = threading.Lock()
        self.cancelled = False
        self.finished = False
        self.line_buffer = LineBuffer()
        self.token_count = 0
        self.content_length = 0
        self.body_parts: List[str] = []
        self.response: Any = None
        self.thread: Optional[threading.Thread] = None

    @property
    def body(self) -> str:
        return "".join(self.body_parts)

    def record_token(self, token: str) -> None:
        self.token_count += 1
        self.content_length += len(token)

    def dispatch(self, callback: Callable[..., None], *args: Any, terminal: bool = False) -> None:
        """把回调投递到主线程，执行前再检查一次取消/结束标志。"""

        def task() -> None:
            if self.cancelled or self.finished:
                return
            if terminal:
                self.finished = True
            callback(*args)

        self._scheduler.schedule(task)

    def attach_response(self, response: Any) -> None:
        with self._lock:
            self.response = response
        if self.cancelled:
            self.close_response()

    def close_response(self) -> None:
        with self._lock:
            response, self.response = self.response, None
        if response is not None:
            response.close()


class RequestHandle:
    """调用方持有的取消句柄。终止之后再调用 cancel 不产生任何效果。"""

    def __init__(self, session: StreamSession):
        self._session = session

    @property
    def cancelled(self) -> bool:
        return self._session.cancelled

    @property
    def done(self) -> bool:
        thread = self._session.thread
        return self._session.finished or thread is None or not thread.is_alive()

    def cancel(self) -> None:
        """停止后续所有回调，并尽力关闭底层连接。

        不保证服务端停止处理，只保证调用方不再收到任何通知。
        """

        if self._session.finished or self._session.cancelled:
            return
        self._session.cancelled = True
        self._session.close_response()

    def join(self, timeout: Optional[float] = None) -> None:
        thread = self._session.thread
        if thread is not None:
            thread.join(timeout)
