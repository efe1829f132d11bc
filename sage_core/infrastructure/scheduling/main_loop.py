"""主线程回调调度。

后台 I/O 线程不能直接触碰共享状态（Conversation、UI），只能把回调投递到
Scheduler，由宿主应用的主循环按投递顺序逐个执行。

- MainLoopScheduler: 线程安全的 FIFO 队列，由消费线程调用 run_pending() 排空。
- InlineScheduler: 立即在投递线程执行，适合单线程脚本。
"""

from __future__ import annotations

import queue
import time
from typing import Callable, Optional, Protocol


Task = Callable[[], None]


class Scheduler(Protocol):
    def schedule(self, task: Task) -> None:
        ...


class InlineScheduler:
    """在调用线程上立即执行任务。"""

    def schedule(self, task: Task) -> None:
        task()


class MainLoopScheduler:
    """单消费者任务队列。

    schedule() 可以在任意线程调用；run_pending()/run_until() 只能在主线程调用。
    """

    def __init__(self) -> None:
        self._queue: "queue.Queue[Task]" = queue.Queue()

    def schedule(self, task: Task) -> None:
        self._queue.put(task)

    def pending(self) -> int:
        return self._queue.qsize()

    def run_pending(self) -> int:
        """执行当前队列中的全部任务，返回执行数量。不阻塞。"""

        count = 0
        while True:
            try:
                task = self._queue.get_nowait()
            except queue.Empty:
                return count
            task()
            count += 1

    def run_until(
        self,
        predicate: Callable[[], bool],
        timeout: Optional[float] = None,
        poll_interval: float = 0.05,
    ) -> bool:
        """阻塞地执行任务直到 predicate() 为真或超时。返回 predicate 最终结果。"""

        deadline = None if timeout is None else time.monotonic() + timeout
        while not predicate():
            wait = poll_interval
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return predicate()
                wait = min(wait, remaining)
            try:
                task = self._queue.get(timeout=wait)
            except queue.Empty:
                continue
            task()
            self.run_pending()
        return True
