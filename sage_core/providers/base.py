"""传输层对外协议。

展示层实现 StreamCallbacks 来渲染流式输出；编排层只依赖 ChatClient
协议，不直接依赖具体的 HTTP 实现。所有回调都在主线程上触发。
"""

from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Sequence, Tuple

from sage_core.domain.models import ChatMessage
from sage_core.providers.session import RequestHandle


def _noop(*_args) -> None:
    return None


@dataclass
class StreamCallbacks:
    """流式请求的回调集合。

    - on_start(): 在读取第一个字节之前调用一次。
    - on_token(text): 每个非空增量文本调用一次，顺序与服务端发送顺序一致。
    - on_complete(): 正常结束。
    - on_error(text): 出错结束。on_complete 与 on_error 至多触发一个。
    """

    on_token: Callable[[str], None]
    on_start: Callable[[], None] = _noop
    on_complete: Callable[[], None] = _noop
    on_error: Callable[[str], None] = _noop


# chat() 的回调：(content, None) 或 (None, error)
ChatCallback = Callable[[Optional[str], Optional[str]], None]


class ChatClient(Protocol):
    """Chat Completions 客户端协议。"""

    name: str

    def stream(
        self,
        messages: Sequence[ChatMessage],
        callbacks: StreamCallbacks,
        search: bool = False,
    ) -> Tuple[Optional[RequestHandle], Optional[str]]:
        ...

    def chat(
        self,
        messages: Sequence[ChatMessage],
        callback: ChatCallback,
        search: bool = False,
    ) -> Optional[RequestHandle]:
        ...
