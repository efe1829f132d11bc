"""流式对话编排。

把 Conversation 状态机与 ChatClient 连接起来：

- ask: 开启新对话并发起第一轮流式请求。
- follow_up: 在现有历史上追加追问；请求失败时回滚这条追问，便于用户重试。

每个 token 同时交给调用方的 on_token 与 Conversation 累积器，
结束时用 finish_response 把累积内容封存为 assistant 消息。
所有回调都由客户端的调度器在主线程上触发，因此这里可以直接修改 Conversation。
"""

from typing import Optional, Sequence, Tuple

from sage_core.domain.conversation import Conversation
from sage_core.domain.models import ChatMessage
from sage_core.providers.base import ChatClient, StreamCallbacks
from sage_core.providers.session import RequestHandle


class ChatAgent:
    """持有一个 Conversation 和当前进行中的请求句柄。"""

    def __init__(self, client: ChatClient, conversation: Optional[Conversation] = None):
        self._client = client
        self.conversation = conversation or Conversation()
        self._handle: Optional[RequestHandle] = None

    @property
    def handle(self) -> Optional[RequestHandle]:
        return self._handle

    def ask(
        self,
        messages: Sequence[ChatMessage],
        callbacks: StreamCallbacks,
        search: bool = False,
    ) -> Tuple[Optional[RequestHandle], Optional[str]]:
        """开始一段新的对话（会清空之前的历史）。"""

        self.cancel()
        self.conversation.reset()
        self.conversation.start(messages)
        return self._send(self.conversation.messages, callbacks, search, rollback=False)

    def follow_up(
        self,
        question: str,
        callbacks: StreamCallbacks,
        search: bool = False,
    ) -> Tuple[Optional[RequestHandle], Optional[str]]:
        """在当前对话上追问。对话未激活时直接通过 on_error 报告。"""

        if not self.conversation.is_active():
            message = "No active conversation to follow up on"
            callbacks.on_error(message)
            return None, message
        self.cancel()
        snapshot = self.conversation.add_followup(question)
        return self._send(snapshot, callbacks, search, rollback=True)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def reset(self) -> None:
        self.cancel()
        self.conversation.reset()

    def _send(
        self,
        messages: Sequence[ChatMessage],
        callbacks: StreamCallbacks,
        search: bool,
        rollback: bool,
    ) -> Tuple[Optional[RequestHandle], Optional[str]]:
        conversation = self.conversation

        def on_token(token: str) -> None:
            conversation.accumulate_token(token)
            callbacks.on_token(token)

        def on_complete() -> None:
            conversation.finish_response()
            callbacks.on_complete()

        def on_error(err: str) -> None:
            # 第一轮没有可回滚的追问
            if rollback:
                conversation.remove_last_user_message()
            callbacks.on_error(err)

        wrapped = StreamCallbacks(
            on_token=on_token,
            on_start=callbacks.on_start,
            on_complete=on_complete,
            on_error=on_error,
        )
        handle, err = self._client.stream(messages, wrapped, search=search)
        self._handle = handle
        return handle, err
