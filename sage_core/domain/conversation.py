"""多轮对话状态机。

Conversation 只负责内存中的消息历史与流式回答的累积，不依赖任何 UI 或
网络层，因此可以完整地单独测试。

状态：Inactive -> Active -> Inactive（通过 reset）。Active 期间根据
累积器是否在填充，内部在 "等待回答" 与 "空闲" 之间切换。

所有操作都不会抛出异常：状态由调用方同步维护，非法状态（例如在未激活
的会话上 finish_response）只会返回哨兵值或空结果。
"""

import copy
from typing import List, Sequence

from sage_core.domain.models import ChatMessage


# 累积器的哨兵值："还没有收到任何 token"，与真正的空回答区分开
SENTINEL = "\n"


class Conversation:
    """一次逻辑对话的消息历史与流式累积器。

    由编排层持有并按引用传入各个操作，不存在进程级单例。
    同一个 Conversation 上同时只应有一个进行中的请求，这由调用方保证。
    """

    def __init__(self) -> None:
        self._messages: List[ChatMessage] = []
        self._active = False
        self._accumulator = SENTINEL

    @property
    def messages(self) -> List[ChatMessage]:
        """当前历史的副本。"""

        return list(self._messages)

    @property
    def accumulator(self) -> str:
        return self._accumulator

    def start(self, messages: Sequence[ChatMessage]) -> None:
        """用初始消息（通常是 system + 第一条 user）开启新对话。"""

        self._messages = copy.deepcopy(list(messages))
        self._active = True
        self._accumulator = SENTINEL

    def accumulate_token(self, token: str) -> None:
        self._accumulator += token

    def finish_response(self) -> str:
        """把累积的 token 存为 assistant 消息，并重置累积器。

        返回重置前的累积器内容；调用方可以通过与 SENTINEL 比较判断
        本轮是否没有收到任何内容。
        """

        response = self._accumulator
        if response != SENTINEL:
            self._messages.append(ChatMessage(role="assistant", content=response))
        self._accumulator = SENTINEL
        return response

    def add_followup(self, question: str) -> List[ChatMessage]:
        """追加一条追问，返回完整历史的深拷贝供传输层序列化。"""

        self._messages.append(ChatMessage(role="user", content=question))
        return copy.deepcopy(self._messages)

    def remove_last_user_message(self) -> None:
        """追问请求失败时回滚最后一条 user 消息，便于用户重试。"""

        if self._messages and self._messages[-1].role == "user":
            self._messages.pop()

    def is_active(self) -> bool:
        return self._active

    def turn_count(self) -> int:
        return sum(1 for m in self._messages if m.role == "assistant")

    def reset(self) -> None:
        self._messages = []
        self._active = False
        self._accumulator = SENTINEL
