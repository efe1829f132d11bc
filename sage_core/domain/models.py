"""统一的对话消息模型。

本模块定义了会话状态机与传输层之间共享的标准数据结构：

- ChatMessage: 一条对话消息（system/user/assistant）。

消息一旦追加到会话历史中就不可再修改，并且每一轮请求都会把完整历史
按原顺序重新发送给服务端，因此这里使用 frozen dataclass。
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Literal


# 消息角色类型（与 OpenAI / OpenRouter 的 role 字段对应）
Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    """一条对话消息。

    - role: 消息角色，如 system/user/assistant。
    - content: 纯文本内容，由上游的内容生成方提供，核心层不解析其结构。
    """

    role: Role
    content: str

    def to_payload(self) -> Dict[str, Any]:
        return {"role": self.role, "content": self.content}


def messages_to_payload(messages: Iterable[ChatMessage]) -> List[Dict[str, Any]]:
    """将消息序列转换为请求体中的 messages 数组。"""

    return [m.to_payload() for m in messages]
