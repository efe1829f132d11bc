"""Sage Core 顶层包。

该包提供面向 SSE 的流式 Chat Completions 客户端与多轮对话状态机，
包括配置加载、领域模型、SSE 解析与兜底解码、主线程回调调度与对话编排。
"""

from sage_core.domain.conversation import Conversation, SENTINEL
from sage_core.domain.models import ChatMessage
from sage_core.providers import OpenRouterClient, StreamCallbacks, create_client

__all__ = ["ChatMessage", "Conversation", "OpenRouterClient", "SENTINEL", "StreamCallbacks", "create_client"]
