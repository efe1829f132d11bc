"""领域层模型与协议。

包含：
- models: 统一的 ChatMessage 模型及 Role 定义。
- conversation: 多轮对话状态机 Conversation。
- exceptions: 业务异常类型定义。
"""
