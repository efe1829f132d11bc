"""系统提示词与初始消息构造。

带代码选区与不带选区两种场景各有一份默认 system prompt，可通过配置覆盖。
选区/诊断/依赖等内容由上游格式化为不透明字符串传入，这里不解析其结构。
"""

from typing import List, Optional

from sage_core.domain.models import ChatMessage


DEFAULT_SYSTEM_PROMPT = """You are a concise coding tutor helping a developer understand code.

Rules:
- Be brief and direct
- Use `inline code` for short references rather than full code blocks
- Only show multi-line code blocks when essential for understanding
- When explaining errors, focus on the "why" not just the fix
- Reference language concepts by name (e.g., "ownership", "borrow checker", "lifetime")"""

DEFAULT_SYSTEM_PROMPT_NO_SELECTION = """You are a concise coding assistant.

Rules:
- Be brief and direct
- Use `inline code` for short references rather than full code blocks
- Only show multi-line code blocks when essential for understanding
- Focus on practical, actionable answers"""

DEFAULT_SYSTEM_PROMPT_INFILL = """You are a code rewriting engine.

Rules:
- Rewrite only the selected code according to the instruction
- Keep the surrounding style, indentation and language
- Return only the replacement text, with no explanation
- If you use a fenced code block, return exactly one"""

INFILL_RETURN_INSTRUCTION = "Return only the replacement text for the selected code."


def build_messages(content: str, question: str, system_prompt: Optional[str] = None) -> List[ChatMessage]:
    """带代码上下文的初始消息：system + 一条 user（上下文在前，问题在后）。"""

    return [
        ChatMessage(role="system", content=system_prompt or DEFAULT_SYSTEM_PROMPT),
        ChatMessage(role="user", content=f"{content}\n\nQuestion: {question}" if content else question),
    ]


def build_messages_no_selection(question: str, system_prompt: Optional[str] = None) -> List[ChatMessage]:
    return [
        ChatMessage(role="system", content=system_prompt or DEFAULT_SYSTEM_PROMPT_NO_SELECTION),
        ChatMessage(role="user", content=question),
    ]


def build_infill_messages(
    content: str,
    instruction: str,
    system_prompt: Optional[str] = None,
) -> List[ChatMessage]:
    """改写选区用的消息：content 是上游格式化好的文件名/选区代码/诊断文本。"""

    parts = [content] if content else []
    parts.extend([f"Instruction: {instruction}", INFILL_RETURN_INSTRUCTION])
    return [
        ChatMessage(role="system", content=system_prompt or DEFAULT_SYSTEM_PROMPT_INFILL),
        ChatMessage(role="user", content="\n\n".join(parts)),
    ]
