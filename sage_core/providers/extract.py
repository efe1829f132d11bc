"""流式响应的增量文本提取。

不同上游模型对同一个语义上的 "增量文本片段" 填写的字段不同：

- choices[0].delta.content 为字符串（OpenAI 标准格式）。
- choices[0].delta.content 为 parts 列表（[{"type": "text", "text": ...}]）。
- choices[0].delta.text 为字符串（部分旧式 completion 模型）。
- choices[0].message.content 为字符串（非流式结构混入流式响应）。

这里先把 JSON 解析为 ChoiceView，再按固定顺序依次尝试各个解码函数，
第一个返回非 None 的结果生效。
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from sage_core.domain.exceptions import DecodeError


@dataclass(frozen=True)
class ChoiceView:
    """choices[0] 的只读视图。缺失或类型不对的字段为 None。"""

    delta: Optional[Dict[str, Any]] = None
    message: Optional[Dict[str, Any]] = None

    @classmethod
    def from_data(cls, data: Any) -> Optional["ChoiceView"]:
        if not isinstance(data, dict):
            return None
        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            return None
        first = choices[0]
        if not isinstance(first, dict):
            return None
        delta = first.get("delta")
        message = first.get("message")
        return cls(
            delta=delta if isinstance(delta, dict) else None,
            message=message if isinstance(message, dict) else None,
        )


def load_json(payload: str) -> Any:
    try:
        return json.loads(payload)
    except (json.JSONDecodeError, TypeError) as e:
        raise DecodeError(code="DECODE_ERROR", message=f"Invalid JSON payload: {e}")


def _delta_content_string(view: ChoiceView) -> Optional[str]:
    if view.delta is None:
        return None
    content = view.delta.get("content")
    return content if isinstance(content, str) else None


def _delta_content_parts(view: ChoiceView) -> Optional[str]:
    if view.delta is None:
        return None
    content = view.delta.get("content")
    if not isinstance(content, list):
        return None
    texts = [
        part.get("text")
        for part in content
        if isinstance(part, dict) and part.get("type") == "text" and isinstance(part.get("text"), str)
    ]
    joined = "".join(texts)
    return joined or None


def _delta_text(view: ChoiceView) -> Optional[str]:
    if view.delta is None:
        return None
    text = view.delta.get("text")
    return text if isinstance(text, str) else None


def _message_content(view: ChoiceView) -> Optional[str]:
    if view.message is None:
        return None
    content = view.message.get("content")
    return content if isinstance(content, str) else None


Decoder = Callable[[ChoiceView], Optional[str]]

# 解码优先级，顺序即语义
TOKEN_DECODERS: Tuple[Decoder, ...] = (
    _delta_content_string,
    _delta_content_parts,
    _delta_text,
    _message_content,
)
MESSAGE_DECODERS: Tuple[Decoder, ...] = (_message_content,)


def _decode(payload: str, decoders: Tuple[Decoder, ...]) -> Optional[str]:
    try:
        data = load_json(payload)
    except DecodeError:
        # 单行坏数据不影响后续 token
        return None
    view = ChoiceView.from_data(data)
    if view is None:
        return None
    for decoder in decoders:
        result = decoder(view)
        if result is not None:
            return result
    return None


def extract_token(payload: str) -> Optional[str]:
    """从一条 SSE 负载中提取增量文本，无法识别时返回 None。"""

    return _decode(payload, TOKEN_DECODERS)


def extract_message_content(payload: str) -> Optional[str]:
    """只解析非流式结构 choices[0].message.content，用于完整响应体。"""

    return _decode(payload, MESSAGE_DECODERS)
