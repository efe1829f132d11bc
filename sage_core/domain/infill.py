"""改写（infill）回答的规整。

模型被要求只返回替换文本，但经常仍会包一层 ``` 代码块。这里去掉首尾空白
与代码块围栏，得到可以直接替换选区的文本。
"""

import re

from sage_core.domain.exceptions import InfillError


_FENCE = re.compile(r"```[^\n`]*\n(.*?)\n```", re.DOTALL)


def normalize_response(raw) -> str:
    """返回替换文本；回答为空或去掉围栏后为空时抛出 InfillError。"""

    if not isinstance(raw, str):
        raise InfillError(code="INFILL_INVALID", message="Invalid response type")
    text = raw.strip()
    if not text:
        raise InfillError(code="INFILL_EMPTY", message="Model returned empty response")

    # 优先整体是一个代码块；夹带说明文字时取第一个代码块
    match = _FENCE.fullmatch(text) or _FENCE.search(text)
    if match:
        text = match.group(1)
    if not text.strip():
        raise InfillError(code="INFILL_EMPTY", message="Model returned empty replacement")
    return text
