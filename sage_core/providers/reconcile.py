"""流式内容为空时的兜底解析。

部分模型在流式过程中只发送只有 role 的 delta，完整答案却放在末尾的
非 delta 块里，或者干脆整包返回一个 JSON 对象。传输层在
"一个 token 都没拿到但响应体非空" 时调用 reconcile_body 重新解析。

注意：这个启发式无法区分 "模型确实返回了空字符串" 和 "模型违反了流式约定"，
两种情况都会进入兜底。
"""

from typing import List

from sage_core.domain.exceptions import ContentRecoveryError
from sage_core.providers.extract import extract_message_content, extract_token
from sage_core.providers.sse import parse_line


NO_CONTENT_MESSAGE = "Model returned no usable content. It may not support streaming responses."


def _recover_whole_body(body: str) -> str:
    return extract_message_content(body.strip()) or ""


def _recover_lines(body: str) -> str:
    fragments: List[str] = []
    for line in body.split("\n"):
        payload = parse_line(line)
        if payload is None:
            # 非 data: 行也可能是一整个 JSON 对象
            payload = line.strip()
            if not payload.startswith("{"):
                continue
        fragment = extract_token(payload) or extract_message_content(payload)
        if fragment:
            fragments.append(fragment)
    return "".join(fragments)


def reconcile_body(body: str) -> str:
    """按顺序尝试各个兜底策略，返回恢复出的文本。

    Raises:
        ContentRecoveryError: 所有策略都没有拿到文本。
    """

    for strategy in (_recover_whole_body, _recover_lines):
        text = strategy(body)
        if text:
            return text
    raise ContentRecoveryError(code="NO_CONTENT", message=NO_CONTENT_MESSAGE, body_length=len(body))
