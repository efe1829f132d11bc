"""Server-Sent Events 行解析。

parse_line 是纯函数、无状态，只处理已经按换行切分好的单行。
传输层收到的是任意切分的文本块，由 LineBuffer 负责拼接残行，
保证即便块边界把一行切开，行的顺序也与服务端发送顺序一致。
"""

from typing import List, Optional


DONE_MARKER = "[DONE]"


def parse_line(line: str) -> Optional[str]:
    """把一行 SSE 输出分类为事件数据、注释/心跳或结束标记。

    返回 "data:" 之后的负载文本；空行、注释行、[DONE] 以及其他形状的行
    都返回 None。
    """

    if line.endswith("\r"):
        line = line[:-1]
    if not line or line.startswith(":"):
        return None
    if line.startswith("data: "):
        data = line[6:]
    elif line.startswith("data:"):
        data = line[5:]
    else:
        return None
    if data == DONE_MARKER:
        return None
    return data


class LineBuffer:
    """把任意切分的文本块拼接成完整行。"""

    def __init__(self) -> None:
        self._pending = ""

    @property
    def pending(self) -> str:
        return self._pending

    def feed(self, chunk: str) -> List[str]:
        """追加一个文本块，返回其中已完整的行（不含换行符）。"""

        self._pending += chunk
        if "\n" not in self._pending:
            return []
        *lines, self._pending = self._pending.split("\n")
        return lines

    def flush(self) -> List[str]:
        """流结束时取出最后一段没有换行结尾的残行。"""

        rest, self._pending = self._pending, ""
        return [rest] if rest else []
