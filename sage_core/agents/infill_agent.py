"""选区改写（infill）。

用非流式 chat() 请求一段替换文本，再用 normalize_response 去掉代码块围栏。
结果通过 callback(replacement, None) 或 callback(None, error) 返回，
与 ChatClient.chat 的回调约定一致；把替换文本写回编辑器由调用方负责。
"""

from typing import Optional

from sage_core.domain.exceptions import InfillError
from sage_core.domain.infill import normalize_response
from sage_core.prompts import build_infill_messages
from sage_core.providers.base import ChatCallback, ChatClient
from sage_core.providers.session import RequestHandle


class InfillAgent:
    def __init__(self, client: ChatClient, system_prompt: Optional[str] = None):
        self._client = client
        self._system_prompt = system_prompt
        self._handle: Optional[RequestHandle] = None

    @property
    def handle(self) -> Optional[RequestHandle]:
        return self._handle

    def request(self, content: str, instruction: str, callback: ChatCallback) -> Optional[RequestHandle]:
        """content 为上游格式化好的文件/选区/诊断文本，instruction 为改写要求。"""

        self.cancel()
        messages = build_infill_messages(content, instruction, self._system_prompt)

        def on_result(text: Optional[str], err: Optional[str]) -> None:
            if err:
                callback(None, err)
                return
            try:
                replacement = normalize_response(text)
            except InfillError as e:
                callback(None, e.message)
                return
            callback(replacement, None)

        self._handle = self._client.chat(messages, on_result)
        return self._handle

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
