"""对外 API 服务模块。

为脚本类调用方提供阻塞式接口：在当前线程上充当主循环，排空调度队列
直到本轮请求结束，然后返回完整回答。出错时抛出 BusinessError。
"""

from typing import Callable, List, Optional

from sage_core.agents.chat_agent import ChatAgent
from sage_core.agents.infill_agent import InfillAgent
from sage_core.config.settings import settings
from sage_core.domain.exceptions import BusinessError
from sage_core.infrastructure.logging.logger import logger
from sage_core.infrastructure.scheduling.main_loop import MainLoopScheduler
from sage_core.prompts import build_messages, build_messages_no_selection
from sage_core.providers import create_client
from sage_core.providers.base import ChatClient, StreamCallbacks


class BlockingChat:
    """一段阻塞式多轮对话。

    每个实例拥有自己的调度器、客户端与 Conversation，互不影响。
    """

    def __init__(
        self,
        client: Optional[ChatClient] = None,
        scheduler: Optional[MainLoopScheduler] = None,
        timeout: Optional[float] = None,
    ):
        self.scheduler = scheduler or MainLoopScheduler()
        self.agent = ChatAgent(client or create_client(scheduler=self.scheduler))
        self._timeout = timeout

    def ask(
        self,
        question: str,
        content: Optional[str] = None,
        search: bool = False,
        on_token: Optional[Callable[[str], None]] = None,
    ) -> str:
        """开启新对话并返回第一轮回答。content 为代码/诊断等上下文文本。"""

        if content:
            messages = build_messages(content, question, settings.system_prompt)
        else:
            messages = build_messages_no_selection(question, settings.system_prompt_no_selection)
        return self._run(lambda cb: self.agent.ask(messages, cb, search=search), on_token)

    def follow_up(
        self,
        question: str,
        search: bool = False,
        on_token: Optional[Callable[[str], None]] = None,
    ) -> str:
        return self._run(lambda cb: self.agent.follow_up(question, cb, search=search), on_token)

    def turn_count(self) -> int:
        return self.agent.conversation.turn_count()

    def _run(self, send, on_token: Optional[Callable[[str], None]]) -> str:
        tokens: List[str] = []
        outcome: dict = {}

        def handle_token(token: str) -> None:
            tokens.append(token)
            if on_token:
                on_token(token)

        callbacks = StreamCallbacks(
            on_token=handle_token,
            on_complete=lambda: outcome.setdefault("done", True),
            on_error=lambda err: outcome.setdefault("error", err),
        )
        handle, err = send(callbacks)
        if handle is not None:
            finished = self.scheduler.run_until(lambda: bool(outcome), timeout=self._timeout)
            if not finished:
                self.agent.cancel()
                outcome["error"] = "Request timed out"
        if "error" in outcome or err:
            message = outcome.get("error") or err
            logger.error(f"Chat failed: {message}", extra={"extra": {"error": message}})
            raise BusinessError(code="CHAT_FAILED", message=message)
        return "".join(tokens)


def ask(question: str, content: Optional[str] = None, search: bool = False) -> str:
    """一次性问答：不保留对话历史。"""

    return BlockingChat().ask(question, content=content, search=search)


def infill(
    content: str,
    instruction: str,
    client: Optional[ChatClient] = None,
    scheduler: Optional[MainLoopScheduler] = None,
    timeout: Optional[float] = None,
) -> str:
    """阻塞式改写选区，返回去掉代码块围栏后的替换文本。"""

    scheduler = scheduler or MainLoopScheduler()
    agent = InfillAgent(client or create_client(scheduler=scheduler), settings.system_prompt_infill)
    outcome: dict = {}

    def on_result(text: Optional[str], err: Optional[str]) -> None:
        outcome.setdefault("result", (text, err))

    handle = agent.request(content, instruction, on_result)
    if handle is not None and not scheduler.run_until(lambda: bool(outcome), timeout=timeout):
        agent.cancel()
        outcome["result"] = (None, "Request timed out")
    text, err = outcome["result"]
    if err:
        logger.error(f"Infill failed: {err}", extra={"extra": {"error": err}})
        raise BusinessError(code="INFILL_FAILED", message=err)
    return text
