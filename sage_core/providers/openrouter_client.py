"""OpenRouter（OpenAI 兼容 chat/completions）流式客户端。

本模块负责：

1. 校验凭证，构造请求（model/messages/stream + Bearer 认证头）。
2. 在后台线程中通过 httpx 读取 SSE 文本块，经 LineBuffer 切行后交给
   parse_line / extract_token 解出增量文本。
3. 通过 StreamSession 把回调投递到主线程调度器。
4. 流式阶段一个 token 都没拿到时，调用 reconcile_body 兜底。

所有失败都在后台线程的运行循环边界转换为 on_error 文本，不会向调用方抛出异常。
"""

import threading
from typing import Any, Dict, Optional, Sequence, Tuple

import httpx

from sage_core.config.settings import DEFAULT_APP_TITLE, DEFAULT_REFERER, DEFAULT_SEARCH_SUFFIX, settings
from sage_core.domain.exceptions import (
    BusinessError,
    ConfigError,
    DecodeError,
    NetworkError,
    ProtocolError,
)
from sage_core.domain.models import ChatMessage, messages_to_payload
from sage_core.infrastructure.scheduling.main_loop import MainLoopScheduler, Scheduler
from sage_core.providers.base import ChatCallback, StreamCallbacks
from sage_core.providers.extract import extract_message_content, extract_token, load_json
from sage_core.providers.observer import NullObserver, StreamObserver
from sage_core.providers.reconcile import reconcile_body
from sage_core.providers.session import RequestHandle, StreamSession
from sage_core.providers.sse import parse_line


MISSING_KEY_MESSAGE = "No API key found. Set $OPENROUTER_API_KEY or configure api_key"


def format_api_error(status_code: int, body: Optional[str]) -> str:
    """拼接 HTTP 错误信息，响应体中带 error 字段时附上服务端消息。"""

    message = f"API error (HTTP {status_code})"
    if not body:
        return message
    try:
        data = load_json(body)
    except DecodeError:
        return message
    if not isinstance(data, dict) or not data.get("error"):
        return message
    error = data["error"]
    if isinstance(error, dict):
        detail = error.get("message") or str(error)
    else:
        detail = str(error)
    return f"{message}: {detail}"


class OpenRouterClient:
    """流式 Chat Completions 客户端。

    - name: Provider 名称（供日志/调试使用）。
    - scheduler: 回调投递目标，默认是需要主循环排空的 MainLoopScheduler。
    - observer: 调试事件观察者，默认不做任何事。
    """

    name = "openrouter"

    def __init__(
        self,
        cfg=settings,
        scheduler: Optional[Scheduler] = None,
        observer: Optional[StreamObserver] = None,
    ):
        self._settings = cfg
        self.scheduler = scheduler or MainLoopScheduler()
        self._observer = observer or NullObserver()

    # ---- 流式 ----

    def stream(
        self,
        messages: Sequence[ChatMessage],
        callbacks: StreamCallbacks,
        search: bool = False,
    ) -> Tuple[Optional[RequestHandle], Optional[str]]:
        """发起一次流式请求。

        缺少 API Key 时同步调用 on_error 并返回 (None, 错误信息)，不发起网络请求；
        否则在读取任何数据之前调用 on_start，返回 (handle, None)。
        """

        api_key = self._settings.get_api_key()
        if not api_key:
            err = ConfigError(code="MISSING_API_KEY", message=MISSING_KEY_MESSAGE)
            self._observer.on_failure(err.code, err.message)
            callbacks.on_error(err.message)
            return None, err.message

        payload = self._build_payload(messages, stream=True, search=search)
        session = StreamSession(self.scheduler)
        callbacks.on_start()
        self._start_worker(session, self._run_stream, session, payload, api_key, callbacks)
        return RequestHandle(session), None

    def _run_stream(
        self,
        session: StreamSession,
        payload: Dict[str, Any],
        api_key: str,
        callbacks: StreamCallbacks,
    ) -> None:
        try:
            self._stream_request(session, payload, api_key, callbacks)
        except BusinessError as e:
            self._observer.on_failure(e.code, e.message)
            session.dispatch(callbacks.on_error, e.message, terminal=True)
            return
        except Exception as e:
            # 其他异常同样以一次终止性 on_error 结束
            message = f"Unexpected error: {e}"
            self._observer.on_failure("UNEXPECTED_ERROR", message)
            session.dispatch(callbacks.on_error, message, terminal=True)
            return
        session.dispatch(callbacks.on_complete, terminal=True)

    def _stream_request(
        self,
        session: StreamSession,
        payload: Dict[str, Any],
        api_key: str,
        callbacks: StreamCallbacks,
    ) -> None:
        url = self._url()
        self._observer.on_request(url, payload["model"], len(payload["messages"]), stream=True)
        try:
            with httpx.Client(**self._client_kwargs()) as client:
                with client.stream("POST", url, json=payload, headers=self._headers(api_key)) as resp:
                    session.attach_response(resp)
                    if resp.status_code != 200:
                        resp.read()
                        raise ProtocolError(
                            code="API_ERROR",
                            message=format_api_error(resp.status_code, resp.text),
                            http_status=resp.status_code,
                        )
                    for chunk in resp.iter_text():
                        session.body_parts.append(chunk)
                        for line in session.line_buffer.feed(chunk):
                            self._handle_line(session, line, callbacks)
                        if session.cancelled:
                            break
                    for line in session.line_buffer.flush():
                        self._handle_line(session, line, callbacks)
                    status_code = resp.status_code
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as e:
            # 网络错误：DNS 失败、URL 非法、连接中断，或 cancel 关闭了连接
            raise NetworkError(code="NETWORK_ERROR", message=f"Network error: {e}")
        finally:
            session.attach_response(None)

        if session.cancelled:
            return
        body = session.body
        if session.content_length == 0 and body:
            self._observer.on_fallback(len(body))
            text = reconcile_body(body)
            session.record_token(text)
            session.dispatch(callbacks.on_token, text)
        self._observer.on_finish(status_code, session.token_count, session.content_length)

    def _handle_line(self, session: StreamSession, line: str, callbacks: StreamCallbacks) -> None:
        self._observer.on_line(line)
        data = parse_line(line)
        if data is None:
            return
        token = extract_token(data)
        if not token:
            return
        session.record_token(token)
        self._observer.on_token(token, session.token_count, session.content_length)
        session.dispatch(callbacks.on_token, token)

    # ---- 非流式 ----

    def chat(
        self,
        messages: Sequence[ChatMessage],
        callback: ChatCallback,
        search: bool = False,
    ) -> Optional[RequestHandle]:
        """执行一次非流式请求，结果通过 callback(content, None) 或 callback(None, error) 返回。"""

        api_key = self._settings.get_api_key()
        if not api_key:
            self._observer.on_failure("MISSING_API_KEY", MISSING_KEY_MESSAGE)
            callback(None, MISSING_KEY_MESSAGE)
            return None

        payload = self._build_payload(messages, stream=False, search=search)
        session = StreamSession(self.scheduler)
        self._start_worker(session, self._run_chat, session, payload, api_key, callback)
        return RequestHandle(session)

    def _run_chat(
        self,
        session: StreamSession,
        payload: Dict[str, Any],
        api_key: str,
        callback: ChatCallback,
    ) -> None:
        try:
            content = self._chat_request(session, payload, api_key)
        except BusinessError as e:
            self._observer.on_failure(e.code, e.message)
            session.dispatch(callback, None, e.message, terminal=True)
            return
        except Exception as e:
            message = f"Unexpected error: {e}"
            self._observer.on_failure("UNEXPECTED_ERROR", message)
            session.dispatch(callback, None, message, terminal=True)
            return
        session.dispatch(callback, content, None, terminal=True)

    def _chat_request(self, session: StreamSession, payload: Dict[str, Any], api_key: str) -> str:
        url = self._url()
        self._observer.on_request(url, payload["model"], len(payload["messages"]), stream=False)
        try:
            with httpx.Client(**self._client_kwargs()) as client:
                with client.stream("POST", url, json=payload, headers=self._headers(api_key)) as resp:
                    session.attach_response(resp)
                    resp.read()
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as e:
            raise NetworkError(code="NETWORK_ERROR", message=f"Network error: {e}")
        finally:
            session.attach_response(None)

        if resp.status_code != 200:
            raise ProtocolError(
                code="API_ERROR",
                message=format_api_error(resp.status_code, resp.text),
                http_status=resp.status_code,
            )
        body = resp.text
        try:
            load_json(body)
        except DecodeError:
            raise DecodeError(code="DECODE_ERROR", message="Failed to parse response")
        content = extract_message_content(body)
        if content is None:
            raise DecodeError(code="DECODE_ERROR", message="Unexpected response format")
        self._observer.on_finish(resp.status_code, 1, len(content))
        return content

    # ---- 辅助方法 ----

    def _start_worker(self, session: StreamSession, target, *args) -> None:
        thread = threading.Thread(target=target, args=args, name="sage-request", daemon=True)
        session.thread = thread
        thread.start()

    def _url(self) -> str:
        return f"{self._settings.base_url.rstrip('/')}/chat/completions"

    def _model(self, search: bool) -> str:
        model = self._settings.model
        if search:
            model += getattr(self._settings, "search_suffix", None) or DEFAULT_SEARCH_SUFFIX
        return model

    def _build_payload(self, messages: Sequence[ChatMessage], stream: bool, search: bool) -> Dict[str, Any]:
        return {
            "model": self._model(search),
            "messages": messages_to_payload(messages),
            "stream": stream,
        }

    def _headers(self, api_key: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": getattr(self._settings, "referer", None) or DEFAULT_REFERER,
            "X-Title": getattr(self._settings, "app_title", None) or DEFAULT_APP_TITLE,
        }

    def _client_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {"trust_env": False}
        timeout = getattr(self._settings, "http_timeout", None)
        if timeout:
            kwargs["timeout"] = timeout
        return kwargs
