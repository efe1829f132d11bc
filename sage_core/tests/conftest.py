import httpx
import pytest

from sage_core.providers.base import StreamCallbacks


class SettingsStub:
    base_url = "https://openrouter.ai/api/v1"
    model = "test/model"
    search_suffix = ":online"
    http_timeout = None
    referer = "https://example.test"
    app_title = "sage-test"

    def __init__(self, key="sk-test-key-123"):
        self._key = key

    def get_api_key(self):
        return self._key


class FakeResponse:
    def __init__(self, chunks, status_code=200):
        self._chunks = list(chunks)
        self.status_code = status_code
        self.closed = False

    @property
    def text(self):
        return "".join(self._chunks)

    def read(self):
        return self.text.encode("utf-8")

    def iter_text(self):
        for chunk in self._chunks:
            if self.closed:
                raise httpx.StreamClosed()
            yield chunk

    def close(self):
        self.closed = True


class StreamContext:
    def __init__(self, response):
        self._response = response

    def __enter__(self):
        return self._response

    def __exit__(self, *args):
        return False


class Recorder:
    """按顺序记录回调事件。"""

    def __init__(self):
        self.events = []

    def callbacks(self):
        return StreamCallbacks(
            on_start=lambda: self.events.append(("start",)),
            on_token=lambda t: self.events.append(("token", t)),
            on_complete=lambda: self.events.append(("complete",)),
            on_error=lambda e: self.events.append(("error", e)),
        )

    def tokens(self):
        return [e[1] for e in self.events if e[0] == "token"]

    def kinds(self):
        return [e[0] for e in self.events]


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def settings_stub():
    return SettingsStub()


@pytest.fixture
def fake_http(monkeypatch):
    """把 httpx.Client 换成返回固定响应的假客户端，并记录请求参数。"""

    captured = {}

    def install(response=None, error=None):
        class Client:
            def __init__(self, *a, **kw):
                captured["client_kwargs"] = kw

            def __enter__(self):
                return self

            def __exit__(self, *a):
                return False

            def post(self, *a, **kw):
                raise AssertionError("post should not be called")

            def stream(self, method, url, json=None, headers=None, **_):
                captured["method"] = method
                captured["url"] = url
                captured["payload"] = json
                captured["headers"] = headers
                if error is not None:
                    raise error
                return StreamContext(response)

        monkeypatch.setattr("httpx.Client", Client)
        return captured

    return install

