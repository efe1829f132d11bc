import json

import pytest

from sage_core.agents.infill_agent import InfillAgent
from sage_core.api.service import infill
from sage_core.domain.exceptions import BusinessError, InfillError
from sage_core.domain.infill import normalize_response
from sage_core.infrastructure.scheduling.main_loop import MainLoopScheduler
from sage_core.prompts import DEFAULT_SYSTEM_PROMPT_INFILL, build_infill_messages
from sage_core.providers.openrouter_client import OpenRouterClient

from conftest import FakeResponse, SettingsStub


def _body(content):
    return json.dumps({"choices": [{"message": {"content": content}}]})


def test_normalize_strips_fence():
    assert normalize_response("```lua\nprint('hi')\n```") == "print('hi')"
    assert normalize_response("  x = 1\n") == "x = 1"
    assert normalize_response("Here you go:\n```py\na\nb\n```\nDone.") == "a\nb"


def test_normalize_rejects_empty():
    for raw, message in [
        ("   ", "Model returned empty response"),
        ("```py\n\n```", "Model returned empty replacement"),
        (None, "Invalid response type"),
    ]:
        with pytest.raises(InfillError) as exc:
            normalize_response(raw)
        assert exc.value.message == message


def test_build_infill_messages():
    messages = build_infill_messages("File: a.py (python)", "rename x to y")
    assert messages[0].role == "system"
    assert messages[0].content == DEFAULT_SYSTEM_PROMPT_INFILL
    assert messages[1].content == (
        "File: a.py (python)\n\nInstruction: rename x to y\n\n"
        "Return only the replacement text for the selected code."
    )
    assert build_infill_messages("", "go", "custom")[0].content == "custom"


class ChatOnlyClient:
    def __init__(self):
        self.calls = []

    def chat(self, messages, callback, search=False):
        self.calls.append((list(messages), callback))
        return object()


def test_infill_agent_normalizes_and_forwards_errors():
    client = ChatOnlyClient()
    agent = InfillAgent(client)
    results = []
    agent.request("code", "fix it", lambda text, err: results.append((text, err)))
    callback = client.calls[0][1]
    callback("```\ny = 2\n```", None)
    callback(None, "Network error: down")
    callback("  ", None)
    assert results == [
        ("y = 2", None),
        (None, "Network error: down"),
        (None, "Model returned empty response"),
    ]


def test_blocking_infill(fake_http):
    captured = fake_http(FakeResponse([_body("```python\nreturn y\n```")]))
    scheduler = MainLoopScheduler()
    client = OpenRouterClient(SettingsStub(), scheduler=scheduler)
    assert infill("return x", "use y", client=client, scheduler=scheduler, timeout=5) == "return y"
    assert captured["payload"]["stream"] is False
    assert captured["payload"]["messages"][1]["content"].startswith("return x\n\nInstruction: use y")


def test_blocking_infill_raises_on_empty_answer(fake_http):
    fake_http(FakeResponse([_body("   ")]))
    scheduler = MainLoopScheduler()
    client = OpenRouterClient(SettingsStub(), scheduler=scheduler)
    with pytest.raises(BusinessError) as exc:
        infill("x", "y", client=client, scheduler=scheduler, timeout=5)
    assert exc.value.code == "INFILL_FAILED"
    assert exc.value.message == "Model returned empty response"
