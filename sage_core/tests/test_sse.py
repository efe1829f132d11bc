from sage_core.providers.sse import LineBuffer, parse_line


def test_parse_line_data_payload():
    assert parse_line('data: {"a":1}') == '{"a":1}'
    assert parse_line('data:{"a":1}') == '{"a":1}'


def test_parse_line_ignored_shapes():
    assert parse_line("data: [DONE]") is None
    assert parse_line("data:[DONE]") is None
    assert parse_line(":keepalive") is None
    assert parse_line(": OPENROUTER PROCESSING") is None
    assert parse_line("") is None
    assert parse_line("event: message") is None
    assert parse_line('{"choices": []}') is None


def test_parse_line_strips_carriage_return():
    assert parse_line('data: {"a":1}\r') == '{"a":1}'
    assert parse_line("\r") is None
    assert parse_line("data: [DONE]\r") is None


def test_line_buffer_joins_split_lines():
    buf = LineBuffer()
    assert buf.feed("data: one\ndata: t") == ["data: one"]
    assert buf.pending == "data: t"
    assert buf.feed("wo\n\n") == ["data: two", ""]
    assert buf.flush() == []


def test_line_buffer_flush_returns_trailing_line():
    buf = LineBuffer()
    assert buf.feed('{"choices": []}') == []
    assert buf.flush() == ['{"choices": []}']
    assert buf.pending == ""
