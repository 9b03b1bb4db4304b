import json
import logging

import httpx
import pytest

from chat_core.domain.exceptions import (
    FrameDecodeError,
    MissingProviderBaseUrlError,
    NetworkError,
    ProviderRequestFailedError,
    StreamCancelledError,
    UnsupportedProviderError,
)
from chat_core.domain.models import Message, Role, StreamRequest, StreamState
from chat_core.streaming.controller import StreamController, stream_chat

from chat_core.tests.fakes import FakeResponse


def _request(provider_id="openai", **kw):
    defaults = dict(
        provider_id=provider_id,
        model_id="test-model",
        api_key="secret-key",
        messages=[
            Message(role=Role.SYSTEM, content="be brief"),
            Message(role=Role.USER, content="hi"),
        ],
    )
    defaults.update(kw)
    return StreamRequest(**defaults)


def _openai_line(text):
    return "data: " + json.dumps({"choices": [{"index": 0, "delta": {"content": text}}]})


def test_openai_stream_delivers_tokens_in_order(fake_http, stub_settings):
    fake_http.response = FakeResponse(
        [
            ": keep-alive",
            "event: ping",
            _openai_line("hel"),
            "",
            _openai_line(""),
            _openai_line("lo"),
            "data: [DONE]",
            _openai_line("never"),
        ]
    )
    tokens = []
    controller = StreamController(stub_settings)
    result = controller.stream(_request(), tokens.append)

    assert tokens == ["hel", "lo"]
    assert controller.state == StreamState.COMPLETED
    assert result.token_count == 2
    assert result.frame_count == 3
    assert result.done_sentinel is True
    assert fake_http.response.lines_read == 7
    assert fake_http.response.closed
    assert fake_http.client_closed


def test_openai_request_shape(fake_http, stub_settings):
    fake_http.response = FakeResponse(["data: [DONE]"])
    stream_chat(_request(), lambda t: None, settings=stub_settings)

    sent = fake_http.last_request
    assert sent["method"] == "POST"
    assert sent["url"] == "https://api.openai.com/v1/chat/completions"
    assert sent["headers"]["Authorization"] == "Bearer secret-key"
    assert sent["headers"]["Content-Type"] == "application/json"
    assert sent["headers"]["User-Agent"] == "chat-core-test/0.1.0"
    assert sent["headers"]["Connection"] == "close"
    assert "HTTP-Referer" not in sent["headers"]
    assert json.loads(sent["content"])["stream"] is True
    assert fake_http.client_kwargs["trust_env"] is False
    assert fake_http.client_kwargs["timeout"].connect == 30.0
    assert fake_http.client_kwargs["timeout"].read is None


def test_aggregator_sends_referrer_headers(fake_http, stub_settings):
    fake_http.response = FakeResponse([])
    stream_chat(_request("openrouter"), lambda t: None, settings=stub_settings)

    headers = fake_http.last_request["headers"]
    assert fake_http.last_request["url"] == "https://openrouter.ai/api/v1/chat/completions"
    assert headers["HTTP-Referer"] == "https://opencode.ai/"
    assert headers["X-Title"] == "chat-core-test"


def test_base_url_override_strips_trailing_slash(fake_http, stub_settings):
    fake_http.response = FakeResponse([])
    stream_chat(_request(base_url="http://localhost:8080/v1/"), lambda t: None, settings=stub_settings)
    assert fake_http.last_request["url"] == "http://localhost:8080/v1/chat/completions"


def test_anthropic_stream(fake_http, stub_settings):
    fake_http.response = FakeResponse(
        [
            "event: message_start",
            'data: {"type":"message_start","message":{"id":"msg_1"}}',
            "event: content_block_delta",
            'data: {"type":"content_block_delta","index":0,"delta":{"type":"text_delta","text":"Hel"}}',
            'data: {"type":"content_block_delta","index":0,"delta":{"type":"text_delta","text":"lo"}}',
            'data: {"type":"message_stop"}',
        ]
    )
    tokens = []
    result = stream_chat(_request("anthropic"), tokens.append, settings=stub_settings)

    sent = fake_http.last_request
    assert tokens == ["Hel", "lo"]
    assert result.done_sentinel is False
    assert sent["url"] == "https://api.anthropic.com/v1/messages"
    assert sent["headers"]["x-api-key"] == "secret-key"
    assert sent["headers"]["anthropic-version"] == "2023-06-01"
    assert sent["headers"]["accept"] == "text/event-stream"
    assert "Authorization" not in sent["headers"]
    body = json.loads(sent["content"])
    assert body["system"] == "be brief"
    assert body["max_tokens"] == 4096


def test_google_stream(fake_http, stub_settings):
    fake_http.response = FakeResponse(
        [
            'data: {"candidates":[{"content":{"parts":[{"text":"Gem"}],"role":"model"}}]}\r',
            "\r",
            'data: {"candidates":[{"content":{"parts":[{"text":"ini"}],"role":"model"},"finishReason":"STOP"}]}\r',
        ]
    )
    tokens = []
    stream_chat(_request("google", model_id="gemini-2.5-flash"), tokens.append, settings=stub_settings)

    sent = fake_http.last_request
    assert tokens == ["Gem", "ini"]
    assert sent["url"] == (
        "https://generativelanguage.googleapis.com/v1beta/models/"
        "gemini-2.5-flash:streamGenerateContent?alt=sse&key=secret-key"
    )
    assert "Authorization" not in sent["headers"]
    assert "x-api-key" not in sent["headers"]


def test_end_of_body_without_done_completes(fake_http, stub_settings):
    fake_http.response = FakeResponse([_openai_line("only")])
    tokens = []
    controller = StreamController(stub_settings)
    result = controller.stream(_request(), tokens.append)
    assert tokens == ["only"]
    assert controller.state == StreamState.COMPLETED
    assert result.done_sentinel is False


def test_unknown_provider_fails_without_network(fake_http, stub_settings):
    controller = StreamController(stub_settings)
    with pytest.raises(UnsupportedProviderError) as exc:
        controller.stream(_request("made-up-vendor"), lambda t: None)
    assert exc.value.code == "UNSUPPORTED_PROVIDER"
    assert controller.state == StreamState.FAILED
    assert fake_http.requests == []


def test_missing_base_url(monkeypatch, fake_http, stub_settings):
    monkeypatch.setattr("chat_core.streaming.controller.lookup_default_base_url", lambda pid: None)
    with pytest.raises(MissingProviderBaseUrlError):
        stream_chat(_request(), lambda t: None, settings=stub_settings)
    assert fake_http.requests == []


def test_non_success_status_fails_without_tokens(fake_http, stub_settings, caplog):
    fake_http.response = FakeResponse(
        [_openai_line("should not arrive")],
        status_code=401,
        text='{"error":{"message":"invalid api key"}}',
    )
    tokens = []
    controller = StreamController(stub_settings)
    with caplog.at_level(logging.ERROR, logger="chat_core"):
        with pytest.raises(ProviderRequestFailedError) as exc:
            controller.stream(_request(), tokens.append)

    assert exc.value.http_status == 401
    assert tokens == []
    assert controller.state == StreamState.FAILED
    assert fake_http.response.closed
    assert any("invalid api key" in r.getMessage() for r in caplog.records)


def test_callback_error_propagates_unchanged(fake_http, stub_settings):
    fake_http.response = FakeResponse([_openai_line("a"), _openai_line("b"), _openai_line("c")])
    seen = []

    def on_token(token):
        seen.append(token)
        if token == "b":
            raise KeyError("ui closed")

    controller = StreamController(stub_settings)
    with pytest.raises(KeyError):
        controller.stream(_request(), on_token)
    assert seen == ["a", "b"]
    assert controller.state == StreamState.FAILED
    assert fake_http.response.lines_read == 2
    assert fake_http.response.closed


def test_malformed_frame_aborts_stream(fake_http, stub_settings):
    fake_http.response = FakeResponse([_openai_line("ok"), "data: {not json", _openai_line("late")])
    tokens = []
    with pytest.raises(FrameDecodeError):
        stream_chat(_request(), tokens.append, settings=stub_settings)
    assert tokens == ["ok"]


def test_read_error_mid_stream(fake_http, stub_settings):
    fake_http.response = FakeResponse([_openai_line("partial"), httpx.ReadError("connection reset")])
    tokens = []
    with pytest.raises(NetworkError) as exc:
        stream_chat(_request(), tokens.append, settings=stub_settings)
    assert tokens == ["partial"]
    assert isinstance(exc.value.__cause__, httpx.ReadError)
    assert fake_http.response.closed


def test_connect_error(fake_http, stub_settings):
    fake_http.send_error = httpx.ConnectError("connection refused")
    controller = StreamController(stub_settings)
    with pytest.raises(NetworkError) as exc:
        controller.stream(_request(), lambda t: None)
    assert exc.value.code == "NETWORK_ERROR"
    assert controller.state == StreamState.FAILED


def test_cancellation_between_lines(fake_http, stub_settings):
    fake_http.response = FakeResponse([_openai_line("a"), _openai_line("b"), _openai_line("c")])
    tokens = []

    def should_cancel():
        return len(tokens) >= 1

    with pytest.raises(StreamCancelledError):
        stream_chat(_request(), tokens.append, should_cancel=should_cancel, settings=stub_settings)
    assert tokens == ["a"]
    assert fake_http.response.closed


def test_cancelled_before_connect(fake_http, stub_settings):
    with pytest.raises(StreamCancelledError):
        stream_chat(_request(), lambda t: None, should_cancel=lambda: True, settings=stub_settings)
    assert fake_http.requests == []


def test_controller_is_single_use(fake_http, stub_settings):
    fake_http.response = FakeResponse([])
    controller = StreamController(stub_settings)
    controller.stream(_request(), lambda t: None)
    with pytest.raises(RuntimeError):
        controller.stream(_request(), lambda t: None)
