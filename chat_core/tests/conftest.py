import httpx
import pytest

from chat_core.config.settings import Settings
from chat_core.tests.fakes import FakeHttp


@pytest.fixture
def fake_http(monkeypatch):
    http = FakeHttp()

    class Client:
        def __init__(self, *a, **kw):
            http.client_kwargs = kw

        def __enter__(self):
            return self

        def __exit__(self, *a):
            http.client_closed = True
            return False

        def build_request(self, method, url, content=None, headers=None):
            return {"method": method, "url": url, "content": content, "headers": headers}

        def send(self, request, stream=False):
            assert stream is True
            http.requests.append(request)
            if http.send_error is not None:
                raise http.send_error
            return http.response

    monkeypatch.setattr("httpx.Client", Client)
    return http


@pytest.fixture
def stub_settings():
    return Settings(
        _env_file=None,
        openai_api_key="sk-openai-test-key",
        anthropic_api_key="sk-ant-test-key",
        google_api_key="google-test-key",
        client_title="chat-core-test",
    )


@pytest.fixture
def mock_transport(monkeypatch):
    """真实的 httpx.Client + MockTransport，响应体按给定的字节 chunk 原样下发。

    用法：mock_transport(chunks, status_code=200)，返回记录请求的列表。
    """
    real_client = httpx.Client

    def install(chunks, status_code=200):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(status_code, content=iter(list(chunks)))

        def client_factory(*a, **kw):
            return real_client(*a, transport=httpx.MockTransport(handler), **kw)

        monkeypatch.setattr("httpx.Client", client_factory)
        return seen

    return install
