"""流控制器。

串起 registry、请求构造、传输、SSE 解码与 token 提取：

    Idle -> Dispatched -> Streaming -> Completed | Failed

- Idle -> Dispatched: 解析厂商家族，未知 provider 直接失败，不发起网络请求。
- Dispatched -> Streaming: 解析 base URL，构造请求体并发起请求。
- Streaming: 每个非空 token 同步回调一次，顺序与字节到达顺序一致。
- Completed: 收到 [DONE] 或响应体正常结束。

任何错误都会同步向上传播；已经回调出去的 token 不会撤回。
"""

from typing import Optional

from chat_core.config.settings import Settings, settings as default_settings
from chat_core.domain.exceptions import (
    MissingProviderBaseUrlError,
    StreamCancelledError,
    UnsupportedProviderError,
)
from chat_core.domain.models import (
    CancelCheck,
    StreamRequest,
    StreamResult,
    StreamState,
    TokenCallback,
)
from chat_core.infrastructure.http.transport import build_timeout, iter_response_lines, open_stream
from chat_core.infrastructure.logging.logger import logger
from chat_core.providers.registry import lookup_default_base_url, resolve_family
from chat_core.streaming.sse import iter_frames


class StreamController:
    """单次流式调用的状态机。

    一个实例对应一次调用；并发会话应各自创建实例，实例之间没有共享的可变状态。
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings or default_settings
        self.state = StreamState.IDLE

    def stream(
        self,
        request: StreamRequest,
        on_token: TokenCallback,
        should_cancel: Optional[CancelCheck] = None,
    ) -> StreamResult:
        """执行一次流式调用，每个非空 token 调用一次 on_token。"""

        if self.state != StreamState.IDLE:
            raise RuntimeError(f"StreamController already used (state={self.state.value})")
        try:
            return self._run(request, on_token, should_cancel)
        except Exception as e:
            self.state = StreamState.FAILED
            logger.warning(
                f"stream failed: {e}",
                extra={"extra": {"provider": request.provider_id, "error": type(e).__name__}},
            )
            raise

    def _run(
        self,
        request: StreamRequest,
        on_token: TokenCallback,
        should_cancel: Optional[CancelCheck],
    ) -> StreamResult:
        provider = request.provider_id
        family = resolve_family(provider, self._settings.client_title)
        if family is None:
            raise UnsupportedProviderError(
                code="UNSUPPORTED_PROVIDER",
                message=f"Unsupported provider: {provider!r}",
                provider=provider,
            )
        self.state = StreamState.DISPATCHED

        base_url = request.base_url or lookup_default_base_url(provider)
        if not base_url:
            raise MissingProviderBaseUrlError(
                code="MISSING_PROVIDER_BASE_URL",
                message=f"No base URL configured for provider {provider!r}",
                provider=provider,
            )
        endpoint = family.endpoint(request, base_url)
        payload = family.build_payload(request)
        headers = family.headers(request)
        timeout = build_timeout(self._settings.http_timeout, self._settings.stream_read_timeout)

        logger.info(
            "stream dispatched",
            extra={
                "extra": {
                    "provider": provider,
                    "family": family.name,
                    "model": request.model_id,
                    # Google 的 key 在查询串里，不能写入日志
                    "endpoint": endpoint.split("?", 1)[0],
                    "messages": len(request.messages),
                }
            },
        )

        _check_cancel(should_cancel, provider)
        result = StreamResult(provider_id=provider, model_id=request.model_id)
        with open_stream(endpoint, headers, payload, timeout, provider=provider) as response:
            self.state = StreamState.STREAMING
            for frame in iter_frames(self._lines(response, provider, should_cancel)):
                if frame.is_done:
                    result.done_sentinel = True
                    break
                result.frame_count += 1
                token = family.extract_token(frame.data)
                if token:
                    on_token(token)
                    result.token_count += 1

        self.state = StreamState.COMPLETED
        logger.info(
            "stream completed",
            extra={
                "extra": {
                    "provider": provider,
                    "tokens": result.token_count,
                    "frames": result.frame_count,
                    "done_sentinel": result.done_sentinel,
                }
            },
        )
        return result

    @staticmethod
    def _lines(response, provider: str, should_cancel: Optional[CancelCheck]):
        for line in iter_response_lines(response, provider):
            _check_cancel(should_cancel, provider)
            yield line


def _check_cancel(should_cancel: Optional[CancelCheck], provider: str) -> None:
    if should_cancel is not None and should_cancel():
        raise StreamCancelledError(
            code="STREAM_CANCELLED",
            message="Stream cancelled by caller",
            provider=provider,
        )


def stream_chat(
    request: StreamRequest,
    on_token: TokenCallback,
    should_cancel: Optional[CancelCheck] = None,
    settings: Optional[Settings] = None,
) -> StreamResult:
    """便捷入口：创建一次性的 StreamController 并执行调用。"""

    return StreamController(settings).stream(request, on_token, should_cancel)
