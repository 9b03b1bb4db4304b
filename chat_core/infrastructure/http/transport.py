"""HTTP 传输层。

每次流式调用：

1. 新建一个 httpx.Client（不复用连接，不读取代理环境变量）。
2. 发送一次 POST，以 stream=True 拿到响应头。
3. 非 2xx 时读完错误体写入日志，抛出 ProviderRequestFailedError。
4. 成功时把响应交给调用方逐行读取，退出时无条件关闭响应与连接。

这里不做任何重试，重试/退避策略属于调用方。
"""

from contextlib import contextmanager
from typing import Dict, Iterator, Optional

import httpx

from chat_core.domain.exceptions import NetworkError, ProviderRequestFailedError
from chat_core.infrastructure.logging.logger import logger


def build_timeout(connect_timeout: float, read_timeout: Optional[float]) -> httpx.Timeout:
    """连接/写入/连接池使用 connect_timeout，读取使用 read_timeout（None 为不限）。"""

    return httpx.Timeout(connect_timeout, read=read_timeout)


@contextmanager
def open_stream(
    url: str,
    headers: Dict[str, str],
    body: bytes,
    timeout: httpx.Timeout,
    provider: str = "",
) -> Iterator[httpx.Response]:
    """发送 POST 请求并以流的方式产出响应。"""

    with httpx.Client(timeout=timeout, trust_env=False) as client:
        request = client.build_request("POST", url, content=body, headers=headers)
        try:
            response = client.send(request, stream=True)
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接超时等
            raise NetworkError(code="NETWORK_ERROR", message=str(e), provider=provider) from e
        try:
            if not 200 <= response.status_code < 300:
                error_body = _read_error_body(response)
                logger.error(
                    f"{provider} request failed: status={response.status_code} body={error_body}",
                    extra={"extra": {"provider": provider, "http_status": response.status_code}},
                )
                raise ProviderRequestFailedError(
                    code="PROVIDER_REQUEST_FAILED",
                    message=f"{provider} request failed with status {response.status_code}",
                    http_status=response.status_code,
                    provider=provider,
                )
            yield response
        finally:
            response.close()


def iter_response_lines(response: httpx.Response, provider: str = "") -> Iterator[str]:
    """逐行读取响应体，读取过程中的网络错误统一包装为 NetworkError。

    只按 b"\\n" 切分（行尾的 \\r 由 SSE 解码负责去掉）。JSON 字符串里允许
    未转义的 U+2028/U+2029/U+0085，不能用 str.splitlines 语义切行。
    每行凑齐后再按 UTF-8 解码，跨 chunk 的多字节字符不会被截断。
    """

    chunks = response.iter_bytes()
    buffer = b""
    while True:
        try:
            chunk = next(chunks)
        except StopIteration:
            break
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e), provider=provider) from e
        buffer += chunk
        *lines, buffer = buffer.split(b"\n")
        for line in lines:
            yield line.decode("utf-8", errors="replace")
    # 最后一行可以没有换行符
    if buffer:
        yield buffer.decode("utf-8", errors="replace")


def _read_error_body(response: httpx.Response) -> str:
    try:
        response.read()
    except httpx.RequestError as e:
        logger.warning(f"failed to read error body: {e}")
        return ""
    return response.text
