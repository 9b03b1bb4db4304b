"""统一业务异常模型。

流式核心抛出的所有错误都继承自 BusinessError，
便于终端 UI 层做统一捕获与用户提示。调用方回调自身抛出的异常
不会被包装，原样向上传播。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "UNSUPPORTED_PROVIDER"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 provider、endpoint 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class UnsupportedProviderError(BusinessError):
    """provider_id 不在 registry 中，不会发起任何网络请求。"""


class MissingProviderBaseUrlError(BusinessError):
    """既没有显式 base_url 覆盖，也没有 registry 默认值。"""


class ProviderRequestFailedError(BusinessError):
    """厂商返回非 2xx 状态码；http_status 为上游实际状态码。"""


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、读取响应体中断等。"""


class FrameDecodeError(BusinessError):
    """data 帧不是合法 JSON，整个流中止。"""


class StreamCancelledError(BusinessError):
    """调用方通过取消检查中止了流。"""


class ValidationError(BusinessError):
    """参数或配置校验失败。"""
