"""对外 API 服务模块。

提供简化的函数接口供终端 UI 调用：密钥与 base URL 覆盖从配置中补全，
流式输出既可以逐 token 回调，也会在结束时拼成完整回复返回。
"""

from typing import List, Optional

from chat_core.config.settings import Settings, settings as default_settings
from chat_core.domain.exceptions import ValidationError
from chat_core.domain.models import Message, StreamRequest, TokenCallback
from chat_core.streaming.controller import stream_chat


def build_request(
    provider_id: str,
    model_id: str,
    messages: List[Message],
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> StreamRequest:
    """构造 StreamRequest，未显式给出的密钥/base URL 从配置读取。

    Raises:
        ValidationError: 找不到该 provider 的 API 密钥。
    """
    cfg = settings or default_settings
    key = api_key or cfg.api_key_for(provider_id)
    if not key:
        raise ValidationError(
            code="MISSING_API_KEY",
            message=f"API key for provider {provider_id!r} not set",
            provider=provider_id,
        )
    return StreamRequest(
        provider_id=provider_id,
        model_id=model_id,
        api_key=key,
        base_url=base_url or cfg.base_url_for(provider_id),
        messages=list(messages),
    )


def stream_reply(
    messages: List[Message],
    provider_id: Optional[str] = None,
    model_id: Optional[str] = None,
    on_token: Optional[TokenCallback] = None,
    settings: Optional[Settings] = None,
) -> str:
    """运行一轮流式对话并返回完整回复文本。

    Args:
        messages: 本轮发送的有序消息
        provider_id: 厂商标识，默认取配置中的 default_provider
        model_id: 模型 ID，默认取配置中的 default_model
        on_token: 可选的逐 token 回调（例如终端实时输出）
        settings: 可选的配置对象，测试时可注入

    Returns:
        所有 token 按到达顺序拼接后的文本

    Raises:
        各种 domain.exceptions 中定义的异常；回调自身的异常原样传播
    """
    cfg = settings or default_settings
    request = build_request(
        provider_id or cfg.default_provider,
        model_id or cfg.default_model,
        messages,
        settings=cfg,
    )
    parts: List[str] = []

    def collect(token: str) -> None:
        parts.append(token)
        if on_token is not None:
            on_token(token)

    stream_chat(request, collect, settings=cfg)
    return "".join(parts)
