"""Anthropic Messages API 适配器。

与 OpenAI 兼容协议的差异：

1. system 提示不是一条消息，而是顶层 system 字段（多条 system 用空行拼接）。
2. max_tokens 为必填项，这里固定为 4096。
3. 鉴权使用 x-api-key，并需要 anthropic-version 头。
4. 响应里只有 type == "content_block_delta" 的事件携带文本，
   message_start / ping / message_delta 等事件全部忽略。
"""

from typing import Any, Dict, Optional

from chat_core.domain.models import Role, StreamRequest
from chat_core.providers.base import (
    ProviderSpec,
    as_text,
    collect_system_prompt,
    common_headers,
    dump_payload,
    field,
    join_url,
    load_frame,
)

ANTHROPIC_VERSION = "2023-06-01"
MAX_TOKENS = 4096


class AnthropicFamily:
    name = "anthropic"

    def __init__(self, spec: ProviderSpec, client_title: str):
        self._spec = spec
        self._client_title = client_title

    def build_payload(self, req: StreamRequest) -> bytes:
        payload: Dict[str, Any] = {
            "model": req.model_id,
            "stream": True,
            "max_tokens": MAX_TOKENS,
        }
        system_prompt = collect_system_prompt(req.messages)
        if system_prompt:
            payload["system"] = system_prompt
        payload["messages"] = [
            {"role": _anthropic_role(m.role), "content": m.content}
            for m in req.messages
            if m.role != Role.SYSTEM
        ]
        return dump_payload(payload)

    def endpoint(self, req: StreamRequest, base_url: str) -> str:
        return join_url(base_url, "/messages")

    def headers(self, req: StreamRequest) -> Dict[str, str]:
        headers = common_headers(self._client_title)
        headers["x-api-key"] = req.api_key
        headers["anthropic-version"] = ANTHROPIC_VERSION
        headers["accept"] = "text/event-stream"
        return headers

    def extract_token(self, data: str) -> Optional[str]:
        parsed = load_frame(data, self._spec.provider_id)
        if as_text(field(parsed, "type")) != "content_block_delta":
            return None
        return as_text(field(field(parsed, "delta"), "text"))


def _anthropic_role(role: Role) -> str:
    if role == Role.ASSISTANT:
        return "assistant"
    return "user"
