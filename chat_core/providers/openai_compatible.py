"""OpenAI 兼容家族适配器。

openai、openrouter、opencode、zenmux 共用同一套 Chat Completions 流式协议：

- 请求：POST {base}/chat/completions，Bearer 鉴权。
- 响应：data: {"choices":[{"delta":{"content":"..."}}]}，以 data: [DONE] 结束。

聚合商（openrouter/opencode/zenmux）额外发送 HTTP-Referer 与 X-Title，
用于在其控制台中标识客户端。
"""

from typing import Dict, Optional

from chat_core.domain.models import StreamRequest
from chat_core.providers.base import (
    ProviderSpec,
    as_text,
    common_headers,
    dump_payload,
    field,
    first_item,
    join_url,
    load_frame,
)

REFERRER_URL = "https://opencode.ai/"


class OpenAICompatibleFamily:
    """OpenAI 兼容协议实现。"""

    name = "openai-compatible"

    def __init__(self, spec: ProviderSpec, client_title: str):
        self._spec = spec
        self._client_title = client_title

    def build_payload(self, req: StreamRequest) -> bytes:
        """角色与顺序原样保留，system 仍作为普通消息发送。"""

        return dump_payload(
            {
                "model": req.model_id,
                "stream": True,
                "messages": [{"role": m.role.value, "content": m.content} for m in req.messages],
            }
        )

    def endpoint(self, req: StreamRequest, base_url: str) -> str:
        return join_url(base_url, "/chat/completions")

    def headers(self, req: StreamRequest) -> Dict[str, str]:
        headers = common_headers(self._client_title)
        headers["Authorization"] = f"Bearer {req.api_key}"
        if self._spec.send_referrer_headers:
            headers["HTTP-Referer"] = REFERRER_URL
            headers["X-Title"] = self._client_title
        return headers

    def extract_token(self, data: str) -> Optional[str]:
        """优先读取 choices[0].delta.content，兼容旧版 completions 的 choices[0].text。"""

        parsed = load_frame(data, self._spec.provider_id)
        choice = first_item(field(parsed, "choices"))
        if choice is None:
            return None
        delta = field(choice, "delta")
        if isinstance(delta, dict) and "content" in delta:
            return as_text(delta["content"])
        return as_text(field(choice, "text"))
