"""Google Gemini (Generative Language API) 适配器。

- API key 放在 URL 查询参数中，不发送鉴权头。
- system 提示放在 system_instruction.parts[0].text。
- 文本统一嵌套在 parts 数组里；assistant 角色在 Gemini 中叫 model。
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
    first_item,
    load_frame,
    trim_trailing_slash,
)


class GoogleFamily:
    name = "google"

    def __init__(self, spec: ProviderSpec, client_title: str):
        self._spec = spec
        self._client_title = client_title

    def build_payload(self, req: StreamRequest) -> bytes:
        payload: Dict[str, Any] = {}
        system_prompt = collect_system_prompt(req.messages)
        if system_prompt:
            payload["system_instruction"] = {"parts": [{"text": system_prompt}]}
        payload["contents"] = [
            {"role": _google_role(m.role), "parts": [{"text": m.content}]}
            for m in req.messages
            if m.role != Role.SYSTEM
        ]
        return dump_payload(payload)

    def endpoint(self, req: StreamRequest, base_url: str) -> str:
        base = trim_trailing_slash(base_url)
        return f"{base}/models/{req.model_id}:streamGenerateContent?alt=sse&key={req.api_key}"

    def headers(self, req: StreamRequest) -> Dict[str, str]:
        return common_headers(self._client_title)

    def extract_token(self, data: str) -> Optional[str]:
        parsed = load_frame(data, self._spec.provider_id)
        candidate = first_item(field(parsed, "candidates"))
        part = first_item(field(field(candidate, "content"), "parts"))
        return as_text(field(part, "text"))


def _google_role(role: Role) -> str:
    if role == Role.ASSISTANT:
        return "model"
    return "user"
