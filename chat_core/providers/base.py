"""VendorFamily 抽象接口与公共工具。

流控制器不直接区分厂商名，而是依赖此协议：

- 每个厂商家族实现一个 VendorFamily（OpenAI 兼容、Anthropic、Google）。
- 负责：把 StreamRequest 转成请求体、给出 endpoint 与请求头，
  以及从单个 data 帧中提取文本增量。

家族在调用开始时选定一次，之后控制器代码与厂商无关。
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol

from chat_core.domain.exceptions import FrameDecodeError
from chat_core.domain.models import Message, Role, StreamRequest

CLIENT_VERSION = "0.1.0"


class VendorFamilyKind(str, Enum):
    """共享同一套线协议的厂商分组。"""

    OPENAI_COMPATIBLE = "openai-compatible"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"


@dataclass(frozen=True)
class ProviderSpec:
    """registry 中单个 provider 的静态配置。"""

    provider_id: str
    family: VendorFamilyKind
    default_base_url: str
    api_key_env: str
    send_referrer_headers: bool = False


class VendorFamily(Protocol):
    """厂商家族协议。

    实现者需要提供：
    - name: 家族名称，用于日志。
    - build_payload(req): 生成序列化后的 JSON 请求体，确定且无副作用。
    - endpoint(req, base_url): 完整请求 URL。
    - headers(req): 请求头（含鉴权）。
    - extract_token(data): 从一个 data 帧提取文本增量，无关帧返回 None。
    """

    name: str

    def build_payload(self, req: StreamRequest) -> bytes:
        ...

    def endpoint(self, req: StreamRequest, base_url: str) -> str:
        ...

    def headers(self, req: StreamRequest) -> Dict[str, str]:
        ...

    def extract_token(self, data: str) -> Optional[str]:
        ...


def user_agent(client_title: str) -> str:
    return f"{client_title}/{CLIENT_VERSION}"


def common_headers(client_title: str) -> Dict[str, str]:
    """所有家族共用的请求头；Connection: close 保证连接不被复用。"""

    return {
        "Content-Type": "application/json",
        "User-Agent": user_agent(client_title),
        "Connection": "close",
    }


def dump_payload(payload: Dict[str, Any]) -> bytes:
    """紧凑 JSON 序列化，键顺序即插入顺序，非 ASCII 字符原样保留。"""

    return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def load_frame(data: str, provider: str = "") -> Any:
    """解析一个 data 帧；语法错误是致命的，会中止整个流。"""

    try:
        return json.loads(data, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as e:
        raise FrameDecodeError(
            code="FRAME_DECODE_ERROR",
            message=f"invalid JSON frame: {e}",
            provider=provider,
        ) from e


def _reject_constant(name: str) -> Any:
    # NaN / Infinity / -Infinity 不是合法 JSON
    raise ValueError(f"non-standard JSON constant {name}")


def trim_trailing_slash(url: str) -> str:
    if url.endswith("/"):
        return url[:-1]
    return url


def join_url(base_url: str, suffix: str) -> str:
    base = trim_trailing_slash(base_url)
    if not suffix:
        return base
    if suffix.startswith("/"):
        return f"{base}{suffix}"
    return f"{base}/{suffix}"


def collect_system_prompt(messages: List[Message]) -> str:
    """按原顺序把所有 system 消息用空行拼接。"""

    return "\n\n".join(m.content for m in messages if m.role == Role.SYSTEM)


def field(value: Any, key: str) -> Any:
    if isinstance(value, dict):
        return value.get(key)
    return None


def first_item(value: Any) -> Any:
    if isinstance(value, list) and value:
        return value[0]
    return None


def as_text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    return None
