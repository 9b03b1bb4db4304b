"""Provider 静态配置表。

provider_id（大小写敏感）到 {默认 base URL, 厂商家族} 的映射，
进程级只读数据，可在并发调用之间无锁共享。"""

from types import MappingProxyType
from typing import List, Mapping, Optional

from chat_core.providers.anthropic_client import AnthropicFamily
from chat_core.providers.base import ProviderSpec, VendorFamily, VendorFamilyKind
from chat_core.providers.google_client import GoogleFamily
from chat_core.providers.openai_compatible import OpenAICompatibleFamily

DEFAULT_CLIENT_TITLE = "chat-core"

OPENAI_CONFIG = ProviderSpec(
    provider_id="openai",
    family=VendorFamilyKind.OPENAI_COMPATIBLE,
    default_base_url="https://api.openai.com/v1",
    api_key_env="OPENAI_API_KEY",
)

# 聚合商：额外发送 HTTP-Referer / X-Title
OPENROUTER_CONFIG = ProviderSpec(
    provider_id="openrouter",
    family=VendorFamilyKind.OPENAI_COMPATIBLE,
    default_base_url="https://openrouter.ai/api/v1",
    api_key_env="OPENROUTER_API_KEY",
    send_referrer_headers=True,
)

OPENCODE_CONFIG = ProviderSpec(
    provider_id="opencode",
    family=VendorFamilyKind.OPENAI_COMPATIBLE,
    default_base_url="https://opencode.ai/zen/v1",
    api_key_env="OPENCODE_API_KEY",
    send_referrer_headers=True,
)

ZENMUX_CONFIG = ProviderSpec(
    provider_id="zenmux",
    family=VendorFamilyKind.OPENAI_COMPATIBLE,
    default_base_url="https://zenmux.ai/api/v1",
    api_key_env="ZENMUX_API_KEY",
    send_referrer_headers=True,
)

ANTHROPIC_CONFIG = ProviderSpec(
    provider_id="anthropic",
    family=VendorFamilyKind.ANTHROPIC,
    default_base_url="https://api.anthropic.com/v1",
    api_key_env="ANTHROPIC_API_KEY",
)

GOOGLE_CONFIG = ProviderSpec(
    provider_id="google",
    family=VendorFamilyKind.GOOGLE,
    default_base_url="https://generativelanguage.googleapis.com/v1beta",
    api_key_env="GOOGLE_API_KEY",
)


PROVIDER_REGISTRY: Mapping[str, ProviderSpec] = MappingProxyType(
    {
        spec.provider_id: spec
        for spec in (
            OPENAI_CONFIG,
            OPENROUTER_CONFIG,
            OPENCODE_CONFIG,
            ZENMUX_CONFIG,
            ANTHROPIC_CONFIG,
            GOOGLE_CONFIG,
        )
    }
)

_FAMILY_CLASSES = MappingProxyType(
    {
        VendorFamilyKind.OPENAI_COMPATIBLE: OpenAICompatibleFamily,
        VendorFamilyKind.ANTHROPIC: AnthropicFamily,
        VendorFamilyKind.GOOGLE: GoogleFamily,
    }
)


def get_provider_spec(provider_id: str) -> Optional[ProviderSpec]:
    return PROVIDER_REGISTRY.get(provider_id)


def list_provider_ids() -> List[str]:
    return list(PROVIDER_REGISTRY)


def lookup_default_base_url(provider_id: str) -> Optional[str]:
    spec = PROVIDER_REGISTRY.get(provider_id)
    return spec.default_base_url if spec else None


def resolve_family(provider_id: str, client_title: str = DEFAULT_CLIENT_TITLE) -> Optional[VendorFamily]:
    """根据 provider_id 创建对应家族的实现，未知 provider 返回 None。"""

    spec = PROVIDER_REGISTRY.get(provider_id)
    if spec is None:
        return None
    return _FAMILY_CLASSES[spec.family](spec, client_title)
