"""LLM Provider 集成层。

该包下的模块负责：
- 定义 VendorFamily 抽象接口与公共工具 (base)。
- 维护 provider_id 与默认 base URL / 厂商家族的映射 (registry)。
- 提供各厂商家族的具体实现 (openai_compatible、anthropic_client、google_client)。
"""

from chat_core.providers.base import ProviderSpec, VendorFamily, VendorFamilyKind
from chat_core.providers.registry import (
    get_provider_spec,
    list_provider_ids,
    lookup_default_base_url,
    resolve_family,
)

__all__ = [
    "ProviderSpec",
    "VendorFamily",
    "VendorFamilyKind",
    "get_provider_spec",
    "list_provider_ids",
    "lookup_default_base_url",
    "resolve_family",
]
