"""配置管理模块。

支持从环境变量、.env 以及 config.yaml 加载配置，优先级依次递减。
"""

import os
from pathlib import Path
from typing import Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from chat_core.providers.registry import get_provider_spec


def _find_config_file() -> Optional[Path]:
    """按顺序查找 config.yaml，返回第一个存在的路径。"""
    candidates = []
    for env_name in ("CHAT_CORE_CONFIG_FILE", "AGENT_CONFIG_FILE"):
        explicit = os.getenv(env_name)
        if explicit:
            candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
    ])
    for path in candidates:
        if path.is_file():
            return path
    return None


class Settings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- Provider 相关配置 ----
    default_provider: str = Field(
        default="openai",
        description="默认使用的 provider_id，例如 openai、anthropic、google",
    )
    default_model: str = Field(default="gpt-4.1", description="默认模型 ID，原样发送给厂商")

    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API 密钥")
    openrouter_api_key: Optional[str] = Field(default=None, description="OpenRouter API 密钥")
    opencode_api_key: Optional[str] = Field(default=None, description="OpenCode Zen API 密钥")
    zenmux_api_key: Optional[str] = Field(default=None, description="ZenMux API 密钥")
    anthropic_api_key: Optional[str] = Field(default=None, description="Anthropic API 密钥")
    google_api_key: Optional[str] = Field(default=None, description="Google Gemini API 密钥")

    provider_base_urls: Dict[str, str] = Field(
        default_factory=dict,
        description="按 provider_id 覆盖 base URL，例如自建的 OpenAI 兼容网关",
    )

    http_timeout: float = Field(default=30.0, ge=1.0, description="连接/写入超时时间（秒）")
    stream_read_timeout: Optional[float] = Field(
        default=None,
        description="两次读取之间的最长等待（秒），None 表示一直等待",
    )
    client_title: str = Field(default="chat-core", description="User-Agent 与聚合商 X-Title 使用的客户端名")
    log_dir: str = Field(default="logs", description="日志目录")
    log_level: str = Field(default="INFO", description="chat_core 日志级别")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator(
        "openai_api_key",
        "openrouter_api_key",
        "opencode_api_key",
        "zenmux_api_key",
        "anthropic_api_key",
        "google_api_key",
    )
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        if v and len(v) < 10:
            raise ValueError("API key seems too short")
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=_find_config_file()),
            file_secret_settings,
        )

    def api_key_for(self, provider_id: str) -> Optional[str]:
        """按 registry 中登记的环境变量名（如 OPENAI_API_KEY）取密钥，未知 provider 返回 None。"""
        spec = get_provider_spec(provider_id)
        if spec is None:
            return None
        return getattr(self, spec.api_key_env.lower(), None)

    def base_url_for(self, provider_id: str) -> Optional[str]:
        return self.provider_base_urls.get(provider_id)


settings = Settings()
