"""统一的流式对话数据模型。

本模块定义了流式核心在不同厂商之间共享的标准数据结构：

- Message: 一条对话消息（system/user/assistant）。
- StreamRequest: 一次流式调用的完整请求，由上层（终端 UI）按轮次构造。
- StreamResult: 调用结束后的统计信息。

各厂商适配器（providers 包）只依赖这些模型，并负责在各自的 API JSON
和这些模型之间做转换。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional


class Role(str, Enum):
    """消息角色，固定三种，不做扩展。"""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass(frozen=True)
class Message:
    """一条对话消息，由调用方持有，核心只在单次调用期间读取。"""

    role: Role
    content: str


@dataclass
class StreamRequest:
    """一次流式调用的请求。

    - provider_id: 厂商标识，如 "openai"、"anthropic"，大小写敏感。
    - model_id: 厂商实际模型 ID，原样透传。
    - api_key: 已解析好的密钥，核心不负责密钥管理。
    - base_url: 可选的 base URL 覆盖，为空时使用 registry 默认值。
    - messages: 有序消息列表。
    """

    provider_id: str
    model_id: str
    api_key: str
    base_url: Optional[str] = None
    messages: List[Message] = field(default_factory=list)


# 每提取出一个非空 token 调用一次；调用方状态通过闭包携带
TokenCallback = Callable[[str], None]

# 取消检查：返回 True 时中止当前流
CancelCheck = Callable[[], bool]


class StreamState(str, Enum):
    """流式调用状态机。"""

    IDLE = "idle"
    DISPATCHED = "dispatched"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class StreamResult:
    """一次成功完成的流式调用的统计信息。

    token 本身只通过回调交付，这里不保留文本。
    """

    provider_id: str
    model_id: str
    token_count: int = 0
    frame_count: int = 0
    done_sentinel: bool = False
