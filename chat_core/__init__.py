"""Chat Core 顶层包。

该包提供终端聊天客户端的多厂商流式协议核心，
包括配置加载、领域模型、厂商家族适配、SSE 解码与流控制器。
"""

from chat_core.providers.base import CLIENT_VERSION as __version__
from chat_core.streaming import StreamController, stream_chat

__all__ = ["StreamController", "stream_chat", "__version__"]
