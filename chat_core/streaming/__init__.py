"""流式处理：SSE 帧解码与流控制器。"""

from chat_core.streaming.controller import StreamController, stream_chat
from chat_core.streaming.sse import Frame, decode_line, iter_frames

__all__ = ["Frame", "StreamController", "decode_line", "iter_frames", "stream_chat"]
