"""Server-Sent-Events 子集解码。

只关心 data 行：注释、event/id/retry 等字段一律忽略，
遇到 [DONE] 哨兵即停止读取。没有哨兵的正常结束也视为成功。
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


@dataclass(frozen=True)
class Frame:
    """一条 data 行去掉前缀后的内容（JSON 文本或哨兵）。"""

    data: str

    @property
    def is_done(self) -> bool:
        return self.data == DONE_SENTINEL


def decode_line(line: str) -> Optional[Frame]:
    """解码单行，不是有效 data 帧时返回 None。"""

    line = line.rstrip("\r")
    if not line or line.startswith(":"):
        return None
    if not line.startswith(DATA_PREFIX):
        return None
    data = line[len(DATA_PREFIX):].lstrip(" ")
    if not data:
        return None
    return Frame(data=data)


def iter_frames(lines: Iterable[str]) -> Iterator[Frame]:
    """从行序列中产出 data 帧。

    [DONE] 哨兵帧作为最后一帧产出，之后不再读取任何行。
    """

    for line in lines:
        frame = decode_line(line)
        if frame is None:
            continue
        yield frame
        if frame.is_done:
            return
