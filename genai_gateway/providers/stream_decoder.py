"""OpenAI 兼容流式协议（SSE 风格）解码器。

协议约定：
- 以换行分隔的帧；只有以 "data: " 开头的帧有意义。
- "data: [DONE]" 结束整个序列，不产出片段。
- 其他 data 帧按 JSON 解析，choices[0].delta.content 作为一个 StreamChunk。
- 无法解析的帧直接跳过，单个坏帧不会中断后续输出。

解码是拉取式的：只有消费者请求下一个片段时才会读取并解析下一帧。
"""

import codecs
import json
import logging
from typing import Any, Iterable, Iterator, Optional, Union

from genai_gateway.domain.models import StreamChunk
from genai_gateway.infrastructure.logging.logger import log_event

DATA_PREFIX = "data: "
DONE_FRAME = "data: [DONE]"


class StreamDecoder:
    """把原始字节/文本块解码为 StreamChunk 序列。"""

    def iter_frames(self, chunks: Iterable[Union[str, bytes]]) -> Iterator[str]:
        """把任意切分的网络块重新组帧为完整的行。

        跨块的帧会被拼接；bytes 按 UTF-8 增量解码，多字节字符被拆开也不会出错。
        """

        utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        buffer = ""
        for chunk in chunks:
            if isinstance(chunk, bytes):
                buffer += utf8.decode(chunk)
            else:
                buffer += chunk
            while "\n" in buffer:
                line, buffer = buffer.split("\n", 1)
                yield line.rstrip("\r")
        buffer += utf8.decode(b"", final=True)
        if buffer:
            yield buffer.rstrip("\r")

    def decode(self, chunks: Iterable[Union[str, bytes]]) -> Iterator[StreamChunk]:
        frames = self.iter_frames(chunks)
        try:
            for frame in frames:
                if not frame.startswith(DATA_PREFIX):
                    continue
                if frame == DONE_FRAME:
                    return
                content = self.parse_frame(frame[len(DATA_PREFIX):])
                if content:
                    yield StreamChunk(text=content)
        finally:
            frames.close()

    @staticmethod
    def parse_frame(data_str: str) -> Optional[str]:
        """解析单个 data 帧，返回增量文本；坏帧返回 None。"""

        try:
            payload: Any = json.loads(data_str)
        except json.JSONDecodeError:
            log_event(logging.DEBUG, "Skipped malformed stream frame", frame=data_str[:120])
            return None
        try:
            content = payload["choices"][0]["delta"].get("content")
        except (KeyError, IndexError, TypeError, AttributeError):
            return None
        if isinstance(content, str):
            return content
        return None
