"""离线确定性模拟后端。

不发起任何网络请求，输出只取决于是否声明了工具：
- 非流式：固定的描述性句子 + 一个占位候选。
- 流式：逐词输出固定句子，每个词之间有人为延迟，模拟真实的 token 节奏。
"""

import time
from typing import Iterator, List, Optional

from genai_gateway.domain.models import Candidate, GenerationResult, Message, StreamChunk
from genai_gateway.tools.definitions import Tool
from genai_gateway.tools.emulator import ToolCallEmulator

MOCK_RESPONSE_TEXT = (
    "This is a simulated response from GenAI Studio Preview. "
    "The UI is functional, but actual AI generation is mocked for offline testing."
)
MOCK_STREAM_TEXT = "This is a simulated streaming response from GenAI Studio Preview."
MOCK_CANDIDATE_TEXT = "Mock response part"


class DeterministicMockGenerator:
    """可在任意多个会话之间共享的无状态 mock 生成器。"""

    name = "mock"

    def __init__(
        self,
        latency_ms: int = 500,
        stream_delay_ms: int = 100,
        emulator: Optional[ToolCallEmulator] = None,
    ):
        self._latency = latency_ms / 1000.0
        self._stream_delay = stream_delay_ms / 1000.0
        self._emulator = emulator or ToolCallEmulator()

    def generate(self, tools: Optional[List[Tool]] = None) -> GenerationResult:
        if self._latency:
            time.sleep(self._latency)
        if tools:
            emulated = self._emulator.emulate(tools)
            if emulated is not None:
                return emulated
        return GenerationResult(
            text=MOCK_RESPONSE_TEXT,
            function_calls=[],
            candidates=[Candidate(index=0, content=Message.from_text("model", MOCK_CANDIDATE_TEXT))],
            served_by="mock",
        )

    def generate_stream(self) -> Iterator[StreamChunk]:
        for word in MOCK_STREAM_TEXT.split(" "):
            if self._stream_delay:
                time.sleep(self._stream_delay)
            yield StreamChunk(text=word + " ")
