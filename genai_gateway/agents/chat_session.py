"""多轮对话会话。

ChatSession 独占一段只追加的会话历史，每一轮：
1. 追加用户消息；
2. 带着完整历史调用 RequestRouter；
3. 追加由结果文本构成的模型消息。

同一会话同一时刻只允许一轮对话在进行中，第二个并发调用会被拒绝
（ChatSessionBusyError），而不是排队或与第一轮交错写入历史。
"""

import logging
import threading
from typing import Iterable, Iterator, List, Optional, Tuple

from genai_gateway.domain.conversation import Conversation
from genai_gateway.domain.exceptions import ChatSessionBusyError
from genai_gateway.domain.models import GenerationResult, Message, MessageLike, StreamChunk, coerce_message
from genai_gateway.infrastructure.logging.logger import log_event
from genai_gateway.providers.base import ChunkStream


class ChatSession:
    def __init__(self, model, history: Optional[Iterable[MessageLike]] = None):
        self._model = model
        self._conversation = Conversation(coerce_message(m) for m in history or [])
        self._turn_lock = threading.Lock()

    def send_message(self, text: str) -> GenerationResult:
        """发送一条消息并等待完整结果；每次调用恰好新增两条历史。"""

        self._begin_turn()
        try:
            self._conversation.append(Message.from_text("user", text))
            log_event(logging.INFO, "Chat message", history_length=len(self._conversation))
            result = self._model.generate_from_history(self._conversation.snapshot())
            self._conversation.append(Message.from_text("model", result.text))
            return result
        finally:
            self._turn_lock.release()

    def send_message_stream(self, text: str) -> ChunkStream:
        """流式发送消息。

        用户消息立即写入历史；模型消息只在流被完整消费后写入。
        提前 close() 不会写入模型消息，但会结束本轮对话。
        """

        self._begin_turn()
        try:
            self._conversation.append(Message.from_text("user", text))
            log_event(logging.INFO, "Chat message (streaming)", history_length=len(self._conversation))
            upstream = self._model.stream_from_history(self._conversation.snapshot())
        except Exception:
            self._turn_lock.release()
            raise
        return ChunkStream(self._collect(upstream), on_close=self._turn_lock.release)

    def _collect(self, upstream: ChunkStream) -> Iterator[StreamChunk]:
        pieces: List[str] = []
        with upstream:
            for chunk in upstream:
                pieces.append(chunk.text)
                yield chunk
        self._conversation.append(Message.from_text("model", "".join(pieces)))

    def history(self) -> Tuple[Message, ...]:
        return self._conversation.snapshot()

    get_history = history

    @property
    def busy(self) -> bool:
        return self._turn_lock.locked()

    def _begin_turn(self) -> None:
        if not self._turn_lock.acquire(blocking=False):
            raise ChatSessionBusyError(
                code="CHAT_SESSION_BUSY",
                message="Another message is still in flight on this chat session",
                http_status=409,
            )
