"""后端抽象接口与流式序列。

RequestRouter 不直接依赖具体后端，而是依赖此协议：

- 每个后端实现一个 GenerationBackend（如 LocalClient）。
- 负责：把 GenerationRequest 转成具体请求，并把响应解析为 GenerationResult / 文本片段。

ChunkStream 是对外暴露的流式序列：惰性、有限、不可重启，
并提供显式的 close()，消费者停止拉取时可以确定性地释放连接。
"""

from typing import Callable, Iterable, Iterator, Optional, Protocol

from genai_gateway.domain.models import GenerationRequest, GenerationResult, StreamChunk


class GenerationBackend(Protocol):
    """生成后端协议。

    实现者需要提供：
    - name: 后端名称，用于日志。
    - chat(req): 一次非流式调用，返回统一的 GenerationResult。
    - chat_stream(req): 一次流式调用，逐步产出文本片段。
    """

    name: str

    def chat(self, req: GenerationRequest) -> GenerationResult:
        ...

    def chat_stream(self, req: GenerationRequest) -> Iterable[str]:
        ...


class ChunkStream:
    """可取消的惰性 StreamChunk 序列。

    - 迭代耗尽、显式 close()、离开 with 块或对象被回收时，底层迭代器被关闭，
      on_close 回调只执行一次。
    - 关闭后继续迭代直接结束。
    """

    def __init__(self, source: Iterator[StreamChunk], on_close: Optional[Callable[[], None]] = None):
        self._source = source
        self._on_close = on_close
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self) -> "ChunkStream":
        return self

    def __next__(self) -> StreamChunk:
        if self._closed:
            raise StopIteration
        try:
            return next(self._source)
        except Exception:
            self.close()
            raise

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            close = getattr(self._source, "close", None)
            if close is not None:
                close()
        finally:
            if self._on_close is not None:
                self._on_close()

    def __del__(self) -> None:
        # 消费者停止拉取并丢弃引用时，同样释放连接与会话
        if not getattr(self, "_closed", True):
            self.close()

    def text(self) -> str:
        """消费剩余片段并返回拼接后的文本。"""

        return "".join(chunk.text for chunk in self)

    def __enter__(self) -> "ChunkStream":
        return self

    def __exit__(self, *exc) -> bool:
        self.close()
        return False
