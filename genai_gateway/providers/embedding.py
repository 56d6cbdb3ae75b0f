"""向量生成：本地后端或确定性合成算法。

确定性算法需要与其他语言的实现逐位一致：
    hash = 输入字符串所有 UTF-16 code unit 之和
    vector[i] = sin(hash + i) * 0.5,  i ∈ [0, 768)
"""

import json
import logging
import math
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Union

from genai_gateway.config.settings import BackendMode
from genai_gateway.domain.exceptions import GatewayError
from genai_gateway.domain.models import EmbeddingVector, Message
from genai_gateway.infrastructure.logging.logger import log_event
from genai_gateway.providers.local_client import LocalClient

EMBEDDING_DIMENSIONS = 768

EmbeddingInput = Union[str, Message]


def utf16_code_unit_sum(text: str) -> int:
    data = text.encode("utf-16-le", errors="surrogatepass")
    return sum(int.from_bytes(data[i:i + 2], "little") for i in range(0, len(data), 2))


def deterministic_embedding(text: str) -> EmbeddingVector:
    """纯函数：结果只取决于输入文本。"""

    base = utf16_code_unit_sum(text)
    return [math.sin(base + i) * 0.5 for i in range(EMBEDDING_DIMENSIONS)]


def content_to_text(content: EmbeddingInput) -> str:
    """Message 以紧凑 JSON 表示参与向量计算。"""

    if isinstance(content, str):
        return content
    return json.dumps(content.to_dict(), ensure_ascii=False, separators=(",", ":"))


class EmbeddingProvider:
    def __init__(self, settings, local_client: Optional[LocalClient] = None):
        self._settings = settings
        self._local = local_client or LocalClient(settings)

    def embed(self, content: EmbeddingInput) -> EmbeddingVector:
        """生成单个向量；本地后端失败时回退到确定性算法，永不抛出后端异常。"""

        text = content_to_text(content)
        if BackendMode(self._settings.mode) is BackendMode.LOCAL:
            try:
                return self._local.embed(text)
            except GatewayError as e:
                log_event(
                    logging.WARNING,
                    "Local embedding failed, falling back to deterministic vector",
                    endpoint=self._settings.endpoint,
                    error_code=e.code,
                    error=e.message,
                )
        return deterministic_embedding(text)

    def embed_batch(self, contents: Sequence[EmbeddingInput]) -> List[EmbeddingVector]:
        """并发生成一批向量，输出顺序与输入顺序一致。"""

        if not contents:
            return []
        workers = min(len(contents), self._settings.embedding_concurrency)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="genai-embed") as pool:
            return list(pool.map(self.embed, contents))
