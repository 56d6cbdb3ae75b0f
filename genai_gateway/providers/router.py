"""请求路由：为每次调用选择 mock 或本地后端，并负责失败回退。

策略（可用性优先于正确性）：
- mode=local 时只尝试一次本地后端；超时、网络错误、协议错误一律回退到
  mock 路径，并以 WARNING 记录，异常永远不会抛给调用方。
- mode=mock 或 mode=remote（预览环境没有云端路径）直接走 mock。
- mock 路径下，只要声明了工具，就由 ToolCallEmulator 合成函数调用。
"""

import dataclasses
import logging
import time
from typing import Iterator, Optional
from uuid import uuid4

from genai_gateway.config.settings import BackendMode
from genai_gateway.domain.exceptions import GatewayError
from genai_gateway.domain.models import GenerationRequest, GenerationResult, StreamChunk
from genai_gateway.infrastructure.logging.logger import log_event
from genai_gateway.providers.base import ChunkStream, GenerationBackend
from genai_gateway.providers.local_client import LocalClient
from genai_gateway.providers.mock_generator import DeterministicMockGenerator


class RequestRouter:
    def __init__(
        self,
        settings,
        local_client: Optional[GenerationBackend] = None,
        mock: Optional[DeterministicMockGenerator] = None,
    ):
        self._settings = settings
        self._local = local_client or LocalClient(settings)
        self._mock = mock or DeterministicMockGenerator(
            latency_ms=settings.mock_latency_ms,
            stream_delay_ms=settings.mock_stream_delay_ms,
        )
        self._remote_notice_logged = False

    @property
    def mode(self) -> BackendMode:
        return BackendMode(self._settings.mode)

    def generate(self, request: GenerationRequest) -> GenerationResult:
        """执行一次非流式生成，永远返回结果。"""

        start_time = time.time()
        log_ctx = self._log_ctx(request)
        mode = self.mode
        if mode is BackendMode.LOCAL:
            try:
                result = self._local.chat(request)
                self._log(
                    logging.INFO,
                    "Served by local backend",
                    log_ctx,
                    elapsed_seconds=round(time.time() - start_time, 2),
                    function_calls=len(result.function_calls),
                )
                return result
            except GatewayError as e:
                self._log_fallback(log_ctx, e)
                return dataclasses.replace(self._mock.generate(request.tools), served_by="fallback")
        if mode is BackendMode.REMOTE:
            self._log_remote_notice(log_ctx)
        result = self._mock.generate(request.tools)
        self._log(logging.INFO, "Served by mock backend", log_ctx, function_calls=len(result.function_calls))
        return result

    def generate_stream(self, request: GenerationRequest) -> ChunkStream:
        """返回一个新的流式序列；每次调用都是独立的实例。"""

        return ChunkStream(self._iter_stream(request))

    def _iter_stream(self, request: GenerationRequest) -> Iterator[StreamChunk]:
        log_ctx = self._log_ctx(request)
        mode = self.mode
        if mode is BackendMode.LOCAL:
            produced = 0
            source = self._local.chat_stream(request)
            try:
                for text in source:
                    produced += 1
                    yield StreamChunk(text=text)
                self._log(logging.INFO, "Streamed by local backend", log_ctx, chunks=produced)
                return
            except GatewayError as e:
                if produced:
                    # 已经输出了本地片段，不再拼接 mock 文本，直接结束
                    self._log(
                        logging.WARNING,
                        "Local stream interrupted",
                        log_ctx,
                        chunks=produced,
                        error_code=e.code,
                        error=e.message,
                    )
                    return
                self._log_fallback(log_ctx, e)
            finally:
                close = getattr(source, "close", None)
                if close is not None:
                    close()
        elif mode is BackendMode.REMOTE:
            self._log_remote_notice(log_ctx)
        yield from self._mock.generate_stream()

    # ---- 日志辅助 ----

    def _log_ctx(self, request: GenerationRequest) -> dict:
        return {
            "trace_id": f"tr-{uuid4().hex}",
            "mode": self.mode.value,
            "model_id": request.model_id,
            "message_count": len(request.messages),
        }

    def _log_fallback(self, log_ctx: dict, error: GatewayError) -> None:
        self._log(
            logging.WARNING,
            "Local backend failed, falling back to mock",
            log_ctx,
            endpoint=self._settings.endpoint,
            error_code=error.code,
            error=error.message,
        )

    def _log_remote_notice(self, log_ctx: dict) -> None:
        if self._remote_notice_logged:
            return
        self._remote_notice_logged = True
        self._log(logging.INFO, "Remote mode is not available in preview, serving mock responses", log_ctx)

    @staticmethod
    def _log(level: int, message: str, log_ctx: dict, **fields) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        log_event(level, message, **payload)
