"""对外 SDK 表面。

复刻云端生成式 AI SDK 的调用方式（client / model / chat / embedding），
内部全部委托给 RequestRouter 与 EmbeddingProvider，因此 UI 代码可以
不做修改地在离线或本地推理环境中运行。
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from genai_gateway.agents.chat_session import ChatSession
from genai_gateway.api.types import SafetySetting
from genai_gateway.config.settings import GatewaySettings, load_settings
from genai_gateway.domain.models import (
    GenerationConfig,
    GenerationRequest,
    GenerationResult,
    Message,
    MessageLike,
    coerce_message,
)
from genai_gateway.infrastructure.logging.logger import log_event, setup_logger
from genai_gateway.providers import EmbeddingProvider, RequestRouter, create_router
from genai_gateway.providers.base import ChunkStream
from genai_gateway.providers.embedding import EmbeddingInput
from genai_gateway.tools.definitions import Tool, coerce_tools

Prompt = Union[MessageLike, Sequence[MessageLike]]

DEFAULT_EMBEDDING_MODEL = "text-embedding-004"


@dataclass
class ContentEmbedding:
    values: List[float]


@dataclass
class EmbedContentResponse:
    embedding: ContentEmbedding


@dataclass
class BatchEmbedContentsResponse:
    embeddings: List[ContentEmbedding] = field(default_factory=list)


def prompt_to_messages(prompt: Prompt) -> Tuple[Message, ...]:
    """把 SDK 支持的各种 prompt 形式统一为消息元组。"""

    if isinstance(prompt, (str, Message, dict)):
        return (coerce_message(prompt),)
    return tuple(coerce_message(p) for p in prompt)


class GenerativeModel:
    """一个模型句柄，持有模型名、生成参数、工具与系统指令。"""

    def __init__(
        self,
        model: str,
        router: RequestRouter,
        settings: GatewaySettings,
        generation_config: Optional[Union[GenerationConfig, Dict[str, Any]]] = None,
        safety_settings: Optional[List[Union[SafetySetting, Dict[str, Any]]]] = None,
        tools: Optional[List[Union[Tool, Dict[str, Any]]]] = None,
        system_instruction: Optional[MessageLike] = None,
    ):
        self.model = model
        self._router = router
        self._settings = settings
        if isinstance(generation_config, dict):
            generation_config = GenerationConfig.from_dict(generation_config)
        self.generation_config = generation_config or GenerationConfig()
        self.safety_settings = [
            s if isinstance(s, SafetySetting) else SafetySetting.from_dict(s) for s in safety_settings or []
        ]
        self.tools = coerce_tools(tools) or None
        self.system_instruction = (
            coerce_message(system_instruction, role="system") if system_instruction is not None else None
        )

    def generate_content(self, prompt: Prompt) -> GenerationResult:
        """生成一次完整结果；后端不可用时返回 mock 结果而不是抛出异常。"""

        return self.generate_from_history(prompt_to_messages(prompt))

    def generate_content_stream(self, prompt: Prompt) -> ChunkStream:
        return self.stream_from_history(prompt_to_messages(prompt))

    def start_chat(self, history: Optional[Iterable[MessageLike]] = None) -> ChatSession:
        return ChatSession(self, history=history)

    def generate_from_history(self, messages: Tuple[Message, ...]) -> GenerationResult:
        return self._router.generate(self._build_request(messages))

    def stream_from_history(self, messages: Tuple[Message, ...]) -> ChunkStream:
        return self._router.generate_stream(self._build_request(messages))

    def _build_request(self, messages: Tuple[Message, ...]) -> GenerationRequest:
        return GenerationRequest(
            model_id=self.model,
            messages=messages,
            generation_config=self.generation_config,
            tools=self.tools,
            system_instruction=self.system_instruction,
            timeout_ms=self._settings.timeout_ms,
        )


class EmbeddingModel:
    """向量模型句柄，返回与 SDK 相同形状的响应。"""

    def __init__(self, provider: EmbeddingProvider, model: str = DEFAULT_EMBEDDING_MODEL):
        self.model = model
        self._provider = provider

    def embed_content(self, content: EmbeddingInput) -> EmbedContentResponse:
        values = self._provider.embed(content)
        return EmbedContentResponse(embedding=ContentEmbedding(values=values))

    def batch_embed_contents(self, contents: Sequence[EmbeddingInput]) -> BatchEmbedContentsResponse:
        vectors = self._provider.embed_batch(contents)
        return BatchEmbedContentsResponse(embeddings=[ContentEmbedding(values=v) for v in vectors])


class GenAIClient:
    """SDK 客户端入口。

    settings 为空时通过 load_settings() 构造一份；同一进程内可以并存
    多个使用不同配置的客户端。
    """

    def __init__(self, api_key: Optional[str] = None, settings: Optional[GatewaySettings] = None):
        self._api_key = api_key
        self.settings = settings or load_settings()
        setup_logger(self.settings)
        self._router = create_router(self.settings)
        self._embeddings = EmbeddingProvider(self.settings)
        log_event(
            logging.INFO,
            "GenAI client initialized",
            api_key="***" if api_key else "none",
            mode=self.settings.mode.value,
        )

    def get_generative_model(
        self,
        model: str,
        generation_config: Optional[Union[GenerationConfig, Dict[str, Any]]] = None,
        safety_settings: Optional[List[Union[SafetySetting, Dict[str, Any]]]] = None,
        tools: Optional[List[Union[Tool, Dict[str, Any]]]] = None,
        system_instruction: Optional[MessageLike] = None,
    ) -> GenerativeModel:
        log_event(logging.INFO, "Getting model", model=model)
        return GenerativeModel(
            model,
            router=self._router,
            settings=self.settings,
            generation_config=generation_config,
            safety_settings=safety_settings,
            tools=tools,
            system_instruction=system_instruction,
        )

    def get_embedding_model(self, model: str = DEFAULT_EMBEDDING_MODEL) -> EmbeddingModel:
        return EmbeddingModel(self._embeddings, model=model)

    @property
    def embeddings(self) -> EmbeddingProvider:
        return self._embeddings


GoogleGenerativeAI = GenAIClient
