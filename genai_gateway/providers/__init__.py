"""生成后端集成层。

该包下的模块负责：
- 定义后端抽象接口与流式序列 (base)。
- 离线确定性 mock 后端 (mock_generator)。
- 本地 OpenAI 兼容服务适配器与流式解码 (local_client、stream_decoder)。
- 按配置路由并回退 (router)，以及向量生成 (embedding)。
"""

from genai_gateway.providers.base import ChunkStream, GenerationBackend
from genai_gateway.providers.embedding import EmbeddingProvider
from genai_gateway.providers.local_client import LocalClient
from genai_gateway.providers.mock_generator import DeterministicMockGenerator
from genai_gateway.providers.router import RequestRouter


def create_router(settings) -> RequestRouter:
    """根据配置创建 RequestRouter，共享同一个 LocalClient。"""

    return RequestRouter(settings, local_client=LocalClient(settings))


__all__ = [
    "ChunkStream",
    "DeterministicMockGenerator",
    "EmbeddingProvider",
    "GenerationBackend",
    "LocalClient",
    "RequestRouter",
    "create_router",
]
