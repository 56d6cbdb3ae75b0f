"""GenAI Gateway 顶层包。

让基于云端生成式 AI SDK 编写的 UI 代码在离线/本地预览环境中原样运行：
对外复刻 SDK 的调用方式，对内把每次请求路由到确定性 mock 或本地
OpenAI 兼容推理服务，并在本地失败时透明回退。
"""

from genai_gateway.agents.chat_session import ChatSession
from genai_gateway.api.client import EmbeddingModel, GenAIClient, GenerativeModel, GoogleGenerativeAI
from genai_gateway.api.stubs import FileManager, LiveAPI
from genai_gateway.api.types import HarmBlockThreshold, HarmCategory, Modality, SafetySetting, SchemaType, TaskType
from genai_gateway.config.settings import BackendMode, GatewaySettings, load_settings
from genai_gateway.domain.models import GenerationConfig, GenerationResult, Message, Part, StreamChunk
from genai_gateway.providers.embedding import EmbeddingProvider
from genai_gateway.tools.definitions import FunctionCall, FunctionDeclaration, Tool

__all__ = [
    "BackendMode",
    "ChatSession",
    "EmbeddingModel",
    "EmbeddingProvider",
    "FileManager",
    "FunctionCall",
    "FunctionDeclaration",
    "GatewaySettings",
    "GenAIClient",
    "GenerationConfig",
    "GenerationResult",
    "GenerativeModel",
    "GoogleGenerativeAI",
    "HarmBlockThreshold",
    "HarmCategory",
    "LiveAPI",
    "Message",
    "Modality",
    "Part",
    "SafetySetting",
    "SchemaType",
    "StreamChunk",
    "TaskType",
    "Tool",
    "load_settings",
]
