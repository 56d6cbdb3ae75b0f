"""统一的对话与结果数据模型。

本模块定义网关在 SDK 表面、路由层与各后端之间共享的标准数据结构：

- Part / Message: 一条对话消息及其组成部分（文本、内联数据、文件引用、函数调用/结果）。
- GenerationRequest: 交给 RequestRouter 的一次完整生成请求。
- GenerationResult: mock / 本地后端解析后的统一结果。
- StreamChunk: 流式生成中的一个文本片段。

所有后端适配器（LocalClient、DeterministicMockGenerator 等）只依赖这些模型，
并负责在各自的数据格式与这些模型之间做转换。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from genai_gateway.tools.definitions import FunctionCall, FunctionResponse, Tool


# SDK 中的消息角色（注意是 "model" 而不是 OpenAI 的 "assistant"）
Role = Literal["user", "model", "function", "system"]

PartKind = Literal["text", "inline_data", "file_data", "function_call", "function_response"]

# 结果由哪条路径产出："fallback" 表示本地后端失败后由 mock 兜底
ServedBy = Literal["mock", "local", "fallback"]

EmbeddingVector = List[float]


@dataclass
class InlineData:
    """内联的二进制数据（base64 字符串）。"""

    mime_type: str
    data: str


@dataclass
class FileData:
    """对已上传文件的引用。"""

    mime_type: str
    file_uri: str


@dataclass
class Part:
    """消息的一个组成部分，恰好携带一种负载。"""

    text: Optional[str] = None
    inline_data: Optional[InlineData] = None
    file_data: Optional[FileData] = None
    function_call: Optional[FunctionCall] = None
    function_response: Optional[FunctionResponse] = None

    def __post_init__(self) -> None:
        filled = [
            name
            for name in ("text", "inline_data", "file_data", "function_call", "function_response")
            if getattr(self, name) is not None
        ]
        if len(filled) != 1:
            raise ValueError(f"Part must carry exactly one payload, got {filled or 'none'}")

    @property
    def kind(self) -> PartKind:
        if self.text is not None:
            return "text"
        if self.inline_data is not None:
            return "inline_data"
        if self.file_data is not None:
            return "file_data"
        if self.function_call is not None:
            return "function_call"
        return "function_response"

    @classmethod
    def from_text(cls, text: str) -> "Part":
        return cls(text=text)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Part":
        """从 SDK 风格的 dict 构造 Part（camelCase / snake_case 均可）。"""

        if "text" in data:
            return cls(text=data["text"] or "")
        inline = data.get("inline_data") or data.get("inlineData")
        if inline:
            return cls(
                inline_data=InlineData(
                    mime_type=inline.get("mime_type") or inline.get("mimeType") or "",
                    data=inline.get("data") or "",
                )
            )
        file_ref = data.get("file_data") or data.get("fileData")
        if file_ref:
            return cls(
                file_data=FileData(
                    mime_type=file_ref.get("mime_type") or file_ref.get("mimeType") or "",
                    file_uri=file_ref.get("file_uri") or file_ref.get("fileUri") or "",
                )
            )
        call = data.get("function_call") or data.get("functionCall")
        if call:
            return cls(function_call=FunctionCall(name=call.get("name") or "", args=call.get("args") or {}))
        resp = data.get("function_response") or data.get("functionResponse")
        if resp:
            return cls(
                function_response=FunctionResponse(
                    name=resp.get("name") or "",
                    response=resp.get("response") or {},
                )
            )
        raise ValueError(f"Unrecognized part: {sorted(data)}")

    def to_dict(self) -> Dict[str, Any]:
        """序列化为 SDK 的 camelCase 结构。"""

        kind = self.kind
        if kind == "text":
            return {"text": self.text}
        if kind == "inline_data":
            return {"inlineData": {"mimeType": self.inline_data.mime_type, "data": self.inline_data.data}}
        if kind == "file_data":
            return {"fileData": {"mimeType": self.file_data.mime_type, "fileUri": self.file_data.file_uri}}
        if kind == "function_call":
            return {"functionCall": {"name": self.function_call.name, "args": self.function_call.args}}
        return {
            "functionResponse": {
                "name": self.function_response.name,
                "response": self.function_response.response,
            }
        }


@dataclass
class Message:
    """一条对话消息。

    - role: user / model / function / system。
    - parts: 有序的 Part 列表。
    """

    role: Role
    parts: List[Part] = field(default_factory=list)

    @classmethod
    def from_text(cls, role: Role, text: str) -> "Message":
        return cls(role=role, parts=[Part.from_text(text)])

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        parts = []
        for raw in data.get("parts") or []:
            if isinstance(raw, Part):
                parts.append(raw)
            elif isinstance(raw, str):
                parts.append(Part.from_text(raw))
            else:
                parts.append(Part.from_dict(raw))
        return cls(role=data.get("role") or "user", parts=parts)

    @property
    def text(self) -> str:
        """拼接所有文本 Part。"""

        return "".join(p.text for p in self.parts if p.text is not None)

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role, "parts": [p.to_dict() for p in self.parts]}


MessageLike = Union[str, Message, Dict[str, Any]]


def coerce_message(value: MessageLike, role: Role = "user") -> Message:
    """把字符串 / dict / Message 统一转换为 Message。"""

    if isinstance(value, Message):
        return value
    if isinstance(value, str):
        return Message.from_text(role, value)
    return Message.from_dict(value)


@dataclass
class GenerationConfig:
    """生成参数，字段与 SDK 的 GenerationConfig 对应。"""

    temperature: Optional[float] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    max_output_tokens: Optional[int] = None
    response_mime_type: Optional[str] = None
    response_schema: Optional[Dict[str, Any]] = None
    candidate_count: Optional[int] = None
    stop_sequences: Optional[List[str]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GenerationConfig":
        def pick(snake: str, camel: str) -> Any:
            return data[snake] if snake in data else data.get(camel)

        return cls(
            temperature=data.get("temperature"),
            top_p=pick("top_p", "topP"),
            top_k=pick("top_k", "topK"),
            max_output_tokens=pick("max_output_tokens", "maxOutputTokens"),
            response_mime_type=pick("response_mime_type", "responseMimeType"),
            response_schema=pick("response_schema", "responseSchema"),
            candidate_count=pick("candidate_count", "candidateCount"),
            stop_sequences=pick("stop_sequences", "stopSequences"),
        )


@dataclass
class GenerationRequest:
    """一次完整的生成请求。

    messages 是会话历史的快照（tuple），路由层与后端都不会修改它。
    """

    model_id: str
    messages: Tuple[Message, ...]
    generation_config: GenerationConfig = field(default_factory=GenerationConfig)
    tools: Optional[List[Tool]] = None
    system_instruction: Optional[Message] = None
    timeout_ms: int = 60000


@dataclass
class Candidate:
    """单个候选回答。"""

    index: int
    content: Message
    finish_reason: Optional[str] = None


@dataclass
class GenerationResult:
    """一次生成调用的最终结果。

    - text: 生成的文本；存在函数调用时恒为空字符串。
    - function_calls: 模型发起的函数调用列表。
    - candidates: 候选回答。
    - served_by: 产出结果的路径（mock / local / fallback）。
    """

    text: str
    function_calls: List[FunctionCall] = field(default_factory=list)
    candidates: List[Candidate] = field(default_factory=list)
    served_by: ServedBy = "mock"

    def __post_init__(self) -> None:
        if self.function_calls and self.text:
            raise ValueError("GenerationResult cannot carry both text and function calls")


@dataclass
class StreamChunk:
    """流式生成中的一个文本片段。"""

    text: str
