"""本地 OpenAI 兼容推理服务适配器。

本模块负责：

1. 接收统一的 GenerationRequest。
2. 将其转换为 OpenAI chat/completions（或 embeddings）请求格式。
3. 调用 HTTP 接口，把网络/协议异常统一包装为 TransportError / ProtocolError。
4. 将响应 JSON 解析为统一的 GenerationResult（含函数调用）。

这里只做单次调用，不做重试；失败后的回退由 RequestRouter 负责。
"""

import json
import time
from typing import Any, Dict, Iterable, Iterator, List, Optional

import httpx

from genai_gateway.domain.exceptions import ProtocolError, TransportError
from genai_gateway.domain.models import (
    Candidate,
    GenerationRequest,
    GenerationResult,
    Message,
    Part,
)
from genai_gateway.providers.stream_decoder import StreamDecoder
from genai_gateway.tools.definitions import FunctionCall, Tool, iter_declarations

# SDK 角色 -> OpenAI 角色
ROLE_MAP = {
    "user": "user",
    "model": "assistant",
    "system": "system",
    "function": "tool",
}


class LocalClient:
    """本地推理服务客户端实现。

    - name: 后端名称（供日志使用）。
    - chat / chat_stream / embed: 对外调用入口。
    """

    name = "local"

    def __init__(self, settings, decoder: Optional[StreamDecoder] = None):
        # settings 里包含 endpoint、模型名、api_key、超时等配置
        self._settings = settings
        self._decoder = decoder or StreamDecoder()

    # ---- 非流式 ----

    def chat(self, req: GenerationRequest) -> GenerationResult:
        payload = self._build_payload(req, stream=False)
        data = self._post_json("/chat/completions", payload, self._timeout(req))
        return self._parse_response(data)

    # ---- 流式 ----

    def chat_stream(self, req: GenerationRequest) -> Iterator[str]:
        """执行一次流式调用，逐步 yield 文本片段。

        整个调用受 timeout_ms 约束：超过截止时间会抛出 TransportError，
        连接随生成器关闭而释放。
        """

        payload = self._build_payload(req, stream=True)
        timeout = self._timeout(req)
        deadline = time.monotonic() + timeout
        try:
            with httpx.Client(timeout=timeout, trust_env=False) as client:
                with client.stream(
                    "POST",
                    self._url("/chat/completions"),
                    json=payload,
                    headers=self._headers(),
                ) as resp:
                    if resp.status_code >= 400:
                        raise TransportError(
                            code="HTTP_ERROR",
                            message=f"Local backend returned HTTP {resp.status_code}",
                            http_status=resp.status_code,
                        )
                    raw = self._until_deadline(resp.iter_bytes(), deadline)
                    for chunk in self._decoder.decode(raw):
                        yield chunk.text
        except httpx.TimeoutException as e:
            raise TransportError(code="TIMEOUT", message=str(e) or "Local backend timed out")
        except httpx.RequestError as e:
            raise TransportError(code="NETWORK_ERROR", message=str(e))

    # ---- 向量 ----

    def embed(self, text: str) -> List[float]:
        payload = {"model": self._settings.embedding_model, "input": text}
        data = self._post_json("/embeddings", payload, self._settings.timeout_seconds)
        try:
            values = data["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProtocolError(code="SCHEMA_ERROR", message=f"Missing embedding in response: {e!r}")
        if not isinstance(values, list) or not all(isinstance(v, (int, float)) for v in values):
            raise ProtocolError(code="SCHEMA_ERROR", message="Embedding is not a list of numbers")
        return [float(v) for v in values]

    # ---- 辅助方法 ----

    def _url(self, path: str) -> str:
        return f"{self._settings.endpoint.rstrip('/')}{path}"

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        api_key = getattr(self._settings, "api_key", None)
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        return headers

    def _timeout(self, req: GenerationRequest) -> float:
        return (req.timeout_ms or self._settings.timeout_ms) / 1000.0

    def _post_json(self, path: str, payload: Dict[str, Any], timeout: float) -> Dict[str, Any]:
        try:
            with httpx.Client(timeout=timeout, trust_env=False) as client:
                resp = client.post(self._url(path), json=payload, headers=self._headers())
        except httpx.TimeoutException as e:
            raise TransportError(code="TIMEOUT", message=str(e) or "Local backend timed out")
        except httpx.RequestError as e:
            # 网络错误：连接被拒绝、DNS 失败等
            raise TransportError(code="NETWORK_ERROR", message=str(e))
        if resp.status_code >= 400:
            raise TransportError(
                code="HTTP_ERROR",
                message=f"Local backend returned HTTP {resp.status_code}",
                http_status=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError as e:
            raise ProtocolError(code="DECODE_ERROR", message=f"Response is not JSON: {e}")
        if not isinstance(data, dict):
            raise ProtocolError(code="SCHEMA_ERROR", message="Response JSON is not an object")
        return data

    @staticmethod
    def _until_deadline(chunks: Iterable[bytes], deadline: float) -> Iterator[bytes]:
        for chunk in chunks:
            if time.monotonic() > deadline:
                raise TransportError(code="TIMEOUT", message="Local stream exceeded timeout")
            yield chunk

    def _build_payload(self, req: GenerationRequest, stream: bool) -> dict:
        """将 GenerationRequest 转成 OpenAI 兼容的请求 JSON。"""

        msgs = []
        if req.system_instruction is not None:
            msgs.append({"role": "system", "content": self._message_content(req.system_instruction)})
        msgs.extend(self._message_to_payload(m) for m in req.messages)
        payload: Dict[str, Any] = {
            "model": self._settings.model,
            "messages": msgs,
        }
        gc = req.generation_config
        if gc.temperature is not None:
            payload["temperature"] = gc.temperature
        if gc.top_p is not None:
            payload["top_p"] = gc.top_p
        if gc.max_output_tokens is not None:
            payload["max_tokens"] = gc.max_output_tokens
        if gc.stop_sequences:
            payload["stop"] = list(gc.stop_sequences)
        tools = self._serialize_tools(req.tools)
        if tools:
            payload["tools"] = tools
        if stream:
            payload["stream"] = True
        return payload

    @staticmethod
    def _serialize_tools(tools: Optional[List[Tool]]) -> List[Dict[str, Any]]:
        """把 SDK 的 functionDeclarations 展平为 OpenAI function tool 列表。"""

        return [{"type": "function", "function": decl.to_dict()} for decl in iter_declarations(tools)]

    def _message_to_payload(self, message: Message) -> Dict[str, Any]:
        return {
            "role": ROLE_MAP.get(message.role, "user"),
            "content": self._message_content(message),
        }

    @staticmethod
    def _message_content(message: Message) -> str:
        pieces = []
        for part in message.parts:
            pieces.append(LocalClient._part_content(part))
        return "\n".join(p for p in pieces if p)

    @staticmethod
    def _part_content(part: Part) -> str:
        kind = part.kind
        if kind == "text":
            return part.text or ""
        if kind == "function_call":
            return json.dumps(
                {"name": part.function_call.name, "args": part.function_call.args},
                ensure_ascii=False,
            )
        if kind == "function_response":
            return json.dumps(
                {"name": part.function_response.name, "response": part.function_response.response},
                ensure_ascii=False,
            )
        if kind == "inline_data":
            return f"[inline data: {part.inline_data.mime_type}]"
        return f"[file: {part.file_data.file_uri}]"

    def _parse_response(self, data: Dict[str, Any]) -> GenerationResult:
        """将原始响应 JSON 解析为统一的 GenerationResult。

        若第一条 choice 带有 tool_calls，则结果只包含函数调用，text 为空。
        """

        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            raise ProtocolError(code="SCHEMA_ERROR", message="Response has no choices")
        messages = []
        for ch in choices:
            if not isinstance(ch, dict):
                raise ProtocolError(code="SCHEMA_ERROR", message="Choice is not an object")
            msg = ch.get("message") or {}
            if not isinstance(msg, dict):
                raise ProtocolError(code="SCHEMA_ERROR", message="Choice message is not an object")
            messages.append((msg, ch.get("finish_reason")))

        first = messages[0][0]
        function_calls = self._parse_tool_calls(first.get("tool_calls"))
        if function_calls:
            return GenerationResult(text="", function_calls=function_calls, candidates=[], served_by="local")

        candidates = [
            Candidate(
                index=i,
                content=Message.from_text("model", self._content_text(msg)),
                finish_reason=finish_reason,
            )
            for i, (msg, finish_reason) in enumerate(messages)
        ]
        return GenerationResult(
            text=candidates[0].content.text,
            function_calls=[],
            candidates=candidates,
            served_by="local",
        )

    @staticmethod
    def _content_text(msg: Dict[str, Any]) -> str:
        """取出 message.content 的文本。

        兼容 content 为片段列表（[{"type": "text", "text": ...}]）的服务；
        其他形状视为协议不匹配。
        """

        content = msg.get("content")
        if content is None:
            return ""
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            texts = []
            for piece in content:
                if not isinstance(piece, dict) or not isinstance(piece.get("text", ""), str):
                    raise ProtocolError(code="SCHEMA_ERROR", message="Unsupported message content part")
                if piece.get("type", "text") == "text":
                    texts.append(piece.get("text", ""))
            return "".join(texts)
        raise ProtocolError(code="SCHEMA_ERROR", message="Message content is not a string")

    def _parse_tool_calls(self, raw: Any) -> List[FunctionCall]:
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise ProtocolError(code="SCHEMA_ERROR", message="tool_calls is not a list")
        calls: List[FunctionCall] = []
        for call in raw:
            if not isinstance(call, dict):
                raise ProtocolError(code="SCHEMA_ERROR", message="Tool call is not an object")
            func = call.get("function") or {}
            if not isinstance(func, dict):
                raise ProtocolError(code="SCHEMA_ERROR", message="Tool call function is not an object")
            name = func.get("name") or call.get("name")
            if not isinstance(name, str) or not name:
                raise ProtocolError(code="SCHEMA_ERROR", message="Tool call has no function name")
            calls.append(FunctionCall(name=name, args=self._parse_arguments(func.get("arguments"))))
        return calls

    @staticmethod
    def _parse_arguments(raw: Any) -> Dict[str, Any]:
        """解析函数调用的 arguments 字段。

        OpenAI 兼容服务会把 arguments 作为 JSON 字符串返回；
        解析失败或结果不是对象时返回空 dict，而不是让整个调用失败。
        """

        if isinstance(raw, dict):
            return raw
        if isinstance(raw, str) and raw.strip():
            try:
                parsed = json.loads(raw)
            except json.JSONDecodeError:
                return {}
            return parsed if isinstance(parsed, dict) else {}
        return {}
