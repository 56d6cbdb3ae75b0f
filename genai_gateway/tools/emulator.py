"""mock 模式下的函数调用模拟。

只要声明了工具，mock 路径就返回一次“合成”的函数调用，
以便 UI 中处理 function calling 的分支也能在离线预览里跑通。
"""

from typing import List, Optional

from genai_gateway.domain.models import GenerationResult
from genai_gateway.tools.definitions import FunctionCall, Tool, iter_declarations

MOCK_TOOL_ARGS = {"mock": True, "message": "Simulated tool call"}


class ToolCallEmulator:
    """为声明的工具合成一次函数调用。"""

    def emulate(self, tools: Optional[List[Tool]]) -> Optional[GenerationResult]:
        """返回只调用第一个声明函数的结果；没有任何函数声明时返回 None。

        参数固定为 MOCK_TOOL_ARGS，不根据函数的参数 schema 推断。
        """

        declarations = iter_declarations(tools)
        if not declarations:
            return None
        first = declarations[0]
        return GenerationResult(
            text="",
            function_calls=[FunctionCall(name=first.name, args=dict(MOCK_TOOL_ARGS))],
            candidates=[],
            served_by="mock",
        )
