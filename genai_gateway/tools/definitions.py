"""工具（函数调用）数据结构定义。

这些 dataclass 描述了“函数调用”的 schema，既用于：
- 把 UI 代码声明的函数暴露给本地模型（Tool / FunctionDeclaration）。
- 在生成结果中携带模型发起的函数调用（FunctionCall / FunctionResponse）。

from_dict 同时接受 SDK 的 camelCase 与 snake_case 键名，
这样 UI 代码可以直接传入普通 dict。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class FunctionDeclaration:
    """一个可供模型调用的函数声明。"""

    name: str
    description: str = ""
    parameters: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FunctionDeclaration":
        return cls(
            name=data.get("name") or "",
            description=data.get("description") or "",
            parameters=data.get("parameters"),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"name": self.name, "description": self.description}
        if self.parameters is not None:
            payload["parameters"] = self.parameters
        return payload


@dataclass
class Tool:
    """一组函数声明，对应 SDK 中的 Tool。"""

    function_declarations: List[FunctionDeclaration] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tool":
        raw = data.get("function_declarations")
        if raw is None:
            raw = data.get("functionDeclarations")
        declarations = []
        for item in raw or []:
            if isinstance(item, FunctionDeclaration):
                declarations.append(item)
            else:
                declarations.append(FunctionDeclaration.from_dict(item))
        return cls(function_declarations=declarations)


@dataclass
class FunctionCall:
    """模型发起的一次函数调用。"""

    name: str
    args: Dict[str, Any] = field(default_factory=dict)


@dataclass
class FunctionResponse:
    """应用回传给模型的函数执行结果。"""

    name: str
    response: Dict[str, Any] = field(default_factory=dict)


def coerce_tools(tools: Optional[List[Any]]) -> List[Tool]:
    """把 Tool / dict 混合列表统一成 Tool 列表。"""

    result: List[Tool] = []
    for tool in tools or []:
        result.append(tool if isinstance(tool, Tool) else Tool.from_dict(tool))
    return result


def iter_declarations(tools: Optional[List[Tool]]) -> List[FunctionDeclaration]:
    """按声明顺序展开所有函数声明。"""

    return [decl for tool in tools or [] for decl in tool.function_declarations]
