"""统一业务异常模型。

网关内部所有跨模块抛出的错误都继承自 BusinessError：

- TransportError / ProtocolError 只在 LocalClient 内部抛出，
  由 RequestRouter / EmbeddingProvider 捕获并回退到 mock 路径，
  永远不会传递给调用网关的 UI 代码。
- ConfigurationError 在加载配置时抛出，而不是在调用时。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "TIMEOUT"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 endpoint、mode 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class GatewayError(BusinessError):
    """网关相关错误的公共基类。"""


class TransportError(GatewayError):
    """本地推理服务不可达：连接失败、超时、非 2xx 状态码等。"""


class ProtocolError(GatewayError):
    """响应不是 JSON，或 JSON 结构与 OpenAI 兼容协议不符。"""


class ConfigurationError(GatewayError):
    """配置校验失败（例如无法识别的 mode）。"""


class ChatSessionBusyError(GatewayError):
    """同一个 ChatSession 上已有一轮对话尚未结束。"""


class LiveApiUnavailableError(GatewayError):
    """预览环境不支持 Live API。"""
