"""配置管理模块。

支持从环境变量（GENAI_ 前缀）、.env、.genairc.json 以及 config.yaml 加载配置。

与旧版不同，这里不再提供进程级的 settings 单例：调用方通过
load_settings() 构造一个显式的 GatewaySettings，再把它传给
GenAIClient / RequestRouter / EmbeddingProvider。
"""

import os
import warnings
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from genai_gateway.domain.exceptions import ConfigurationError


class BackendMode(str, Enum):
    """后端模式。未知取值在加载配置时即被拒绝。"""

    MOCK = "mock"
    LOCAL = "local"
    REMOTE = "remote"


# .genairc.json 中 ai 段的键 -> GatewaySettings 字段
_GENAIRC_AI_KEYS = {
    "mode": "mode",
    "endpoint": "endpoint",
    "apiKey": "api_key",
    "timeout": "timeout_ms",
}
_GENAIRC_MODEL_KEYS = {
    "text": "model",
    "embedding": "embedding_model",
}


def _deep_merge(target: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    result = dict(target)
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        elif value is not None:
            result[key] = value
    return result


def _read_mapping(path: Path) -> Dict[str, Any]:
    """读取 JSON / YAML 文件，失败时给出警告并返回空 dict。"""

    try:
        if not path.exists():
            return {}
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"Failed to read config file {path}: {exc}")
        return {}
    if not isinstance(data, dict):
        warnings.warn(f"Config file {path} is not a mapping, ignored")
        return {}
    return data


def _flatten_genairc(data: Dict[str, Any]) -> Dict[str, Any]:
    """把 .genairc.json 的 ai 段展开成 GatewaySettings 字段。"""

    ai = data.get("ai")
    if not isinstance(ai, dict):
        return {}
    flat: Dict[str, Any] = {}
    for key, field_name in _GENAIRC_AI_KEYS.items():
        if ai.get(key) is not None:
            flat[field_name] = ai[key]
    models = ai.get("models")
    if isinstance(models, dict):
        for key, field_name in _GENAIRC_MODEL_KEYS.items():
            if models.get(key):
                flat[field_name] = models[key]
    return flat


def _load_genairc(project_path: Optional[str]) -> Dict[str, Any]:
    """依次合并 ~/.genairc.json 与 <project>/.genairc.json（项目级优先）。"""

    merged = _read_mapping(Path.home() / ".genairc.json")
    if project_path:
        merged = _deep_merge(merged, _read_mapping(Path(project_path).expanduser() / ".genairc.json"))
    return _flatten_genairc(merged)


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""

    candidates = []
    explicit = os.getenv("GENAI_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.append(Path.cwd() / "config.yaml")
    for path in candidates:
        data = _read_mapping(path)
        if data:
            return data
    return {}


class GatewaySettings(BaseSettings):
    """网关配置（使用 Pydantic）。"""

    # ---- 后端选择 ----
    mode: BackendMode = Field(default=BackendMode.MOCK, description="后端模式：mock / local / remote")
    endpoint: str = Field(
        default="http://localhost:11434/v1",
        description="本地 OpenAI 兼容服务的基础 URL",
    )
    model: str = Field(default="LFM2.5-1.2B-Instruct", description="本地文本模型名")
    embedding_model: str = Field(default="nomic-embed-text", description="本地向量模型名")
    api_key: Optional[str] = Field(default=None, description="本地服务的 API 密钥（可选）")
    timeout_ms: int = Field(default=60000, ge=1, description="单次本地调用的超时时间（毫秒）")

    # ---- mock 行为 ----
    mock_latency_ms: int = Field(default=500, ge=0, description="mock 非流式响应的模拟延迟")
    mock_stream_delay_ms: int = Field(default=100, ge=0, description="mock 流式输出每个词之间的延迟")

    embedding_concurrency: int = Field(default=8, ge=1, le=64, description="批量向量的并发数")

    # ---- 日志 ----
    log_dir: Optional[str] = Field(default=None, description="日志目录，为空时输出到 stderr")
    log_level: str = Field(default="INFO", description="日志级别")
    log_redact_content: bool = Field(default=False, description="是否截断日志内容")

    project_path: Optional[str] = Field(default=None, description="读取 .genairc.json 的项目目录")

    model_config = SettingsConfigDict(
        env_prefix="GENAI_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("mode", mode="before")
    @classmethod
    def normalize_mode(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("endpoint")
    @classmethod
    def strip_endpoint(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        project_path = getattr(init_settings, "init_kwargs", {}).get("project_path")
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            lambda: _load_genairc(project_path),
            _load_config_from_yaml,
            file_secret_settings,
        )


def load_settings(project_path: Optional[str] = None, **overrides: Any) -> GatewaySettings:
    """构造一份显式的网关配置。

    Args:
        project_path: 项目目录，其中的 .genairc.json 会覆盖用户级配置。
        overrides: 直接传入的字段值，优先级最高。

    Raises:
        ConfigurationError: 配置无法通过校验（例如 mode 不是 mock/local/remote）。
    """

    if project_path is not None:
        overrides["project_path"] = project_path
    try:
        return GatewaySettings(**overrides)
    except ValidationError as exc:
        fields = [".".join(str(p) for p in err["loc"]) for err in exc.errors()]
        raise ConfigurationError(
            code="INVALID_CONFIG",
            message=f"Invalid gateway configuration: {', '.join(fields)}",
            fields=fields,
        ) from exc
