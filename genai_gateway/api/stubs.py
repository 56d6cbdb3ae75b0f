"""预览环境中不支持的 SDK 能力的占位实现。"""

import logging
from dataclasses import dataclass
from typing import Optional

from genai_gateway.domain.exceptions import LiveApiUnavailableError
from genai_gateway.infrastructure.logging.logger import log_event

STUB_URI_PREFIX = "genai-preview://stub/"


@dataclass
class UploadedFile:
    uri: str
    name: str


@dataclass
class FileResponse:
    file: UploadedFile


class FileManager:
    """文件上传的占位实现：不读取文件，只返回可预测的 URI。"""

    def __init__(self, api_key: Optional[str] = None):
        log_event(logging.INFO, "FileManager initialized (stub mode)")

    def upload_file(
        self,
        path: str,
        mime_type: Optional[str] = None,
        display_name: Optional[str] = None,
    ) -> FileResponse:
        log_event(logging.INFO, "File upload (stubbed)", path=path, mime_type=mime_type)
        return FileResponse(file=UploadedFile(uri=f"{STUB_URI_PREFIX}{path}", name=display_name or path))

    def get_file(self, name: str) -> FileResponse:
        return FileResponse(file=UploadedFile(uri=f"{STUB_URI_PREFIX}{name}", name=name))


class LiveAPI:
    """Live API 需要真实的云端连接，预览环境中不可用。"""

    def __init__(self):
        log_event(
            logging.WARNING,
            "Live API is not supported in local preview mode; it requires a real cloud connection",
        )

    def connect(self):
        raise LiveApiUnavailableError(
            code="LIVE_API_UNAVAILABLE",
            message="Live API is not available in preview mode",
            http_status=501,
        )
