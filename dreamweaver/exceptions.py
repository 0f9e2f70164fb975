"""应用异常定义。

所有异常都带有机器可读的 ``code`` 与面向用户的 ``message``，
由 ``dreamweaver.main`` 中的全局异常处理器统一渲染。
"""
from __future__ import annotations

from typing import Any


class AppException(Exception):
    code: str = "APP_ERROR"
    status_code: int = 400

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}


class EncodingError(AppException):
    """上传内容无法识别为图片"""

    code = "ENCODING_ERROR"
    status_code = 400


class ConfigurationError(AppException):
    """缺少 API Key，生成请求在发起网络调用前即被拒绝"""

    code = "NOT_CONFIGURED"
    status_code = 400


class GenerationError(AppException):
    """生成服务调用失败（网络 / 鉴权 / 响应格式）"""

    code = "GENERATION_FAILED"
    status_code = 502


class GenerationInProgressError(AppException):
    """同一分镜已有进行中的生成请求"""

    code = "GENERATION_IN_PROGRESS"
    status_code = 409
