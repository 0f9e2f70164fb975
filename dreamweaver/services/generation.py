from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from dreamweaver.config import Settings
from dreamweaver.exceptions import ConfigurationError, GenerationError
from dreamweaver.prompts.scene import SYSTEM_PROMPT
from dreamweaver.services.prompt_composer import GenerationRequest
from dreamweaver.services.utils import utcnow_iso

logger = logging.getLogger(__name__)

GEMINI_MODEL = "gemini-2.5-flash-lite"
NOT_CONFIGURED_MESSAGE = "API key not configured. Please add GOOGLE_API_KEY to your .env file."


@dataclass(slots=True)
class GenerationResult:
    success: bool
    prompt: str | None = None
    error: str | None = None
    timestamp: str = field(default_factory=utcnow_iso)


class GenerationClient:
    """Gemini ``generateContent`` 服务包装器。

    - 每次 ``generate`` 只发起一次 HTTP 调用，不做重试
    - 底层 httpx 客户端在首次使用时创建；缺少 API Key 时直接报错，不发请求
    - 所有失败都转换成 ``GenerationResult(success=False)``，不会向外抛出
    """

    def __init__(self, settings: Settings, *, model: str = GEMINI_MODEL):
        self.settings = settings
        self.model = model
        self._client: httpx.AsyncClient | None = None

    def configured(self) -> bool:
        return bool(self.settings.google_api_key)

    def _build_url(self) -> str:
        base = self.settings.gemini_base_url.rstrip("/")
        return f"{base}/models/{self.model}:generateContent"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is not None:
            return self._client
        if not self.configured():
            raise ConfigurationError(NOT_CONFIGURED_MESSAGE)
        self._client = httpx.AsyncClient(
            headers=self.settings.gemini_headers(),
            timeout=self.settings.request_timeout_s,
        )
        return self._client

    def _build_payload(self, request: GenerationRequest) -> dict[str, Any]:
        return {
            "systemInstruction": {"parts": [{"text": SYSTEM_PROMPT}]},
            "contents": [{"role": "user", "parts": request.to_parts()}],
        }

    def _parse_response(self, data: Any) -> str:
        if not isinstance(data, dict):
            raise GenerationError("Malformed response from generation service")

        candidates = data.get("candidates") or []
        if not candidates:
            block_reason = (data.get("promptFeedback") or {}).get("blockReason")
            if block_reason:
                raise GenerationError(f"Prompt was blocked: {block_reason}")
            raise GenerationError("Generation service returned no candidates")

        parts = ((candidates[0] or {}).get("content") or {}).get("parts") or []
        text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
        if not text:
            reason = (candidates[0] or {}).get("finishReason") or "unknown"
            raise GenerationError(f"Generation service returned no text (finishReason: {reason})")
        return text

    @staticmethod
    def _error_message(res: httpx.Response) -> str:
        # Gemini 错误体：{"error": {"code": 400, "message": "...", "status": "..."}}
        try:
            body = res.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = (body.get("error") or {}).get("message")
            if message:
                return str(message)
        return f"Generation request failed with status {res.status_code}"

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        try:
            client = self._get_client()
            res = await client.post(self._build_url(), json=self._build_payload(request))
            if res.is_error:
                raise GenerationError(self._error_message(res), details={"status_code": res.status_code})
            prompt = self._parse_response(res.json())
        except (ConfigurationError, GenerationError) as exc:
            logger.warning(f"Prompt generation failed: {exc.message}")
            return GenerationResult(success=False, error=exc.message)
        except httpx.HTTPError as exc:
            logger.warning(f"Prompt generation request error: {exc!r}")
            return GenerationResult(success=False, error=str(exc) or exc.__class__.__name__)
        except Exception as exc:
            logger.exception("Unexpected error while generating prompt")
            return GenerationResult(success=False, error=str(exc) or exc.__class__.__name__)

        return GenerationResult(success=True, prompt=prompt)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
