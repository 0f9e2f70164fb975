from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Note: do not hardcode env_file here; tests instantiate Settings() directly and
    # should not implicitly read the repo's .env. Runtime uses get_settings().
    model_config = SettingsConfigDict(extra="ignore")

    app_name: str = "dreamweaver-backend"
    environment: str = Field(default="dev", description="dev|staging|prod")
    log_level: str = Field(default="INFO", description="Uvicorn log level")
    host: str = "127.0.0.1"
    port: int = 8000

    api_v1_prefix: str = "/api/v1"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # 工作区持久化（key/value 表）
    database_url: str = Field(default="sqlite+aiosqlite:///./dreamweaver.db")
    db_echo: bool = False
    persist_debounce_s: float = Field(
        default=1.0,
        ge=0.0,
        description="故事背景 / 分镜字段编辑的合并写入窗口（秒）",
    )

    # ============================================
    # Gemini 提示词生成服务
    # ============================================
    google_api_key: str | None = Field(
        default=None,
        description="Google AI Studio API Key（唯一凭证）",
    )
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Gemini REST API 基础地址",
    )
    request_timeout_s: float = 120.0

    max_upload_bytes: int = Field(
        default=20 * 1024 * 1024,
        description="角色 / 场景参考图上传大小上限",
    )

    def gemini_headers(self) -> dict[str, str]:
        """Gemini 请求头"""
        headers: dict[str, str] = {
            "User-Agent": self.app_name,
            "Content-Type": "application/json",
        }
        if self.google_api_key:
            headers["x-goog-api-key"] = self.google_api_key
        return headers


@lru_cache
def get_settings() -> Settings:
    return Settings(_env_file=".env", _env_file_encoding="utf-8")
