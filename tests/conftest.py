from __future__ import annotations

import asyncio
from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from dreamweaver.config import Settings
from dreamweaver.db.session import build_engine, build_session_maker, init_db
from dreamweaver.main import create_app
from dreamweaver.runtime import Runtime
from dreamweaver.schemas.ws import WsEvent
from dreamweaver.services.generation import GenerationResult
from dreamweaver.services.prompt_composer import GenerationRequest
from dreamweaver.services.storage import KeyValueStorage


@pytest.fixture()
def test_settings(tmp_path, monkeypatch) -> Settings:
    # 确保环境变量不干扰测试
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        google_api_key="test-key",
        persist_debounce_s=0.05,
    )


class StubWsManager:
    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []

    async def send_event(self, event: dict[str, Any] | WsEvent) -> None:
        if isinstance(event, WsEvent):
            event = event.model_dump()
        self.events.append(event)

    async def send_to(self, websocket: Any, event: dict[str, Any] | WsEvent) -> None:
        await self.send_event(event)

    def types(self) -> list[str]:
        return [e["type"] for e in self.events]


class StubGenerationClient:
    """替代 GenerationClient：不发网络请求，记录收到的请求。

    设置 ``gate`` 后，``generate`` 会一直等待直到 gate 被 set，用于观察 Pending 状态。
    """

    model = "stub-model"

    def __init__(self, result: GenerationResult | None = None, *, configured: bool = True) -> None:
        self.result = result or GenerationResult(success=True, prompt="## Cinematic Paragraph\nA quiet room.")
        self.is_configured = configured
        self.requests: list[GenerationRequest] = []
        self.gate: asyncio.Event | None = None

    def configured(self) -> bool:
        return self.is_configured

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        return self.result

    async def aclose(self) -> None:
        return None


@pytest_asyncio.fixture(scope="function")
async def storage(test_settings: Settings) -> AsyncGenerator[KeyValueStorage, None]:
    engine = build_engine(test_settings)
    await init_db(engine)
    yield KeyValueStorage(build_session_maker(engine))
    await engine.dispose()


@pytest.fixture()
def ws_manager() -> StubWsManager:
    return StubWsManager()


@pytest.fixture()
def generation_client() -> StubGenerationClient:
    return StubGenerationClient()


@pytest_asyncio.fixture(scope="function")
async def runtime(
    test_settings: Settings,
    storage: KeyValueStorage,
    ws_manager: StubWsManager,
    generation_client: StubGenerationClient,
) -> AsyncGenerator[Runtime, None]:
    runtime = Runtime.build(test_settings, storage, client=generation_client, ws=ws_manager)
    await runtime.load()
    yield runtime
    await runtime.close()


@pytest.fixture()
def workspace(runtime: Runtime):
    return runtime.workspace


@pytest.fixture()
def stories(runtime: Runtime):
    return runtime.stories


@pytest.fixture()
def coordinator(runtime: Runtime):
    return runtime.coordinator


@pytest_asyncio.fixture(scope="function")
async def app(runtime: Runtime):
    return create_app(runtime=runtime)


@pytest_asyncio.fixture(scope="function")
async def async_client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
