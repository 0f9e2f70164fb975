"""进程级组件容器。

启动时创建一次（测试中可直接构造后注入 ``create_app``），
生命周期与进程相同；工作区通过 ``StorySlotManager.start_new`` 等操作显式重置。
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine

from dreamweaver.config import Settings
from dreamweaver.db.session import build_engine, build_session_maker, init_db
from dreamweaver.services.beat_generation import BeatGenerationCoordinator
from dreamweaver.services.generation import GenerationClient
from dreamweaver.services.storage import KeyValueStorage
from dreamweaver.services.story_slots import StorySlotManager
from dreamweaver.services.task_manager import TaskManager
from dreamweaver.services.workspace import Workspace
from dreamweaver.ws.manager import ConnectionManager

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Runtime:
    settings: Settings
    engine: AsyncEngine | None
    storage: KeyValueStorage
    workspace: Workspace
    stories: StorySlotManager
    client: GenerationClient
    coordinator: BeatGenerationCoordinator
    ws: ConnectionManager

    @classmethod
    def build(
        cls,
        settings: Settings,
        storage: KeyValueStorage,
        *,
        client: GenerationClient | None = None,
        ws: ConnectionManager | None = None,
        engine: AsyncEngine | None = None,
    ) -> "Runtime":
        ws = ws or ConnectionManager()
        client = client or GenerationClient(settings)
        workspace = Workspace(storage, debounce_s=settings.persist_debounce_s)
        return cls(
            settings=settings,
            engine=engine,
            storage=storage,
            workspace=workspace,
            stories=StorySlotManager(workspace),
            client=client,
            coordinator=BeatGenerationCoordinator(workspace, client, ws, TaskManager()),
            ws=ws,
        )

    @classmethod
    async def open(
        cls,
        settings: Settings,
        *,
        client: GenerationClient | None = None,
        ws: ConnectionManager | None = None,
    ) -> "Runtime":
        """建库、读取上次的工作区与存档索引"""
        engine = build_engine(settings)
        await init_db(engine)
        storage = KeyValueStorage(build_session_maker(engine))
        runtime = cls.build(settings, storage, client=client, ws=ws, engine=engine)
        await runtime.load()
        return runtime

    async def load(self) -> None:
        await self.workspace.load()
        await self.stories.load_index()

    async def close(self) -> None:
        # 先等进行中的生成写回结果，再把合并窗口里的编辑落盘
        await self.coordinator.drain()
        await self.workspace.flush()
        await self.client.aclose()
        if self.engine is not None:
            await self.engine.dispose()
        logger.info("Runtime closed")
