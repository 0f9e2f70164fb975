"""当前编辑中的工作区：素材库 ×2 + 故事背景 + 分镜 + 选中集合。

进程内只有一个实例，由 ``Runtime`` 创建并注入到各个组件；
通过 ``restore`` / ``clear`` 显式重置，而不是替换对象。
"""
from __future__ import annotations

import logging

from dreamweaver.schemas.workspace import Asset, StoryData
from dreamweaver.services.assets import CHARACTERS, LOCATIONS, AssetKind, AssetStore
from dreamweaver.services.beats import BeatStore
from dreamweaver.services.context import ContextStore
from dreamweaver.services.storage import KeyValueStorage

logger = logging.getLogger(__name__)


class Workspace:
    def __init__(self, storage: KeyValueStorage, *, debounce_s: float = 1.0):
        self.storage = storage
        self.characters = AssetStore(storage, CHARACTERS)
        self.locations = AssetStore(storage, LOCATIONS)
        self.context = ContextStore(storage, debounce_s=debounce_s)
        self.beats = BeatStore(storage, debounce_s=debounce_s)
        # 选中集合只属于当前会话，不随故事存档保存
        self.selected_character_ids: set[str] = set()
        self.selected_location_ids: set[str] = set()
        # 每次整体替换工作区（读取存档 / 清空）时 +1，替换前发出的生成结果据此丢弃
        self.epoch = 0

    async def load(self) -> None:
        await self.characters.load()
        await self.locations.load()
        await self.context.load()
        await self.beats.load()
        self.clear_selection()
        logger.info(
            f"Workspace loaded: {len(self.characters)} characters, "
            f"{len(self.locations)} locations, {len(self.beats)} beats"
        )

    def assets(self, kind: AssetKind) -> AssetStore:
        if kind == "character":
            return self.characters
        if kind == "location":
            return self.locations
        raise ValueError(f"Unknown asset kind: {kind}")

    def _selection(self, kind: AssetKind) -> set[str]:
        return self.selected_character_ids if kind == "character" else self.selected_location_ids

    # ============ 选中集合 ============

    def toggle_selection(self, kind: AssetKind, asset_id: str) -> bool:
        """切换选中状态，返回切换后是否选中；素材不存在时不做任何事"""
        store = self.assets(kind)
        selection = self._selection(kind)
        if asset_id in selection:
            selection.discard(asset_id)
            return False
        if asset_id not in store:
            return False
        selection.add(asset_id)
        return True

    def set_selection(self, *, character_ids: list[str] | None = None, location_ids: list[str] | None = None) -> None:
        if character_ids is not None:
            self.selected_character_ids = {i for i in character_ids if i in self.characters}
        if location_ids is not None:
            self.selected_location_ids = {i for i in location_ids if i in self.locations}

    def clear_selection(self) -> None:
        self.selected_character_ids = set()
        self.selected_location_ids = set()

    def selected_characters(self) -> list[Asset]:
        return [a for a in self.characters.list() if a.id in self.selected_character_ids]

    def selected_locations(self) -> list[Asset]:
        return [a for a in self.locations.list() if a.id in self.selected_location_ids]

    async def remove_asset(self, kind: AssetKind, asset_id: str) -> bool:
        # 先从选中集合移除，保证不会出现指向已删除素材的选中项
        self._selection(kind).discard(asset_id)
        return await self.assets(kind).remove(asset_id)

    # ============ 快照 ============

    def snapshot(self) -> StoryData:
        """当前工作区的深拷贝，之后对工作区的修改不会影响快照"""
        return StoryData(
            characters=[a.model_copy(deep=True) for a in self.characters.list()],
            locations=[a.model_copy(deep=True) for a in self.locations.list()],
            story_context=self.context.get(),
            beats=[b.model_copy(deep=True) for b in self.beats.list()],
        )

    async def restore(self, data: StoryData) -> None:
        """用快照整体覆盖工作区，并清空选中集合"""
        self.epoch += 1
        self.clear_selection()
        await self.characters.replace_all(data.characters)
        await self.locations.replace_all(data.locations)
        await self.context.replace(data.story_context)
        await self.beats.replace_all(data.beats)

    async def clear(self) -> None:
        await self.restore(StoryData())

    def is_empty(self) -> bool:
        return not (len(self.beats) or self.context.get() or len(self.characters) or len(self.locations))

    async def flush(self) -> None:
        await self.characters.flush()
        await self.locations.flush()
        await self.context.aclose()
        await self.beats.aclose()
