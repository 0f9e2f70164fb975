"""故事存档：保存 / 读取 / 重命名 / 删除工作区快照。

存档列表按创建顺序排列（不按最近修改排序）。"当前存档"由单独的指针记录，
不是存档上的字段。本模块从不调用生成服务。
"""
from __future__ import annotations

import logging

from dreamweaver.schemas.workspace import STORY_SCHEMA_VERSION, StorySlot, StorySummary, coerce_records
from dreamweaver.services.storage import DebouncedWriter, StorageKeys
from dreamweaver.services.utils import id_generator, utcnow_iso
from dreamweaver.services.workspace import Workspace

logger = logging.getLogger(__name__)


class StorySlotManager:
    def __init__(self, workspace: Workspace):
        self.workspace = workspace
        self._storage = workspace.storage
        self._slots: list[StorySlot] = []
        self._current_id: str | None = None
        self._slots_writer = DebouncedWriter(self._storage, StorageKeys.SAVED_STORIES, delay_s=0)
        self._current_writer = DebouncedWriter(self._storage, StorageKeys.CURRENT_STORY_ID, delay_s=0, encode=str)

    @property
    def current_id(self) -> str | None:
        return self._current_id

    def current(self) -> StorySlot | None:
        return self.get(self._current_id) if self._current_id else None

    def get(self, story_id: str) -> StorySlot | None:
        return next((s for s in self._slots if s.id == story_id), None)

    def list(self) -> list[StorySummary]:
        return [StorySummary.from_slot(s) for s in self._slots]

    async def load_index(self) -> None:
        try:
            raw = await self._storage.get_json(StorageKeys.SAVED_STORIES, default=[])
            current_id = await self._storage.get(StorageKeys.CURRENT_STORY_ID)
        except Exception:
            logger.exception("Error loading saved stories")
            raw, current_id = [], None
        self._slots = coerce_records(StorySlot, raw, source=StorageKeys.SAVED_STORIES)
        self._current_id = current_id if current_id and self.get(current_id) else None

    async def save(self, name: str = "", existing_id: str | None = None) -> StorySlot:
        """保存当前工作区。``existing_id`` 指向已有存档时覆盖它，否则新建"""
        # 先把合并窗口中尚未落盘的编辑写掉，快照以内存状态为准
        await self.workspace.flush()
        data = self.workspace.snapshot()
        now = utcnow_iso()
        name = (name or "").strip()

        index = self._index_of(existing_id) if existing_id else None
        if index is not None:
            previous = self._slots[index]
            slot = previous.model_copy(
                update={
                    "name": name or previous.name,
                    "data": data,
                    "updated_at": now,
                    "version": STORY_SCHEMA_VERSION,
                }
            )
            self._slots[index] = slot
        else:
            slot = StorySlot(
                id=id_generator.new("story", taken={s.id for s in self._slots}),
                name=name or f"Untitled Story {len(self._slots) + 1}",
                data=data,
                created_at=now,
                updated_at=now,
            )
            self._slots.append(slot)

        await self._persist_slots()
        await self._set_current(slot.id)
        logger.info(f"Saved story {slot.id} ({slot.name})")
        return slot

    async def quick_save(self) -> StorySlot | None:
        """覆盖保存当前存档；没有当前存档时返回 None，由调用方询问名称"""
        current = self.current()
        if current is None:
            return None
        return await self.save(current.name, current.id)

    async def load(self, story_id: str) -> bool:
        slot = self.get(story_id)
        if slot is None:
            logger.warning(f"Story not found: {story_id}")
            return False
        if slot.version > STORY_SCHEMA_VERSION:
            logger.warning(
                f"Story {story_id} has schema version {slot.version}, "
                f"newer than supported version {STORY_SCHEMA_VERSION}; not loading"
            )
            return False

        await self.workspace.restore(slot.data.model_copy(deep=True))
        await self._set_current(story_id)
        logger.info(f"Loaded story {story_id} ({slot.name})")
        return True

    async def delete(self, story_id: str) -> bool:
        remaining = [s for s in self._slots if s.id != story_id]
        removed = len(remaining) != len(self._slots)
        self._slots = remaining
        await self._persist_slots()
        # 只清除指针，不清空工作区
        if self._current_id == story_id:
            await self._set_current(None)
        return removed

    async def rename(self, story_id: str, name: str) -> bool:
        """重命名存档；空白名称与不存在的 ID 一样被忽略"""
        name = (name or "").strip()
        index = self._index_of(story_id)
        if index is None or not name:
            return False
        self._slots[index] = self._slots[index].model_copy(update={"name": name, "updated_at": utcnow_iso()})
        await self._persist_slots()
        return True

    async def start_new(self) -> None:
        """清空工作区和当前指针，已保存的存档不受影响"""
        await self.workspace.clear()
        await self._set_current(None)

    async def clear_all(self) -> None:
        await self.start_new()

    def _index_of(self, story_id: str) -> int | None:
        return next((idx for idx, s in enumerate(self._slots) if s.id == story_id), None)

    async def _persist_slots(self) -> None:
        await self._slots_writer.write_now([s.to_storage() for s in self._slots])

    async def _set_current(self, story_id: str | None) -> None:
        self._current_id = story_id
        await self._current_writer.write_now(story_id)
