from __future__ import annotations

import logging

from dreamweaver.services.storage import DebouncedWriter, KeyValueStorage, StorageKeys

logger = logging.getLogger(__name__)


class ContextStore:
    """故事背景文本。``set`` 只更新内存并合并写入，窗口内多次编辑只落盘最后一次"""

    def __init__(self, storage: KeyValueStorage, *, debounce_s: float = 1.0):
        self._storage = storage
        self._value = ""
        self._writer = DebouncedWriter(storage, StorageKeys.STORY_CONTEXT, delay_s=debounce_s, encode=str)

    def get(self) -> str:
        return self._value

    def set(self, value: str) -> None:
        self._value = value
        self._writer.schedule(value)

    async def load(self) -> None:
        try:
            self._value = await self._storage.get(StorageKeys.STORY_CONTEXT) or ""
        except Exception:
            logger.exception("Error loading story context")
            self._value = ""

    async def replace(self, value: str) -> None:
        self._value = value
        await self._writer.write_now(value)

    async def flush(self) -> None:
        await self._writer.flush()

    async def aclose(self) -> None:
        await self._writer.aclose()
