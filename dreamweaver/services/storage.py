"""持久化：键值存储 + 合并写入。

所有写入都是尽力而为：失败只记录日志，内存中的工作区状态始终是权威数据。
"""
from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dreamweaver.models.storage import StorageItem, utcnow

logger = logging.getLogger(__name__)


class StorageKeys:
    CHARACTERS = "characters"
    LOCATIONS = "locations"
    STORY_CONTEXT = "story_context"
    BEATS = "beats"
    SAVED_STORIES = "saved_stories"
    CURRENT_STORY_ID = "current_story_id"


class KeyValueStorage:
    """基于 SQL 表的键值存储"""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def get(self, key: str) -> str | None:
        async with self._session_maker() as session:
            item = await session.get(StorageItem, key)
            return item.value if item else None

    async def set(self, key: str, value: str) -> None:
        async with self._session_maker() as session:
            item = await session.get(StorageItem, key)
            if item is None:
                item = StorageItem(key=key, value=value)
            else:
                item.value = value
                item.updated_at = utcnow()
            session.add(item)
            await session.commit()

    async def delete(self, key: str) -> None:
        async with self._session_maker() as session:
            item = await session.get(StorageItem, key)
            if item is not None:
                await session.delete(item)
                await session.commit()

    async def get_json(self, key: str, default: Any = None) -> Any:
        raw = await self.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Stored value for {key!r} is not valid JSON; using default")
            return default

    async def set_json(self, key: str, value: Any) -> None:
        await self.set(key, json.dumps(value, ensure_ascii=False))


def encode_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


_UNSET: Any = object()


class DebouncedWriter:
    """单个存储键的写入器。

    ``schedule`` 每次调用都会重置单次定时器，窗口结束时只写入最后一个值；
    ``write_now`` / ``flush`` 立即落盘。同一个键的写入按调用顺序串行执行。
    值为 ``None`` 表示删除该键。
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str,
        *,
        delay_s: float = 1.0,
        encode: Callable[[Any], str] = encode_json,
    ) -> None:
        self.storage = storage
        self.key = key
        self.delay_s = delay_s
        self._encode = encode
        self._pending: Any = _UNSET
        self._handle: asyncio.TimerHandle | None = None
        self._lock = asyncio.Lock()
        self._flush_tasks: set[asyncio.Task] = set()

    @property
    def has_pending(self) -> bool:
        return self._pending is not _UNSET

    def schedule(self, value: Any) -> None:
        self._pending = value
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay_s, self._on_timer)

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _on_timer(self) -> None:
        self._handle = None
        task = asyncio.create_task(self.flush())
        self._flush_tasks.add(task)
        task.add_done_callback(self._flush_tasks.discard)

    async def write_now(self, value: Any) -> bool:
        self._pending = value
        return await self.flush()

    async def flush(self) -> bool:
        self._cancel_timer()
        if self._pending is _UNSET:
            return True
        value, self._pending = self._pending, _UNSET
        async with self._lock:
            return await self._write(value)

    async def _write(self, value: Any) -> bool:
        try:
            if value is None:
                await self.storage.delete(self.key)
            else:
                await self.storage.set(self.key, self._encode(value))
            return True
        except Exception:
            logger.exception(f"Error saving {self.key}")
            return False

    async def aclose(self) -> None:
        await self.flush()
        if self._flush_tasks:
            await asyncio.gather(*self._flush_tasks, return_exceptions=True)
