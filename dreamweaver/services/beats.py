"""分镜列表（有序）。

字段编辑只更新内存并合并写入；新增 / 删除 / 整体替换立即落盘。
``is_generating`` 是瞬时状态，读取时一律重置为 False。
"""
from __future__ import annotations

import logging
import string
from typing import Any

from pydantic.alias_generators import to_camel

from dreamweaver.schemas.cinematography import CINEMATOGRAPHY_FIELDS, is_valid_option
from dreamweaver.schemas.workspace import BEAT_EDITABLE_FIELDS, BEAT_STATE_FIELDS, Beat, coerce_records
from dreamweaver.services.storage import DebouncedWriter, KeyValueStorage, StorageKeys
from dreamweaver.services.utils import id_generator

logger = logging.getLogger(__name__)

_LETTERS = string.ascii_uppercase

BEAT_FIELDS = BEAT_EDITABLE_FIELDS + BEAT_STATE_FIELDS
# 同时接受 camelCase（持久化 / 前端字段名）
_FIELD_NAMES = {name: name for name in BEAT_FIELDS} | {to_camel(name): name for name in BEAT_FIELDS}


def label_for(index: int) -> str:
    """0 -> "A" ... 25 -> "Z", 26 -> "0A", 27 -> "0B", 52 -> "1A" """
    if index < 0:
        raise ValueError(f"index must be non-negative, got {index}")
    if index < 26:
        return _LETTERS[index]
    return f"{index // 26 - 1}{_LETTERS[index % 26]}"


def _normalize_field(field: str) -> str:
    try:
        return _FIELD_NAMES[field]
    except KeyError:
        raise ValueError(f"Unknown beat field: {field}") from None


def _validate_value(field: str, value: Any) -> Any:
    if field in CINEMATOGRAPHY_FIELDS:
        value = value or ""
        if not isinstance(value, str) or not is_valid_option(field, value):
            raise ValueError(f"Invalid {field} option: {value!r}")
        return value
    if field in ("action", "outfit_override"):
        value = "" if value is None else value
        if not isinstance(value, str):
            raise ValueError(f"{field} must be a string")
        return value
    if field == "is_generating":
        return bool(value)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"{field} must be a string or null")
    return value


class BeatStore:
    def __init__(self, storage: KeyValueStorage, *, debounce_s: float = 1.0):
        self._storage = storage
        self._items: list[Beat] = []
        self._writer = DebouncedWriter(storage, StorageKeys.BEATS, delay_s=debounce_s)

    def __len__(self) -> int:
        return len(self._items)

    def list(self) -> list[Beat]:
        return list(self._items)

    def labelled(self) -> list[tuple[str, Beat]]:
        return [(label_for(idx), beat) for idx, beat in enumerate(self._items)]

    def get(self, beat_id: str) -> Beat | None:
        return next((b for b in self._items if b.id == beat_id), None)

    def index_of(self, beat_id: str) -> int | None:
        return next((idx for idx, b in enumerate(self._items) if b.id == beat_id), None)

    def dump(self) -> list[dict[str, Any]]:
        return [b.to_storage() for b in self._items]

    async def load(self) -> None:
        try:
            raw = await self._storage.get_json(StorageKeys.BEATS, default=[])
        except Exception:
            logger.exception("Error loading beats")
            raw = []
        self._items = [_settled(b) for b in coerce_records(Beat, raw, source=StorageKeys.BEATS)]

    async def add(self) -> Beat:
        beat = Beat(id=id_generator.new("beat", taken={b.id for b in self._items}))
        self._items.append(beat)
        await self._writer.write_now(self.dump())
        return beat

    def update(self, beat_id: str, field: str, value: Any) -> Beat | None:
        """更新单个字段；分镜不存在时静默忽略，字段名或取值非法时抛出 ``ValueError``"""
        name = _normalize_field(field)
        value = _validate_value(name, value)

        updated: Beat | None = None
        items: list[Beat] = []
        for beat in self._items:
            if beat.id == beat_id:
                beat = beat.model_copy(update={name: value})
                updated = beat
            items.append(beat)
        if updated is None:
            return None

        self._items = items
        self._writer.schedule(self.dump())
        return updated

    def update_many(self, beat_id: str, changes: dict[str, Any]) -> Beat | None:
        # 先整体校验，避免部分字段生效
        normalized = {_normalize_field(k): v for k, v in changes.items()}
        validated = {k: _validate_value(k, v) for k, v in normalized.items()}
        beat = self.get(beat_id)
        for name, value in validated.items():
            beat = self.update(beat_id, name, value)
        return beat

    async def remove(self, beat_id: str) -> bool:
        remaining = [b for b in self._items if b.id != beat_id]
        removed = len(remaining) != len(self._items)
        self._items = remaining
        await self._writer.write_now(self.dump())
        return removed

    async def replace_all(self, beats: list[Beat]) -> None:
        self._items = [_settled(b) for b in beats]
        await self._writer.write_now(self.dump())

    async def flush(self) -> None:
        await self._writer.flush()

    async def aclose(self) -> None:
        await self._writer.aclose()


def _settled(beat: Beat) -> Beat:
    return beat.model_copy(deep=True, update={"is_generating": False})
