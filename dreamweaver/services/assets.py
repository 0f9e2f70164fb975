"""角色 / 场景素材库。

两个命名空间结构完全相同，由同一个 ``AssetStore`` 按 ``AssetNamespace`` 实例化两次。
选中集合的联动由 ``Workspace`` 负责，本模块只管理素材本身。
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal

from dreamweaver.schemas.workspace import Asset, coerce_records
from dreamweaver.services.images import encode_image
from dreamweaver.services.storage import DebouncedWriter, KeyValueStorage, StorageKeys
from dreamweaver.services.utils import id_generator, utcnow_iso

logger = logging.getLogger(__name__)

AssetKind = Literal["character", "location"]


@dataclass(frozen=True, slots=True)
class AssetNamespace:
    kind: AssetKind
    storage_key: str
    id_prefix: str
    default_label: str


CHARACTERS = AssetNamespace("character", StorageKeys.CHARACTERS, "char", "Character")
LOCATIONS = AssetNamespace("location", StorageKeys.LOCATIONS, "loc", "Location")


class AssetStore:
    def __init__(self, storage: KeyValueStorage, namespace: AssetNamespace):
        self.namespace = namespace
        self._storage = storage
        self._items: list[Asset] = []
        # 素材变更不做合并，立即写入
        self._writer = DebouncedWriter(storage, namespace.storage_key, delay_s=0)

    @property
    def kind(self) -> AssetKind:
        return self.namespace.kind

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, asset_id: object) -> bool:
        return any(a.id == asset_id for a in self._items)

    def list(self) -> list[Asset]:
        return list(self._items)

    def get(self, asset_id: str) -> Asset | None:
        return next((a for a in self._items if a.id == asset_id), None)

    def dump(self) -> list[dict[str, Any]]:
        return [a.to_storage() for a in self._items]

    async def load(self) -> None:
        try:
            raw = await self._storage.get_json(self.namespace.storage_key, default=[])
        except Exception:
            logger.exception(f"Error loading {self.namespace.storage_key}")
            raw = []
        self._items = coerce_records(Asset, raw, source=self.namespace.storage_key)

    async def add(self, image: bytes, name: str | None = None) -> Asset:
        """编码图片并追加到末尾；图片不可读时抛出 ``EncodingError``，不会创建记录"""
        payload = await encode_image(image)
        name = (name or "").strip() or f"{self.namespace.default_label} {len(self._items) + 1}"
        asset = Asset(
            id=id_generator.new(self.namespace.id_prefix, taken={a.id for a in self._items}),
            name=name,
            image=payload,
            created_at=utcnow_iso(),
        )
        self._items.append(asset)
        logger.info(f"Added {self.kind} {asset.id} ({asset.name})")
        await self._persist()
        return asset

    async def remove(self, asset_id: str) -> bool:
        remaining = [a for a in self._items if a.id != asset_id]
        removed = len(remaining) != len(self._items)
        self._items = remaining
        await self._persist()
        return removed

    async def rename(self, asset_id: str, name: str) -> Asset | None:
        updated: Asset | None = None
        items: list[Asset] = []
        for asset in self._items:
            if asset.id == asset_id:
                asset = asset.model_copy(update={"name": name})
                updated = asset
            items.append(asset)
        self._items = items
        await self._persist()
        return updated

    async def replace_all(self, assets: list[Asset]) -> None:
        self._items = [a.model_copy(deep=True) for a in assets]
        await self._persist()

    async def flush(self) -> None:
        await self._writer.flush()

    async def _persist(self) -> None:
        await self._writer.write_now(self.dump())
