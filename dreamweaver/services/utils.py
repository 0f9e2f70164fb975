"""服务层工具函数。"""
from __future__ import annotations

import time
from collections.abc import Container
from datetime import datetime, UTC


def utcnow_iso() -> str:
    """当前 UTC 时间的 ISO-8601 字符串（毫秒精度，Z 结尾）。"""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class IdGenerator:
    """``<prefix>_<毫秒时间戳>`` 形式的 ID，进程内单调递增。

    同一毫秒内连续创建时时间戳部分自动 +1；若与目标集合中已有 ID 冲突
    （例如读取了时钟更靠后的存档），继续递增直到不冲突。
    """

    def __init__(self) -> None:
        self._last = 0

    def new(self, prefix: str, taken: Container[str] = ()) -> str:
        stamp = max(int(time.time() * 1000), self._last + 1)
        candidate = f"{prefix}_{stamp}"
        while candidate in taken:
            stamp += 1
            candidate = f"{prefix}_{stamp}"
        self._last = stamp
        return candidate


# 全局单例
id_generator = IdGenerator()
