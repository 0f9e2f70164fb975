"""任务管理器 - 跟踪进行中的分镜生成任务"""
from __future__ import annotations

import asyncio
from typing import Dict


class TaskManager:
    """每个分镜最多一个进行中的生成任务。

    不支持取消：已发出的请求总会执行完毕并写回结果。
    """

    def __init__(self) -> None:
        # beat_id -> task
        self._tasks: Dict[str, asyncio.Task] = {}

    def register(self, beat_id: str, task: asyncio.Task) -> bool:
        """注册一个任务；已有进行中的任务时拒绝，返回 False"""
        if self.is_running(beat_id):
            return False
        self._tasks[beat_id] = task
        task.add_done_callback(lambda t, key=beat_id: self._discard(key, t))
        return True

    def _discard(self, beat_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(beat_id) is task:
            del self._tasks[beat_id]

    def remove(self, beat_id: str) -> asyncio.Task | None:
        """移除任务记录并返回该任务（任务本身继续执行）"""
        return self._tasks.pop(beat_id, None)

    def is_running(self, beat_id: str) -> bool:
        """检查分镜是否有进行中的生成任务"""
        task = self._tasks.get(beat_id)
        return task is not None and not task.done()

    async def drain(self) -> None:
        """等待所有进行中的任务结束（关闭服务前调用）"""
        tasks = [task for task in self._tasks.values() if not task.done()]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
