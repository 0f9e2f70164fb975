"""分镜提示词生成编排。

每个分镜的状态：Idle -> Pending -> Idle（结果 / 错误）。
进入 Pending 的所有检查和状态修改都在同一次同步调用中完成（中间没有 await），
因此同一分镜不会同时存在两个生成请求；不同分镜之间完全并行。
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any

from dreamweaver.exceptions import ConfigurationError, GenerationInProgressError
from dreamweaver.services.generation import NOT_CONFIGURED_MESSAGE, GenerationClient, GenerationResult
from dreamweaver.services.prompt_composer import GenerationRequest, compose_for_beat
from dreamweaver.services.task_manager import TaskManager
from dreamweaver.services.workspace import Workspace
from dreamweaver.ws.manager import ConnectionManager

logger = logging.getLogger(__name__)


class BeatGenerationCoordinator:
    def __init__(
        self,
        workspace: Workspace,
        client: GenerationClient,
        ws: ConnectionManager,
        tasks: TaskManager | None = None,
    ):
        self.workspace = workspace
        self.client = client
        self.ws = ws
        self.tasks = tasks or TaskManager()
        self._notifications: set[asyncio.Task] = set()
        # beat_id -> 发起生成时的工作区 epoch
        self._epochs: dict[str, int] = {}
        # 工作区被整体替换后仍在执行的旧任务，只用于 drain
        self._detached: set[asyncio.Task] = set()

    def is_pending(self, beat_id: str) -> bool:
        return self._in_flight(beat_id)

    def _in_flight(self, beat_id: str) -> bool:
        """当前工作区中该分镜是否有进行中的生成。

        读取存档 / 清空之前发出的任务不再占用该分镜：从登记表中移出，结果到达时丢弃。
        """
        if not self.tasks.is_running(beat_id):
            return False
        if self._epochs.get(beat_id) == self.workspace.epoch:
            return True
        stale = self.tasks.remove(beat_id)
        if stale is not None:
            self._detached.add(stale)
            stale.add_done_callback(self._detached.discard)
        return False

    def request(self, beat_id: str) -> asyncio.Task[GenerationResult] | None:
        """请求为分镜生成提示词。

        返回后台任务；分镜不存在或动作描述为空时返回 None（不做任何事）。
        未配置 API Key 时在分镜上记录错误并抛出 ``ConfigurationError``，不会发起请求；
        已在生成中时抛出 ``GenerationInProgressError``。
        """
        beats = self.workspace.beats
        beat = beats.get(beat_id)
        if beat is None or not beat.action.strip():
            return None

        if not self.client.configured():
            updated = beats.update(beat_id, "error", NOT_CONFIGURED_MESSAGE)
            self._notify("beat_updated", {"beat": _dump(updated)})
            logger.warning(f"Generation rejected for beat {beat_id}: not configured")
            raise ConfigurationError(NOT_CONFIGURED_MESSAGE)

        if self._in_flight(beat_id):
            raise GenerationInProgressError(
                f"Beat {beat_id} is already generating",
                details={"beat_id": beat_id},
            )

        # 组装发生在点击时：之后对工作区的修改不影响本次请求
        request = compose_for_beat(
            beat,
            story_context=self.workspace.context.get(),
            characters=self.workspace.selected_characters(),
            locations=self.workspace.selected_locations(),
        )
        beats.update_many(beat_id, {"error": None, "is_generating": True})

        epoch = self.workspace.epoch
        task = asyncio.create_task(self._run(beat_id, request, epoch))
        self.tasks.register(beat_id, task)
        self._epochs[beat_id] = epoch
        logger.info(
            f"Generation started for beat {beat_id} "
            f"({len(request.images)} reference image(s))"
        )
        return task

    async def generate(self, beat_id: str) -> GenerationResult | None:
        """``request`` 并等待结果"""
        task = self.request(beat_id)
        if task is None:
            return None
        return await task

    async def _run(self, beat_id: str, request: GenerationRequest, epoch: int) -> GenerationResult:
        beats = self.workspace.beats
        await self.ws.send_event({"type": "beat_generation_started", "data": {"beat_id": beat_id}})
        try:
            result = await self.client.generate(request)
        except Exception as exc:
            # GenerationClient 不应抛出；兜底转换为错误结果
            logger.exception(f"Generation client raised for beat {beat_id}")
            result = GenerationResult(success=False, error=str(exc) or exc.__class__.__name__)

        if self.workspace.epoch != epoch:
            # 等待期间读取了存档或清空了工作区：同 id 的分镜已不是发起请求的那个
            logger.info(f"Discarding stale generation result for beat {beat_id}")
            return result

        try:
            if result.success:
                # 分镜在等待期间被删除时 update 返回 None，结果直接丢弃
                beats.update_many(
                    beat_id,
                    {"generated_prompt": result.prompt, "error": None, "is_generating": False},
                )
                logger.info(f"Generation completed for beat {beat_id}")
                await self.ws.send_event(
                    {
                        "type": "beat_generation_completed",
                        "data": {"beat": _dump(beats.get(beat_id)), "beat_id": beat_id, "reveal": True},
                    }
                )
            else:
                # 保留之前成功生成的 generated_prompt
                beats.update_many(beat_id, {"error": result.error, "is_generating": False})
                logger.warning(f"Generation failed for beat {beat_id}: {result.error}")
                await self.ws.send_event(
                    {
                        "type": "beat_generation_failed",
                        "data": {"beat": _dump(beats.get(beat_id)), "beat_id": beat_id, "error": result.error},
                    }
                )
        finally:
            beat = beats.get(beat_id)
            if beat is not None and beat.is_generating:
                beats.update(beat_id, "is_generating", False)
        return result

    def _notify(self, event_type: str, data: dict[str, Any]) -> None:
        task = asyncio.create_task(self.ws.send_event({"type": event_type, "data": data}))
        self._notifications.add(task)
        task.add_done_callback(self._notifications.discard)

    async def drain(self) -> None:
        await self.tasks.drain()
        if self._detached:
            await asyncio.gather(*self._detached, return_exceptions=True)
        if self._notifications:
            await asyncio.gather(*self._notifications, return_exceptions=True)


def _dump(beat: Any) -> dict[str, Any] | None:
    return beat.to_storage() if beat is not None else None
