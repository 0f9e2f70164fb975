from __future__ import annotations

import asyncio
from typing import Any

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from dreamweaver.schemas.ws import WsEvent


class ConnectionManager:
    """工作区事件推送（单工作区，所有连接共享同一频道）"""

    def __init__(self) -> None:
        self._conns: set[WebSocket] = set()
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._conns.add(websocket)

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._conns.discard(websocket)

    async def send_event(self, event: dict[str, Any] | WsEvent) -> None:
        if isinstance(event, dict):
            event = WsEvent.model_validate(event)
        payload = event.model_dump()
        for ws in list(self._conns):
            if ws.client_state != WebSocketState.CONNECTED:
                continue
            try:
                await ws.send_json(payload)
            except Exception:
                await self.disconnect(ws)

    async def send_to(self, websocket: WebSocket, event: dict[str, Any] | WsEvent) -> None:
        if isinstance(event, dict):
            event = WsEvent.model_validate(event)
        await websocket.send_json(event.model_dump())
