"""Real-time synchronization of the shared canvas.

Every websocket goes through Connecting -> Active -> Closed. On becoming active it
receives the whole grid, then each accepted placement is broadcast to all open
connections, the sender included. The first claim on a cell wins; later claims
and malformed messages are dropped without a reply.
"""

import asyncio
import logging
from enum import Enum
from typing import List, Optional
from uuid import UUID

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from src.exceptions import MalformedMessageError, TransportFailureError
from src.grid_state_store import GridStateStore
from src.manager import ConnectionManager
from src.models.canvas_models import (
    CellUpdateMessage,
    ColorCellMessage,
    InitMessage,
    parse_inbound_message,
)


class ConnectionState(str, Enum):
    connecting = "connecting"
    active = "active"
    closed = "closed"


class SyncBroker:
    def __init__(self, grid_store: GridStateStore, connection_manager: ConnectionManager):
        self.grid_store = grid_store
        self.connection_manager = connection_manager

    def open_session(self, websocket: WebSocket) -> "CanvasSession":
        return CanvasSession(self, websocket)

    async def handle_message(self, raw: str | bytes) -> bool:
        """Apply one inbound frame

        Args:
            raw (str | bytes): frame received from a client

        Returns:
            bool: True if a placement was accepted and broadcast
        """
        try:
            message = parse_inbound_message(raw)
        except MalformedMessageError as e:
            logging.warning(f"Dropping malformed message: {e}")
            return False

        if isinstance(message, ColorCellMessage):
            return await self.color_cell(message)
        return False

    async def color_cell(self, message: ColorCellMessage) -> bool:
        accepted = await self.grid_store.try_claim(message.key, message.to_occupant())
        if not accepted:
            return False

        update = CellUpdateMessage(
            key=message.key, color=message.color, username=message.username
        )
        await self.connection_manager.broadcast(update.model_dump())
        logging.info(f"Pixel placed at {message.key} by {message.username}")
        return True


class CanvasSession:
    """One websocket connection to the canvas."""

    def __init__(self, broker: SyncBroker, websocket: WebSocket):
        self.broker = broker
        self.websocket = websocket
        self.connection_id: Optional[UUID] = None
        self.state = ConnectionState.connecting

    async def run(self):
        manager = self.broker.connection_manager
        self.connection_id = await manager.connect(self.websocket)
        self.state = ConnectionState.active
        logging.info(f"WebSocket connection established: {self.connection_id}")

        tasks: List[asyncio.Task] = []
        try:
            # Registered before the snapshot is taken, so a concurrent placement is
            # either in the snapshot or queued behind init (possibly both).
            snapshot = await self.broker.grid_store.get_snapshot()
            sender = manager.start_sending(
                self.connection_id, InitMessage(grid=snapshot).model_dump()
            )
            reader = asyncio.create_task(self.read_messages())
            tasks = [sender, reader]

            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            if sender in done and sender.cancelled():
                logging.warning(f"WebSocket {self.connection_id} dropped from the registry")
            for task in done:
                if not task.cancelled():
                    task.result()
        except WebSocketDisconnect as e:
            logging.info(f"WebSocket disconnected: {self.connection_id} (code {e.code})")
        except TransportFailureError as e:
            logging.error(f"WebSocket transport failure on {self.connection_id}: {e}")
        except Exception as e:
            logging.exception(f"Unexpected error on {self.connection_id}: {e!r}")
        finally:
            await self.close(tasks)

    async def read_messages(self):
        while True:
            raw = await self.receive()
            await self.broker.handle_message(raw)

    async def receive(self) -> str | bytes:
        message = await self.websocket.receive()
        if message["type"] == "websocket.disconnect":
            raise WebSocketDisconnect(message.get("code", 1000))
        if message.get("text") is not None:
            return message["text"]
        return message.get("bytes") or b""

    async def close(self, tasks: List[asyncio.Task]):
        if self.state == ConnectionState.closed:
            return
        self.state = ConnectionState.closed
        if self.connection_id is not None:
            self.broker.connection_manager.unregister(self.connection_id)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        # The client is still there when the session ended on our side
        if (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        ):
            try:
                await self.websocket.close()
            except RuntimeError as e:
                logging.warning(f"Closing {self.connection_id} failed: {e}")
        logging.info(f"WebSocket connection closed: {self.connection_id}")
