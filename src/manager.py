import asyncio
import logging
from typing import Dict, Optional
from uuid import UUID

from fastapi import WebSocket
from starlette.websockets import WebSocketState
from uuid6 import uuid7

from src.exceptions import TransportFailureError
from src.load_secrets import outbox_size


class ConnectionManager:
    """Registry of open websockets.

    Every connection owns an outbox (a bounded queue) drained by its own sender task,
    so broadcasting only enqueues and never waits for a peer. A peer whose outbox
    overflows or whose send fails is unregistered.
    """

    def __init__(self, outbox_size: int = outbox_size):
        self.outbox_size = outbox_size
        self.active_connections: Dict[UUID, WebSocket] = {}
        self.outboxes: Dict[UUID, asyncio.Queue] = {}
        self.senders: Dict[UUID, asyncio.Task] = {}

    async def connect(self, websocket: WebSocket) -> UUID:
        """Accepts a websocket and registers it

        Args:
            websocket (WebSocket): Connector with the connected client

        Returns:
            UUID: ID of the registered connection
        """
        await websocket.accept()
        return self.register(websocket)

    def register(self, websocket: WebSocket) -> UUID:
        """Registers a websocket. Broadcasts are queued for it until start_sending is called."""
        connection_id = uuid7()
        self.active_connections[connection_id] = websocket
        self.outboxes[connection_id] = asyncio.Queue(maxsize=self.outbox_size)
        logging.info(
            f"Connection registered: {connection_id} ({len(self.active_connections)} active)"
        )
        return connection_id

    def start_sending(self, connection_id: UUID, first_message: Optional[dict] = None) -> asyncio.Task:
        """Starts the sender task of a registered connection

        Args:
            connection_id (UUID): ID returned by register
            first_message (Optional[dict]): sent before anything already queued

        Returns:
            asyncio.Task: finishes only by raising TransportFailureError or being cancelled
        """
        sender = asyncio.create_task(self._send_loop(connection_id, first_message))
        self.senders[connection_id] = sender
        return sender

    def unregister(self, connection_id: UUID):
        """Removes a connection and stops its sender. Unknown or already removed IDs are ignored.

        Args:
            connection_id (UUID): ID returned by register
        """
        self.outboxes.pop(connection_id, None)
        sender = self.senders.pop(connection_id, None)
        if sender is not None and sender is not asyncio.current_task():
            sender.cancel()
        if self.active_connections.pop(connection_id, None) is not None:
            logging.info(
                f"Connection unregistered: {connection_id} ({len(self.active_connections)} active)"
            )

    async def send_personal_message(self, message: dict, websocket: WebSocket):
        try:
            await websocket.send_json(message)
        except Exception as e:
            raise TransportFailureError(f"Failed to send message: {e!r}") from e

    async def broadcast(self, message: dict):
        """Queues the message for every open connection

        Membership is copied first, so connections may come and go meanwhile.
        Returns without waiting for any peer to receive the message.

        Args:
            message (dict): JSON serializable message
        """
        connections = [
            connection_id
            for connection_id, websocket in list(self.active_connections.items())
            if websocket.application_state == WebSocketState.CONNECTED
        ]
        logging.debug(f"Broadcasting {message.get('type')} to {len(connections)} connection(s)")
        for connection_id in connections:
            outbox = self.outboxes.get(connection_id)
            if outbox is None:
                continue
            try:
                outbox.put_nowait(message)
            except asyncio.QueueFull:
                logging.error(f"Outbox of {connection_id} is full, dropping the connection")
                self.unregister(connection_id)

    async def shutdown(self):
        """Unregisters every connection and waits for their senders to stop."""
        senders = list(self.senders.values())
        for connection_id in list(self.active_connections):
            self.unregister(connection_id)
        await asyncio.gather(*senders, return_exceptions=True)

    async def _send_loop(self, connection_id: UUID, first_message: Optional[dict]):
        websocket = self.active_connections.get(connection_id)
        outbox = self.outboxes.get(connection_id)
        if websocket is None or outbox is None:
            raise TransportFailureError(f"{connection_id} is no longer registered")
        try:
            if first_message is not None:
                await self.send_personal_message(first_message, websocket)
            while True:
                message = await outbox.get()
                await self.send_personal_message(message, websocket)
        except TransportFailureError as e:
            logging.error(f"Sending to {connection_id} failed: {e}")
            self.unregister(connection_id)
            raise
