from fastapi import APIRouter, WebSocket

from src.services.sync_broker import SyncBroker

canvas_router = APIRouter()


class CanvasServer:
    @staticmethod
    @canvas_router.websocket("/")
    @canvas_router.websocket("/ws")
    async def canvas(websocket: WebSocket):
        """Join the shared canvas and exchange placements until the client leaves

        Args:
            websocket (WebSocket): Connector with the connected client
        """
        sync_broker: SyncBroker = websocket.app.state.sync_broker
        session = sync_broker.open_session(websocket)
        await session.run()
