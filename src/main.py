import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine
from starlette.middleware.cors import CORSMiddleware

from src.authentication.basic_authentication import AccountService
from src.authentication.basic_authentication_crud import CredentialStore
from src.authentication.token_issuer import TokenIssuer
from src.create_sqlite_engine import engine as default_engine
from src.create_sqlite_engine import ensure_database_directory
from src.db import create_session_factory
from src.grid_state_store import GridStateStore
from src.load_secrets import host, jwt_secret, log_level, port, sqlite_url, token_expire_hours
from src.manager import ConnectionManager
from src.routers.auth import auth_router
from src.routers.canvas import canvas_router
from src.services.sync_broker import SyncBroker

logging.basicConfig(level=log_level)
logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def create_app(engine: AsyncEngine = default_engine) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Prepare the credential tables and the in-memory canvas.
        The canvas lives as long as the process and is empty on every start.
        """
        ensure_database_directory(engine.url)
        await CredentialStore.create_table(engine)

        app.state.account_service = AccountService(
            CredentialStore(create_session_factory(engine)),
            TokenIssuer(jwt_secret, token_expire_hours),
        )
        app.state.sync_broker = SyncBroker(GridStateStore(), ConnectionManager())
        logging.info("Canvas server ready")
        try:
            yield
        finally:
            await app.state.sync_broker.connection_manager.shutdown()
            await engine.dispose()
            logging.info("Stop Server")

    app = FastAPI(lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(auth_router)
    app.include_router(canvas_router)
    return app


app = create_app()


def run():
    logging.info(f"Server is running on port {port}, database {sqlite_url}")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run()
