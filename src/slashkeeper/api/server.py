# File: src/slashkeeper/api/server.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import router
from ..params import SlashingParams
from ..storage.database import Database
from ..storage.signing_info import SigningInfoStore

def create_app(db: Database, params: SlashingParams) -> FastAPI:
    """Read-only query service over committed slashing state"""
    app = FastAPI(title="slashkeeper API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.state.store = SigningInfoStore(db)
    app.state.params = params
    app.include_router(router)

    return app
