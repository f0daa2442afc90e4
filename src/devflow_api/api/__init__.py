from __future__ import annotations

from fastapi import APIRouter, FastAPI

from devflow_api.api.routes import auth, questions, tags

API_PREFIX = "/api/v1"


def include_api_routes(app: FastAPI) -> None:
    """Mount the auth, question and tag routers under :data:`API_PREFIX`."""

    versioned = APIRouter(prefix=API_PREFIX)
    for module in (auth, questions, tags):
        versioned.include_router(module.router)
    app.include_router(versioned)


__all__ = ["API_PREFIX", "include_api_routes"]
