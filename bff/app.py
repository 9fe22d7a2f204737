"""
FastAPI application entry point for the dealership BFF.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from bff.config import get_settings
from bff.errors import install_exception_handlers
from bff.routes import router


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Dealership BFF (FastAPI)", version="0.1.0")
    install_exception_handlers(app)
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="0.0.0.0", port=8000)
