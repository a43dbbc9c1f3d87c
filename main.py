"""
Item Admin FastAPI application entry point.

Run locally:
  uvicorn main:app --reload --port 8000
"""

from __future__ import annotations

import os
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from api.health import router as health_router
from api.items import router as items_router
from config import configure_logging, get_settings
from database.connection import ItemStore


def create_app() -> FastAPI:
    """Create and configure the FastAPI app."""

    app = FastAPI(
        title="Item Admin",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # API routers
    app.include_router(health_router, prefix="/api", tags=["health"])
    app.include_router(items_router, prefix="/api", tags=["items"])

    # Static files
    static_dir = Path(__file__).resolve().parent / "static"
    app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    @app.get("/", include_in_schema=False)
    def index():
        """Serve the upload/download page."""

        return FileResponse(str(static_dir / "index.html"))

    @app.on_event("startup")
    def startup() -> None:
        """Load settings, configure logging and open the item store."""

        settings = get_settings()
        logger = configure_logging(settings)
        app.state.settings = settings

        app.state.store = ItemStore(settings.database_path).open()
        logger.info("Item Admin starting (db=%s, conflict_policy=%s)", settings.database_path, settings.conflict_policy)

    @app.on_event("shutdown")
    def shutdown() -> None:
        """Close the item store."""

        store = getattr(app.state, "store", None)
        if store is not None:
            store.close()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    port = int(os.environ.get("PORT", settings.port))

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=port,
        reload=False,
        log_level=settings.log_level.lower(),
        access_log=True,
    )
