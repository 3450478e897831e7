"""
Module 05 - FastAPI Application

Application factory for the data service archive API.

Usage:
    uvicorn api.app:app --reload

    # Or run directly (DSARCHIVE_API_HOST / DSARCHIVE_API_PORT)
    python -m api.app
"""

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import __version__
from api.errors import APIError, api_error_handler, archive_error_handler, generic_error_handler
from api.routes import archives, health, manifest
from core.errors import ArchiveException


API_DESCRIPTION = """
Parse, render, inspect and normalize data service archives.

A data service archive is a zip whose `META-INF/dataservice.xml` manifest
declares a service VDB, its dependency VDBs, connections, drivers, DDL
metadata, UDF binaries, further VDBs and plain resource files.

`POST /archive/normalize` imports an upload into a scratch content tree and
exports it again as `full_zip` (default), `manifest_xml`, `service_vdb_xml`
or `file_list`.
"""


def _configure_logging() -> None:
    level = os.getenv("DSARCHIVE_LOG_LEVEL") or "INFO"
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    log_file = os.getenv("DSARCHIVE_LOG_FILE")
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )


_configure_logging()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Data Service Archive API",
        description=API_DESCRIPTION,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # ArchiveException covers engine errors raised outside the route wrappers
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(ArchiveException, archive_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    for router in (health.router, manifest.router, archives.router):
        app.include_router(router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host=os.getenv("DSARCHIVE_API_HOST", "127.0.0.1"),
        port=int(os.getenv("DSARCHIVE_API_PORT", "8000")),
    )
