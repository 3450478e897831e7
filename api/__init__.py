"""
Module 05 - Minimal API (FastAPI)

HTTP API for data service archives:
- POST /manifest/parse - Parse an uploaded manifest
- POST /manifest/render - Render a manifest from JSON
- POST /archive/inspect - Inspect an uploaded archive
- POST /archive/normalize - Import an archive and export it again
- GET /health - Health check

Usage:
    uvicorn api.app:app --reload
"""

__version__ = "0.1.0"
