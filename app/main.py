"""Repo-root Uvicorn entrypoint.

Allows running the portal from the repo root:

    uvicorn app.main:app --reload

This simply re-exports the FastAPI app defined in `aei_portal/main.py`.
"""

from aei_portal.main import app  # re-export
