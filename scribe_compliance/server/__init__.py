"""HTTP API server package.

WHY: Exposes scenarios, analyses, per-tick compliance checks, and saved
sessions over HTTP for the review front end and other clients.

HOW: FastAPI app in app.py, pydantic schemas in models.py, and the
in-memory scenario/session store in store.py.
"""
