"""ASGI entrypoint (uvicorn dormseat.api.app:app)."""

from .factory import create_app

app = create_app()
