"""ASGI entrypoint: ``uvicorn marketplace.asgi:app``."""

from marketplace.main import create_app

app = create_app()
