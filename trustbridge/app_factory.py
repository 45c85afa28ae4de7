"""Entry point for uvicorn/gunicorn (trustbridge.app_factory:app)."""
from trustbridge.app import create_app

app = create_app()

__all__ = ["app", "create_app"]
