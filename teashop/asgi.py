"""
ASGI entrypoint: expose `app` for process managers / deployments.

- En production, un process manager (ex: gunicorn/uvicorn-workers) importe `teashop.asgi:app`
  pour servir l’application FastAPI en mode ASGI.
- Toute la configuration (routes, middlewares, handlers) est centralisée dans teashop.app_setup.factory.
"""

from teashop.app import app

__all__ = ["app"]
