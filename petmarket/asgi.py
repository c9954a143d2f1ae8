"""
ASGI entrypoint: expose `app` for process managers / deployments.

- En production, un process manager (ex: gunicorn/uvicorn-workers) importe `petmarket.asgi:app`.
- Toute la configuration de FastAPI est centralisée dans petmarket.app_setup.factory,
  ce fichier ne fait qu’exposer l’instance `app`.
"""

from petmarket.app import app

__all__ = ["app"]
