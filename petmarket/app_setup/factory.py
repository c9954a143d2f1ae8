"""
Factory d’application recommandée pour les entrypoints (ex: petmarket.asgi).
Ordonne les étapes d’initialisation de manière lisible et testable.
"""
from fastapi import FastAPI

from petmarket import config
from .lifespan import lifespan
from .middlewares import register_basic_middlewares, register_security_middleware, register_access_log_middleware
from .exceptions import register_exception_handlers
from .routers import register_routers

def create_app() -> FastAPI:
    """
    Construit l’app FastAPI avec le lifespan et enregistre:
      - middlewares de base (CORS, hôtes, proxy) et en-têtes de sécurité
      - log d’accès (ajouté en dernier pour mesurer toute la pile)
      - gestionnaires d’exceptions JSON
      - tous les routers (panier, commandes, paiements, health)
    Retour:
      FastAPI prêt à être utilisé par le serveur ASGI.
    """
    app = FastAPI(title=config.APP_NAME, version=config.APP_VERSION, lifespan=lifespan)
    register_basic_middlewares(app)
    register_security_middleware(app)
    register_access_log_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    return app
