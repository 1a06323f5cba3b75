"""
Factory d’application recommandée pour les entrypoints (ex: teashop.asgi).
Ordonne les étapes d’initialisation de manière lisible et testable.
"""
from fastapi import FastAPI
from .lifespan import lifespan
from .middlewares import register_basic_middlewares, register_security_middleware, register_force_https_middleware
from .exceptions import register_exception_handlers
from .routers import register_routers

def create_app() -> FastAPI:
    """
    Construit l’app FastAPI avec le lifespan et enregistre, dans cet ordre:
      1) middlewares de base (CORS, TrustedHost, proxy headers)
      2) en-têtes de sécurité
      3) gestionnaires d’exceptions (erreurs métier -> JSON)
      4) routers (payments, health)
      5) redirection HTTPS, ajoutée en dernier pour s’exécuter en premier
    Retour:
      FastAPI prêt à être utilisé par le serveur ASGI.
    """
    app = FastAPI(title="Coco Bubble Tea API", lifespan=lifespan)
    register_basic_middlewares(app)
    register_security_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    register_force_https_middleware(app)
    return app
