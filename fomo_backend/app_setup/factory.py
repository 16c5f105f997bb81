"""
Factory d’application recommandée pour les entrypoints (ex: fomo_backend.asgi).
Ordonne les étapes d’initialisation de manière lisible et testable.
"""
from fastapi import FastAPI
from .lifespan import lifespan
from .middlewares import register_basic_middlewares, register_security_middleware, register_force_https_middleware
from .exceptions import register_exception_handlers
from .routers import register_routers

def create_app(gateway=None, catalog=None) -> FastAPI:
    """
    Construit l’app FastAPI avec le lifespan et enregistre:
      - middlewares de base et de sécurité
      - gestionnaires d’exceptions
      - tous les routers
    gateway/catalog: services injectés (tests); sinon construits au démarrage.
    """
    app = FastAPI(title="FOMO Checkout API", lifespan=lifespan)
    app.state.gateway = gateway
    app.state.catalog = catalog
    register_basic_middlewares(app)
    register_security_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    # Ajouté en dernier pour s’exécuter en premier
    register_force_https_middleware(app)
    return app
