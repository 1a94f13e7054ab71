"""
Application principale FastAPI.

Ce module assemble tous les composants de l'application : middlewares, routes, métriques,
gestion des erreurs et configuration de l'API BileMo.

Responsabilités du module:
- Initialiser le logging structuré
- Construire l'application FastAPI avec son titre/debug
- Publier le conteneur et le constructeur de liens sur `app.state`
- Ajouter les middlewares (request id, métriques)
- Monter les routers (santé, authentification, clients, smartphones, métriques)
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI

from bilemo.api.links import RouteLinkBuilder
from bilemo.api.routes_auth import router as auth_router
from bilemo.api.routes_customers import router as customers_router
from bilemo.api.routes_health import router as health_router
from bilemo.api.routes_smartphones import router as smartphones_router
from bilemo.apigw.errors import install_error_handlers
from bilemo.app.metrics import PrometheusMiddleware, metrics_router
from bilemo.core.container import Container
from bilemo.core.logging import setup_logging
from bilemo.middlewares.request_id import RequestIDMiddleware

log = structlog.get_logger(__name__)


def create_app(container: Container | None = None) -> FastAPI:
    """
    Construit et retourne l'application FastAPI prête à l'usage.

    Un conteneur explicite peut être fourni (tests); sinon il est construit depuis les settings.
    """
    container = container or Container()
    settings = container.settings
    setup_logging(debug=settings.APP_DEBUG)

    app = FastAPI(title=settings.APP_NAME, debug=settings.APP_DEBUG)
    app.state.container = container
    app.state.links = RouteLinkBuilder(app)

    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(customers_router)
    app.include_router(smartphones_router)
    app.include_router(metrics_router)
    install_error_handlers(app)

    log.info("app_started", env=settings.APP_ENV, cache=container.cache_backend)
    return app


app = create_app()
