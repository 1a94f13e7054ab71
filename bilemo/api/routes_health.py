"""
Endpoint de santé pour vérifier la disponibilité de l'API et du backend.

Expose `/health` pour signaler l'état général de l'application, du stockage et du cache.
"""

from fastapi import APIRouter, Depends

from bilemo.api.deps import get_container
from bilemo.api.schemas import HealthResponse
from bilemo.core.container import Container

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health(container: Container = Depends(get_container)):
    """Vérifie la disponibilité de l'API et le backend de stockage."""
    return HealthResponse(
        status="ok",
        storage=container.engine.dialect.name,
        cache=container.cache_backend,
    )
