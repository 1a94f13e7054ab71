"""Dépendances partagées pour les routes de l'API.

But du module
-------------
- Centraliser la création des instances nécessaires aux endpoints (session SQL, services,
  identité de l'appelant, vue demandée).
- Tout passe par le conteneur publié sur `app.state`, ce qui permet aux tests de construire une
  application isolée avec son propre conteneur.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from bilemo.apigw.versioning import resolve_version
from bilemo.core.container import Container
from bilemo.domain.auth import Identity, decode_token
from bilemo.domain.errors import Unauthorized
from bilemo.domain.pagination import Paginator
from bilemo.domain.services import CustomerService, SmartphoneService
from bilemo.domain.views import ViewRequest
from bilemo.infra.repositories import UserRepo


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_session(container: Container = Depends(get_container)) -> Iterator[Session]:
    session = container.session_factory()
    try:
        yield session
    finally:
        session.close()


async def raw_body(request: Request) -> bytes:
    """Corps brut de la requête, désérialisé plus tard par la fusion."""
    return await request.body()


def get_identity(
    authorization: str | None = Header(None),
    container: Container = Depends(get_container),
    session: Session = Depends(get_session),
) -> Identity:
    """Extrait et valide l'utilisateur courant à partir du token d'autorisation."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise Unauthorized("JWT Token not found.")
    token = authorization.split(" ", 1)[1]
    data = decode_token(token, container.settings.JWT_SECRET, container.settings.JWT_ALG)
    if not data or not data.sub.isdigit():
        raise Unauthorized("Invalid JWT Token.")
    user = UserRepo(session).get(int(data.sub))
    if user is None:
        raise Unauthorized("Invalid JWT Token.")
    return Identity(id=user.id, email=user.email, roles=frozenset(user.roles or []))


def view_for(*groups: str) -> Callable[..., ViewRequest]:
    """Fabrique une dépendance construisant la vue `groups` à la version négociée."""

    def _view(
        request: Request,
        identity: Identity = Depends(get_identity),
        container: Container = Depends(get_container),
    ) -> ViewRequest:
        version = resolve_version(request, container.settings.DEFAULT_API_VERSION)
        return ViewRequest.of(*groups, version=version, roles=identity.roles)

    return _view


def _service_kwargs(request: Request, container: Container) -> dict:
    links = request.app.state.links
    return {
        "cache": container.cache,
        "registry": container.registry,
        "paginator": Paginator(
            links,
            strict=container.settings.PAGINATION_STRICT,
            max_limit=container.settings.MAX_PAGE_LIMIT,
        ),
        "links": links,
        "ttl": container.settings.CACHE_TTL_SECONDS,
    }


def get_customer_service(
    request: Request,
    container: Container = Depends(get_container),
    session: Session = Depends(get_session),
) -> CustomerService:
    return CustomerService(session, **_service_kwargs(request, container))


def get_smartphone_service(
    request: Request,
    container: Container = Depends(get_container),
    session: Session = Depends(get_session),
) -> SmartphoneService:
    return SmartphoneService(session, **_service_kwargs(request, container))


def page_limit(limit: int | None, container: Container) -> int:
    return container.settings.DEFAULT_PAGE_LIMIT if limit is None else limit
