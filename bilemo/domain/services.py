import json
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from datetime import date
from typing import Any

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bilemo.core.http_constants import ROLE_ADMIN
from bilemo.domain.auth import Identity
from bilemo.domain.catalog import CACHE_CUSTOMERS, CACHE_PHONES
from bilemo.domain.errors import Forbidden, NotFound, ValidationError
from bilemo.domain.merge import merge
from bilemo.domain.pagination import Paginator
from bilemo.domain.projection import LinkBuilder, project, project_many
from bilemo.domain.schema import SchemaRegistry
from bilemo.domain.views import ViewRequest
from bilemo.infra.cache import TaggedResultCache, fingerprint
from bilemo.infra.repo.models import Customer, Smartphone
from bilemo.infra.repositories import BrandRepo, CustomerRepo, SmartphoneRepo

log = structlog.get_logger(__name__)

EMAIL_TAKEN = "This value is already used."

Payload = bytes | str | Mapping[str, Any]


def render_json(data: Any) -> bytes:
    """Sérialise un arbre déjà projeté (types JSON natifs) en octets compacts."""
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


class CollectionService:
    """Socle commun des ressources paginées et mises en cache.

    Responsabilités:
    - Lire le nombre d'éléments et la page rendue via le cache à tags (`self.tag`).
    - Projeter les entités pour la vue demandée.
    - Committer puis invalider le tag de la collection après chaque écriture.
    """

    tag: str
    operation: str
    conflict_errors: dict[str, str] = {}

    def __init__(
        self,
        session: Session,
        cache: TaggedResultCache,
        registry: SchemaRegistry,
        paginator: Paginator,
        links: LinkBuilder | None = None,
        ttl: int = 60,
    ) -> None:
        self._session = session
        self.cache = cache
        self.registry = registry
        self.paginator = paginator
        self.links = links
        self.ttl = ttl

    def project(self, entity: Any, view: ViewRequest) -> dict[str, Any]:
        return project(entity, view, self.registry, self.links)

    def _cached_page(
        self,
        *,
        route: str,
        view: ViewRequest,
        page: int,
        limit: int,
        count: Callable[[], int],
        fetch: Callable[[int, int], Sequence[Any]],
        owner: int | None = None,
    ) -> bytes:
        count_key = fingerprint(f"{self.operation}-count", owner=owner)
        total = int(
            self.cache.get_or_compute(count_key, [self.tag], self.ttl, lambda: str(count()).encode())
        )
        pages = self.paginator.describe(route, page, limit, total)

        page_key = fingerprint(
            self.operation,
            owner=owner,
            page=page,
            limit=limit,
            groups=view.groups,
            version=view.version,
            roles=view.roles,
        )

        def _render() -> bytes:
            rows = fetch(page, limit) if 1 <= page <= pages.pages_count else []
            items = project_many(rows, view, self.registry, self.links)
            return render_json({"_pages": pages.as_dict(), "items": items})

        return self.cache.get_or_compute(page_key, [self.tag], self.ttl, _render)

    @contextmanager
    def _writing(self, action: str, entity: Any) -> Iterator[None]:
        """Encadre une écriture: flush/commit, puis invalidation du tag de la collection.

        Une violation de contrainte en base annule la transaction et devient une `ValidationError`
        portant `conflict_errors`.
        """
        try:
            yield
            self._session.commit()
        except IntegrityError as err:
            self._session.rollback()
            log.warning("collection_conflict", action=action, tag=self.tag, error=str(err.orig))
            if not self.conflict_errors:
                raise
            raise ValidationError(self.conflict_errors) from err
        self.cache.invalidate(self.tag)
        log.info(
            "collection_written",
            action=action,
            entity=type(entity).__name__,
            entity_id=getattr(entity, "id", None),
            tag=self.tag,
        )


class CustomerService(CollectionService):
    """Clients d'un utilisateur: chaque appelant ne voit et ne modifie que les siens."""

    tag = CACHE_CUSTOMERS
    operation = "getAllCustomers"
    route = "list_customers"
    conflict_errors = {"email": EMAIL_TAKEN}

    def __init__(self, session: Session, *args, **kwargs) -> None:
        super().__init__(session, *args, **kwargs)
        self.customers = CustomerRepo(session)

    def list_page(self, identity: Identity, view: ViewRequest, page: int, limit: int) -> bytes:
        return self._cached_page(
            route=self.route,
            view=view,
            page=page,
            limit=limit,
            owner=identity.id,
            count=lambda: self.customers.count_by_owner(identity.id),
            fetch=lambda p, size: self.customers.page_by_owner(identity.id, p, size),
        )

    def get(self, identity: Identity, customer_id: int) -> Customer:
        """Charge un client de l'appelant (`NotFound` / `Forbidden` sinon)."""
        customer = self.customers.get(customer_id)
        if customer is None:
            raise NotFound()
        if customer.owner_id != identity.id:
            raise Forbidden()
        return customer

    def _unique_email(self, identity: Identity, exclude_id: int | None = None):
        def _check(candidate: Mapping[str, Any]) -> dict[str, str]:
            email = candidate.get("email")
            if email and self.customers.email_taken(identity.id, email, exclude_id):
                return {"email": EMAIL_TAKEN}
            return {}

        return _check

    def create(self, identity: Identity, payload: Payload, view: ViewRequest) -> Customer:
        customer = Customer()
        merge(customer, payload, view, self.registry, validators=[self._unique_email(identity)])
        customer.owner_id = identity.id
        customer.creation_date = date.today()
        with self._writing("create", customer):
            self.customers.save(customer)
        return customer

    def update(
        self, identity: Identity, customer_id: int, payload: Payload, view: ViewRequest
    ) -> Customer:
        customer = self.get(identity, customer_id)
        merge(
            customer,
            payload,
            view,
            self.registry,
            validators=[self._unique_email(identity, exclude_id=customer.id)],
        )
        with self._writing("update", customer):
            self.customers.save(customer)
        return customer

    def delete(self, identity: Identity, customer_id: int) -> None:
        customer = self.get(identity, customer_id)
        with self._writing("delete", customer):
            self.customers.remove(customer)


class SmartphoneService(CollectionService):
    """Catalogue de smartphones: lecture pour tous, écriture réservée à `ROLE_ADMIN`."""

    tag = CACHE_PHONES
    operation = "getAllPhones"
    route = "list_smartphones"

    def __init__(self, session: Session, *args, **kwargs) -> None:
        super().__init__(session, *args, **kwargs)
        self.phones = SmartphoneRepo(session)
        self.brands = BrandRepo(session)

    def list_page(self, view: ViewRequest, page: int, limit: int) -> bytes:
        return self._cached_page(
            route=self.route,
            view=view,
            page=page,
            limit=limit,
            count=self.phones.count,
            fetch=self.phones.page,
        )

    def get(self, phone_id: int) -> Smartphone:
        phone = self.phones.get(phone_id)
        if phone is None:
            raise NotFound()
        return phone

    def _brand_exists(self, candidate: Mapping[str, Any]) -> dict[str, str]:
        brand_id = candidate.get("brand")
        if brand_id is not None and self.brands.get(brand_id) is None:
            return {"brand": "Brand not found."}
        return {}

    def create(self, identity: Identity, payload: Payload, view: ViewRequest) -> Smartphone:
        identity.require_role(ROLE_ADMIN, "You don't have access to phone creation")
        phone = Smartphone()
        merge(phone, payload, view, self.registry, validators=[self._brand_exists])
        with self._writing("create", phone):
            self.phones.save(phone)
        return phone

    def update(
        self, identity: Identity, phone_id: int, payload: Payload, view: ViewRequest
    ) -> Smartphone:
        identity.require_role(ROLE_ADMIN, "You don't have access to phone modification")
        phone = self.get(phone_id)
        merge(phone, payload, view, self.registry, validators=[self._brand_exists])
        with self._writing("update", phone):
            self.phones.save(phone)
        return phone

    def delete(self, identity: Identity, phone_id: int) -> None:
        identity.require_role(ROLE_ADMIN, "You don't have access to phone deletion")
        phone = self.get(phone_id)
        with self._writing("delete", phone):
            self.phones.remove(phone)
