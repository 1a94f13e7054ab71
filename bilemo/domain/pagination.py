"""Calcul des métadonnées de pagination (liens, compteurs) d'une collection ordonnée.

Fonction pure: aucune E/S, aucun état. Les liens sont produits par le constructeur de liens injecté
(`route, params -> url`).
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from bilemo.domain.errors import InvalidPageRequest, PageNotFound

LinkBuilder = Callable[[str, Mapping[str, Any]], str]


@dataclass(frozen=True)
class PageDescriptor:
    """Métadonnées d'une page: page courante, nombre de pages, nombre d'éléments et liens."""

    current_page: int
    pages_count: int
    items_count: int
    links: dict[str, str] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {rel: {"href": href} for rel, href in self.links.items()}
        out["current_page"] = self.current_page
        out["pages_count"] = self.pages_count
        out["items_count"] = self.items_count
        return out


class Paginator:
    """Produit un `PageDescriptor` pour `(route, page, limit, total)`.

    Par défaut une page hors bornes est acceptée (la requête amont renverra simplement une liste
    vide). Avec `strict=True`, une page hors de `[1, max(pages_count, 1)]` lève `PageNotFound`.
    `limit` doit être compris entre 1 et `max_limit` (borne ignorée si `None`).
    """

    def __init__(
        self, build_link: LinkBuilder, strict: bool = False, max_limit: int | None = None
    ) -> None:
        self._build_link = build_link
        self.strict = strict
        self.max_limit = max_limit

    def _link(self, route: str, page: int, limit: int) -> str:
        return self._build_link(route, {"page": page, "limit": limit})

    def describe(self, route: str, page: int, limit: int, total: int) -> PageDescriptor:
        if limit < 1:
            raise InvalidPageRequest("Query parameter 'limit' must be greater than or equal to 1.")
        if self.max_limit is not None and limit > self.max_limit:
            raise InvalidPageRequest(
                f"Query parameter 'limit' must be less than or equal to {self.max_limit}."
            )
        pages_count = math.ceil(total / limit)
        if self.strict and not 1 <= page <= max(pages_count, 1):
            raise PageNotFound(f"Page {page} does not exist ({pages_count} page(s)).")

        links = {"self": self._link(route, page, limit)}
        if page != 1:
            links["first"] = self._link(route, 1, limit)
            links["previous"] = self._link(route, page - 1, limit)
        if page != pages_count:
            links["last"] = self._link(route, pages_count, limit)
            links["next"] = self._link(route, page + 1, limit)

        return PageDescriptor(
            current_page=page,
            pages_count=pages_count,
            items_count=total,
            links=links,
        )
