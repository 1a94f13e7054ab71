"""Projection d'une entité vers un arbre clé/valeur restreint à une vue.

Les champs sont parcourus dans l'ordre de déclaration du registre: la sortie est stable, ce qui
rend les empreintes de cache déterministes et les réponses comparables.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from bilemo.domain.schema import FieldDescriptor, FieldKind, SchemaRegistry
from bilemo.domain.views import ViewRequest, is_exposed

LinkBuilder = Callable[[str, Mapping[str, Any]], str]


def _render(descriptor: FieldDescriptor, value: Any) -> Any:
    if value is None:
        return None
    if descriptor.kind is FieldKind.RELATION:
        # L'attribut peut porter l'identifiant ou l'objet lié: on ne rend que l'identifiant
        return getattr(value, "id", value)
    if descriptor.kind is FieldKind.DATE and isinstance(value, date | datetime):
        return value.isoformat()
    if descriptor.kind is FieldKind.DECIMAL and isinstance(value, Decimal):
        return float(value)
    return value


def project(
    entity: Any,
    view: ViewRequest,
    registry: SchemaRegistry,
    links: LinkBuilder | None = None,
) -> dict[str, Any]:
    """Rend `entity` pour `view`.

    Un champ est inclus si ses groupes croisent ceux de la vue et si la version demandée atteint sa
    version minimale. Une entité sans aucun champ visible donne un dict vide.
    """
    out: dict[str, Any] = {}
    entity_type = type(entity)
    for descriptor in registry.fields_for(entity_type):
        if is_exposed(descriptor, view):
            out[descriptor.name] = _render(descriptor, getattr(entity, descriptor.attribute, None))

    if links is not None:
        rendered = {}
        for relation in registry.links_for(entity_type):
            if not view.allows(relation.groups):
                continue
            if relation.role is not None and relation.role not in view.roles:
                continue
            params = {param: getattr(entity, attr) for param, attr in relation.params}
            rendered[relation.rel] = {"href": links(relation.route, params)}
        if rendered:
            out["_links"] = rendered
    return out


def project_many(
    entities: Iterable[Any],
    view: ViewRequest,
    registry: SchemaRegistry,
    links: LinkBuilder | None = None,
) -> list[dict[str, Any]]:
    return [project(e, view, registry, links) for e in entities]
