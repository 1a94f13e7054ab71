"""Registre des schémas d'exposition des entités.

Objectif du module
------------------
- Décrire, pour chaque type d'entité, la liste ordonnée de ses champs exposables: groupes de vue
  qui les lisent/écrivent, version minimale d'API, attribut porteur et règles de validation.
- Décrire les relations hypermédia (`self`, `update`, `delete`) attachées aux entités.

Le registre est construit une fois au démarrage à partir de tables déclaratives puis n'est plus
modifié: aucune synchronisation n'est nécessaire pour le lire depuis plusieurs workers.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass, field

from bilemo.domain.rules import Rule


class FieldKind(enum.StrEnum):
    STRING = "string"
    INTEGER = "integer"
    DECIMAL = "decimal"
    DATE = "date"
    RELATION = "relation"


@dataclass(frozen=True)
class FieldDescriptor:
    """Métadonnées statiques d'un champ d'entité.

    Attributs:
        name: nom du champ dans le JSON échangé.
        kind: nature de la valeur (scalaire, date, identifiant de relation).
        groups: groupes de vue exposant le champ.
        since: version minimale d'API (None = toujours éligible une fois le groupe accordé).
        attribute: attribut lu/écrit sur l'entité (par défaut `name`).
        rules: règles de validation appliquées lors d'une fusion.
    """

    name: str
    kind: FieldKind
    groups: frozenset[str]
    since: str | None = None
    attribute: str = ""
    rules: tuple[Rule, ...] = ()

    def __post_init__(self) -> None:
        if not self.attribute:
            object.__setattr__(self, "attribute", self.name)


def fieldspec(
    name: str,
    kind: FieldKind,
    groups: Iterable[str],
    *,
    since: str | None = None,
    attribute: str = "",
    rules: Iterable[Rule] = (),
) -> FieldDescriptor:
    """Raccourci de déclaration utilisé par les tables du catalogue."""
    return FieldDescriptor(
        name=name,
        kind=kind,
        groups=frozenset(groups),
        since=since,
        attribute=attribute,
        rules=tuple(rules),
    )


@dataclass(frozen=True)
class LinkRelation:
    """Lien hypermédia `rel -> route` exposé pour certains groupes (et rôle éventuel)."""

    rel: str
    route: str
    groups: frozenset[str]
    params: tuple[tuple[str, str], ...] = (("id", "id"),)
    role: str | None = None


@dataclass
class _EntitySchema:
    fields: tuple[FieldDescriptor, ...]
    links: tuple[LinkRelation, ...] = field(default_factory=tuple)


class SchemaRegistry:
    """Association type d'entité -> descripteurs ordonnés (+ relations hypermédia)."""

    def __init__(self) -> None:
        self._schemas: dict[type, _EntitySchema] = {}

    def register(
        self,
        entity_type: type,
        fields: Iterable[FieldDescriptor],
        links: Iterable[LinkRelation] = (),
    ) -> None:
        if entity_type in self._schemas:
            raise ValueError(f"{entity_type.__name__} is already registered")
        descriptors = tuple(fields)
        names = [d.name for d in descriptors]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate field names for {entity_type.__name__}: {names}")
        self._schemas[entity_type] = _EntitySchema(fields=descriptors, links=tuple(links))

    def _schema(self, entity_type: type) -> _EntitySchema:
        try:
            return self._schemas[entity_type]
        except KeyError:
            raise LookupError(f"No exposure schema registered for {entity_type.__name__}") from None

    def fields_for(self, entity_type: type) -> tuple[FieldDescriptor, ...]:
        return self._schema(entity_type).fields

    def links_for(self, entity_type: type) -> tuple[LinkRelation, ...]:
        return self._schema(entity_type).links

    def require(self, *entity_types: type) -> None:
        """Échoue au démarrage si un type servi par l'API n'est pas enregistré."""
        missing = [t.__name__ for t in entity_types if t not in self._schemas]
        if missing:
            raise LookupError(f"Missing exposure schemas: {', '.join(missing)}")

    def __contains__(self, entity_type: type) -> bool:
        return entity_type in self._schemas
