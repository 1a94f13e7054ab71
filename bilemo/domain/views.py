"""Requête de vue: groupes demandés, version d'API et rôles de l'appelant.

Le même prédicat `is_exposed` gouverne la lecture (projection) et l'écriture (fusion), ce qui
garantit qu'une seule table déclarative décide de l'exposition d'un champ.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from bilemo.domain.errors import InvalidVersion

if TYPE_CHECKING:
    from bilemo.domain.schema import FieldDescriptor

_VERSION_RE = re.compile(r"^\d+(\.\d+)*$")


def parse_version(token: str) -> tuple[int, ...]:
    """Convertit un jeton `"2.0.1"` en tuple comparable, zéros finaux retirés.

    `"2"` et `"2.0"` sont donc équivalents. Lève `InvalidVersion` sur un jeton non numérique.
    """
    token = (token or "").strip()
    if not _VERSION_RE.match(token):
        raise InvalidVersion(f"Invalid API version: {token!r}")
    parts = [int(p) for p in token.split(".")]
    while len(parts) > 1 and parts[-1] == 0:
        parts.pop()
    return tuple(parts)


@dataclass(frozen=True)
class ViewRequest:
    """Paramètres de toute projection ou fusion, construits pour une requête."""

    groups: frozenset[str]
    version: str
    roles: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        # Valide le jeton dès la construction
        object.__setattr__(self, "_parsed_version", parse_version(self.version))

    @classmethod
    def of(cls, *groups: str, version: str, roles: Iterable[str] = ()) -> ViewRequest:
        return cls(groups=frozenset(groups), version=version, roles=frozenset(roles))

    @property
    def parsed_version(self) -> tuple[int, ...]:
        return self._parsed_version  # type: ignore[attr-defined]

    def allows(self, groups: frozenset[str], since: str | None = None) -> bool:
        """Vrai si les groupes s'intersectent et si la version atteint `since`."""
        if not groups & self.groups:
            return False
        if since is None:
            return True
        return self.parsed_version >= parse_version(since)


def is_exposed(descriptor: FieldDescriptor, view: ViewRequest) -> bool:
    """Règle de visibilité/écriture commune à la projection et à la fusion."""
    return view.allows(descriptor.groups, descriptor.since)
