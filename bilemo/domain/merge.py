"""Fusion partielle d'une charge utile JSON sur une entité existante.

Démarche
--------
1. Désérialise la charge utile en candidat typé, restreint aux champs éligibles pour la vue
   (groupes + version). Forme invalide -> `DeserializationError`.
2. Valide le candidat (règles des champs + validateurs transverses) en collectant toutes les
   violations. Au moins une violation -> `ValidationError`, l'entité reste intacte.
3. Recopie champ par champ les valeurs du candidat sur l'entité de base. Un champ hors des
   groupes accordés, ou exigeant une version supérieure, n'est jamais modifié même s'il figure
   dans la charge utile.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Mapping
from datetime import date
from decimal import Decimal
from typing import Any

import structlog
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from bilemo.domain.errors import DeserializationError, ValidationError
from bilemo.domain.schema import FieldDescriptor, FieldKind, SchemaRegistry
from bilemo.domain.views import ViewRequest, is_exposed

log = structlog.get_logger(__name__)

Validator = Callable[[Mapping[str, Any]], Mapping[str, str]]

_ADAPTERS: dict[FieldKind, TypeAdapter] = {
    FieldKind.STRING: TypeAdapter(str | None),
    FieldKind.INTEGER: TypeAdapter(int | None),
    FieldKind.DECIMAL: TypeAdapter(Decimal | None),
    FieldKind.DATE: TypeAdapter(date | None),
    FieldKind.RELATION: TypeAdapter(int | None),
}


def _decode(payload: bytes | str | Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(payload, Mapping):
        return payload
    try:
        data = json.loads(payload or b"null")
    except (ValueError, UnicodeDecodeError) as err:
        raise DeserializationError("Request body is not valid JSON.") from err
    if not isinstance(data, dict):
        raise DeserializationError("Request body must be a JSON object.")
    return data


def eligible_fields(
    entity_type: type, view: ViewRequest, registry: SchemaRegistry
) -> list[FieldDescriptor]:
    return [d for d in registry.fields_for(entity_type) if is_exposed(d, view)]


def deserialize(
    payload: bytes | str | Mapping[str, Any],
    descriptors: Iterable[FieldDescriptor],
) -> dict[str, Any]:
    """Construit le candidat typé; les clés absentes valent None."""
    data = _decode(payload)
    candidate: dict[str, Any] = {}
    errors: dict[str, str] = {}
    for descriptor in descriptors:
        try:
            candidate[descriptor.name] = _ADAPTERS[descriptor.kind].validate_python(
                data.get(descriptor.name)
            )
        except PydanticValidationError as err:
            errors[descriptor.name] = err.errors()[0]["msg"]
    if errors:
        raise DeserializationError(f"Unable to read {len(errors)} field(s).", errors=errors)
    return candidate


def validate(
    candidate: Mapping[str, Any],
    descriptors: Iterable[FieldDescriptor],
    validators: Iterable[Validator] = (),
) -> None:
    """Exécute toutes les règles et lève `ValidationError` si au moins une échoue."""
    errors: dict[str, str] = {}
    for descriptor in descriptors:
        for rule in descriptor.rules:
            message = rule(candidate.get(descriptor.name))
            if message:
                errors[descriptor.name] = message
                break
    for validator in validators:
        for path, message in validator(candidate).items():
            errors.setdefault(path, message)
    if errors:
        raise ValidationError(errors)


def merge(
    base: Any,
    payload: bytes | str | Mapping[str, Any],
    view: ViewRequest,
    registry: SchemaRegistry,
    validators: Iterable[Validator] = (),
) -> Any:
    """Applique `payload` sur `base` pour `view` (tout ou rien) et retourne `base`."""
    descriptors = eligible_fields(type(base), view, registry)
    candidate = deserialize(payload, descriptors)
    validate(candidate, descriptors, validators)
    for descriptor in descriptors:
        setattr(base, descriptor.attribute, candidate[descriptor.name])
    log.debug(
        "entity_merged",
        entity=type(base).__name__,
        fields=[d.name for d in descriptors],
        groups=sorted(view.groups),
        version=view.version,
    )
    return base
