"""Tests du registre des schémas d'exposition."""

import pytest

from bilemo.domain.catalog import build_registry
from bilemo.domain.schema import FieldKind, SchemaRegistry, fieldspec
from bilemo.infra.repo.models import Brand, Customer, Smartphone, User


class Thing:
    pass


def test_build_registry_covers_served_types():
    registry = build_registry()
    registry.require(Customer, Smartphone, Brand)
    assert Customer in registry
    assert User not in registry


def test_fields_keep_declaration_order():
    names = [d.name for d in build_registry().fields_for(Customer)]
    assert names == ["id", "email", "first_name", "last_name", "phone_number", "creation_date"]


def test_attribute_defaults_to_name():
    d = fieldspec("email", FieldKind.STRING, ["g"])
    assert d.attribute == "email"
    assert fieldspec("brand", FieldKind.RELATION, ["g"], attribute="brand_id").attribute == "brand_id"


def test_unregistered_type_is_a_lookup_error():
    registry = SchemaRegistry()
    with pytest.raises(LookupError):
        registry.fields_for(Thing)
    with pytest.raises(LookupError):
        registry.require(Thing)


def test_duplicate_registrations_are_rejected():
    registry = SchemaRegistry()
    registry.register(Thing, [fieldspec("a", FieldKind.STRING, ["g"])])
    with pytest.raises(ValueError):
        registry.register(Thing, [])
    with pytest.raises(ValueError):
        SchemaRegistry().register(
            Thing, [fieldspec("a", FieldKind.STRING, ["g"]), fieldspec("a", FieldKind.INTEGER, ["h"])]
        )
