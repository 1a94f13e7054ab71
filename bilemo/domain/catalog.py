"""Tables déclaratives d'exposition des entités de l'API.

Groupes de vue:
- `getCustomers` / `modifyCustomers`: lecture / écriture des clients;
- `getPhones` / `modifyPhones`: lecture / écriture des smartphones;
- `getBrands`: lecture des marques.

Le numéro de téléphone d'un client n'est visible et modifiable qu'à partir de la version 2.0.
"""

from __future__ import annotations

from bilemo.core.http_constants import ROLE_ADMIN
from bilemo.domain import rules
from bilemo.domain.schema import FieldKind, LinkRelation, SchemaRegistry, fieldspec
from bilemo.infra.repo.models import Brand, Customer, Smartphone

GET_CUSTOMERS = "getCustomers"
MODIFY_CUSTOMERS = "modifyCustomers"
GET_PHONES = "getPhones"
MODIFY_PHONES = "modifyPhones"
GET_BRANDS = "getBrands"

CACHE_CUSTOMERS = "cacheCustomers"
CACHE_PHONES = "cachePhones"

CUSTOMER_FIELDS = (
    fieldspec("id", FieldKind.INTEGER, [GET_CUSTOMERS]),
    fieldspec(
        "email",
        FieldKind.STRING,
        [GET_CUSTOMERS, MODIFY_CUSTOMERS],
        rules=[rules.not_blank(), rules.email(), rules.length(max=125)],
    ),
    fieldspec(
        "first_name",
        FieldKind.STRING,
        [GET_CUSTOMERS, MODIFY_CUSTOMERS],
        rules=[rules.not_blank(), rules.length(min=2, max=80)],
    ),
    fieldspec(
        "last_name",
        FieldKind.STRING,
        [GET_CUSTOMERS, MODIFY_CUSTOMERS],
        rules=[rules.not_blank(), rules.length(min=2, max=80)],
    ),
    fieldspec(
        "phone_number",
        FieldKind.STRING,
        [GET_CUSTOMERS, MODIFY_CUSTOMERS],
        since="2.0",
        rules=[rules.length(min=10, max=20)],
    ),
    fieldspec("creation_date", FieldKind.DATE, [GET_CUSTOMERS]),
)

CUSTOMER_LINKS = (
    LinkRelation("self", "get_customer", frozenset([GET_CUSTOMERS]), (("customer_id", "id"),)),
    LinkRelation("update", "update_customer", frozenset([GET_CUSTOMERS]), (("customer_id", "id"),)),
    LinkRelation("delete", "delete_customer", frozenset([GET_CUSTOMERS]), (("customer_id", "id"),)),
)

SMARTPHONE_FIELDS = (
    fieldspec("id", FieldKind.INTEGER, [GET_PHONES]),
    fieldspec(
        "name",
        FieldKind.STRING,
        [GET_PHONES, MODIFY_PHONES],
        rules=[rules.not_blank(), rules.length(max=80)],
    ),
    fieldspec("description", FieldKind.STRING, [GET_PHONES, MODIFY_PHONES], rules=[rules.not_blank()]),
    fieldspec(
        "screen_size",
        FieldKind.DECIMAL,
        [GET_PHONES, MODIFY_PHONES],
        rules=[rules.not_blank(), rules.positive()],
    ),
    fieldspec(
        "price",
        FieldKind.DECIMAL,
        [GET_PHONES, MODIFY_PHONES],
        rules=[rules.not_blank(), rules.positive()],
    ),
    fieldspec("brand", FieldKind.RELATION, [GET_PHONES, MODIFY_PHONES], attribute="brand_id"),
)

SMARTPHONE_LINKS = (
    LinkRelation("self", "get_smartphone", frozenset([GET_PHONES]), (("phone_id", "id"),)),
    LinkRelation(
        "update",
        "update_smartphone",
        frozenset([GET_PHONES]),
        (("phone_id", "id"),),
        role=ROLE_ADMIN,
    ),
    LinkRelation(
        "delete",
        "delete_smartphone",
        frozenset([GET_PHONES]),
        (("phone_id", "id"),),
        role=ROLE_ADMIN,
    ),
)

BRAND_FIELDS = (
    fieldspec("id", FieldKind.INTEGER, [GET_BRANDS, GET_PHONES]),
    fieldspec("name", FieldKind.STRING, [GET_BRANDS, GET_PHONES]),
)


def build_registry() -> SchemaRegistry:
    """Construit le registre de l'application (appelé une fois par le conteneur)."""
    registry = SchemaRegistry()
    registry.register(Customer, CUSTOMER_FIELDS, CUSTOMER_LINKS)
    registry.register(Smartphone, SMARTPHONE_FIELDS, SMARTPHONE_LINKS)
    registry.register(Brand, BRAND_FIELDS)
    return registry
