"""Tests du constructeur de liens à partir des routes nommées."""

import pytest

from bilemo.api.links import RouteLinkBuilder


def test_path_parameters_are_substituted(app):
    links = RouteLinkBuilder(app)
    assert links("get_customer", {"customer_id": 5}) == "/api/customers/5"
    assert links("delete_smartphone", {"phone_id": 3}) == "/api/smartphones/3"


def test_other_parameters_become_query_string(app):
    links = RouteLinkBuilder(app)
    assert links("list_customers", {"page": 2, "limit": 3}) == "/api/customers?page=2&limit=3"


def test_unknown_route_is_a_lookup_error(app):
    with pytest.raises(LookupError):
        RouteLinkBuilder(app)("nope", {})


def _nested_app():
    from fastapi import APIRouter, FastAPI

    inner = APIRouter(prefix="/shops/{shop_id}")

    @inner.get("/phones", name="shop_phones")
    def shop_phones(shop_id: int):
        return []

    outer = APIRouter(prefix="/api")
    outer.include_router(inner)
    app = FastAPI()
    app.include_router(outer)
    return app


def test_nested_routers_mix_path_and_query_parameters():
    """Les routes incluses via plusieurs routeurs sont résolues sans parcourir `app.routes`."""
    links = RouteLinkBuilder(_nested_app())
    assert links("shop_phones", {"shop_id": 7, "page": 2}) == "/api/shops/7/phones?page=2"
    # Second appel servi par les paramètres mémorisés pour la route
    assert links("shop_phones", {"shop_id": 8, "limit": 3}) == "/api/shops/8/phones?limit=3"


def test_missing_path_parameter_is_a_lookup_error():
    with pytest.raises(LookupError):
        RouteLinkBuilder(_nested_app())("shop_phones", {"page": 1})


def test_collection_links_through_the_application(client, seeded, user_headers):
    body = client.get("/api/customers?page=2&limit=3", headers=user_headers).json()
    assert body["_pages"]["self"] == {"href": "/api/customers?page=2&limit=3"}
    assert body["_pages"]["next"] == {"href": "/api/customers?page=3&limit=3"}
