"""Tests HTTP du catalogue de smartphones (lecture ouverte, écriture administrateur)."""

from bilemo.core.http_constants import (
    HTTP_BAD_REQUEST,
    HTTP_CREATED,
    HTTP_FORBIDDEN,
    HTTP_NO_CONTENT,
    HTTP_NOT_FOUND,
    HTTP_OK,
)

EXPECTED_PHONES = 4


def _phone(brand_id: int) -> dict:
    return {
        "name": "Pixel Demo",
        "description": "Demo description",
        "screen_size": 6.3,
        "price": "899.00",
        "brand": brand_id,
    }


def test_list_smartphones(client, user_headers):
    r = client.get("/api/smartphones?limit=2", headers=user_headers)
    assert r.status_code == HTTP_OK
    body = r.json()
    assert body["_pages"]["items_count"] == EXPECTED_PHONES
    assert body["_pages"]["last"] == {"href": "/api/smartphones?page=2&limit=2"}
    phone = body["items"][0]
    assert phone["price"] == 799.9
    assert isinstance(phone["brand"], int)
    assert set(phone["_links"]) == {"self"}


def test_admin_sees_write_links(client, admin_headers):
    phone = client.get("/api/smartphones", headers=admin_headers).json()["items"][0]
    assert phone["_links"]["update"] == {"href": f"/api/smartphones/{phone['id']}"}
    assert set(phone["_links"]) == {"self", "update", "delete"}


def test_get_smartphone(client, user_headers):
    first = client.get("/api/smartphones", headers=user_headers).json()["items"][0]
    r = client.get(f"/api/smartphones/{first['id']}", headers=user_headers)
    assert r.status_code == HTTP_OK
    assert r.json()["name"] == first["name"]

    r = client.get("/api/smartphones/9999", headers=user_headers)
    assert r.status_code == HTTP_NOT_FOUND


def test_create_requires_admin(client, user_headers, seeded):
    r = client.post("/api/smartphones", json=_phone(seeded["apple"]), headers=user_headers)
    assert r.status_code == HTTP_FORBIDDEN
    assert r.json() == {"status": HTTP_FORBIDDEN, "message": "You don't have access to phone creation"}


def test_admin_crud(client, admin_headers, user_headers, seeded):
    r = client.post("/api/smartphones", json=_phone(seeded["apple"]), headers=admin_headers)
    assert r.status_code == HTTP_CREATED
    created = r.json()
    assert created["brand"] == seeded["apple"]
    assert r.headers["location"].endswith(f"/api/smartphones/{created['id']}")

    listed = client.get("/api/smartphones", headers=user_headers).json()
    assert listed["_pages"]["items_count"] == EXPECTED_PHONES + 1

    update = {**_phone(seeded["sony"]), "price": 749}
    r = client.put(f"/api/smartphones/{created['id']}", json=update, headers=admin_headers)
    assert r.status_code == HTTP_NO_CONTENT
    fetched = client.get(f"/api/smartphones/{created['id']}", headers=user_headers).json()
    assert fetched["brand"] == seeded["sony"]
    assert fetched["price"] == 749

    r = client.delete(f"/api/smartphones/{created['id']}", headers=user_headers)
    assert r.status_code == HTTP_FORBIDDEN
    assert r.json()["message"] == "You don't have access to phone deletion"

    r = client.delete(f"/api/smartphones/{created['id']}", headers=admin_headers)
    assert r.status_code == HTTP_NO_CONTENT
    listed = client.get("/api/smartphones", headers=user_headers).json()
    assert listed["_pages"]["items_count"] == EXPECTED_PHONES


def test_invalid_phone_payloads(client, admin_headers):
    r = client.post("/api/smartphones", json=_phone(999), headers=admin_headers)
    assert r.status_code == HTTP_BAD_REQUEST
    assert r.json()["errors"] == {"brand": "Brand not found."}

    r = client.post(
        "/api/smartphones",
        json={**_phone(999), "price": -1, "name": ""},
        headers=admin_headers,
    )
    assert r.status_code == HTTP_BAD_REQUEST
    assert r.json()["errors"] == {
        "name": "This value should not be blank.",
        "price": "This value should be positive.",
        "brand": "Brand not found.",
    }

    r = client.post("/api/smartphones", json={**_phone(1), "price": "cheap"}, headers=admin_headers)
    assert r.status_code == HTTP_BAD_REQUEST
    assert set(r.json()["errors"]) == {"price"}


def test_huge_page_and_limit(client, user_headers):
    r = client.get(f"/api/smartphones?page={10**20}&limit=2", headers=user_headers)
    assert r.status_code == HTTP_OK
    assert r.json()["items"] == []
    r = client.get(f"/api/smartphones?limit={10**20}", headers=user_headers)
    assert r.status_code == HTTP_BAD_REQUEST
