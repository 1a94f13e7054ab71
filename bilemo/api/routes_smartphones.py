"""
Routes du catalogue de smartphones.

Lecture ouverte à tout utilisateur authentifié; création, modification et suppression réservées
aux administrateurs (`ROLE_ADMIN`).
"""

from fastapi import APIRouter, Depends, Query, Request, Response

from bilemo.api.deps import (
    get_container,
    get_identity,
    get_smartphone_service,
    page_limit,
    raw_body,
    view_for,
)
from bilemo.core.container import Container
from bilemo.core.http_constants import HTTP_CREATED, HTTP_NO_CONTENT
from bilemo.domain.auth import Identity
from bilemo.domain.catalog import GET_PHONES, MODIFY_PHONES
from bilemo.domain.services import SmartphoneService, render_json
from bilemo.domain.views import ViewRequest

router = APIRouter(prefix="/api/smartphones", tags=["smartphones"])

JSON = "application/json"


@router.get("", name="list_smartphones")
def list_smartphones(
    page: int = Query(1),
    limit: int | None = Query(None),
    view: ViewRequest = Depends(view_for(GET_PHONES)),
    service: SmartphoneService = Depends(get_smartphone_service),
    container: Container = Depends(get_container),
):
    body = service.list_page(view, page, page_limit(limit, container))
    return Response(content=body, media_type=JSON)


@router.get("/{phone_id}", name="get_smartphone")
def get_smartphone(
    phone_id: int,
    view: ViewRequest = Depends(view_for(GET_PHONES)),
    service: SmartphoneService = Depends(get_smartphone_service),
):
    phone = service.get(phone_id)
    return Response(content=render_json(service.project(phone, view)), media_type=JSON)


@router.post("", name="create_smartphone", status_code=HTTP_CREATED)
def create_smartphone(
    request: Request,
    body: bytes = Depends(raw_body),
    identity: Identity = Depends(get_identity),
    write_view: ViewRequest = Depends(view_for(MODIFY_PHONES)),
    read_view: ViewRequest = Depends(view_for(GET_PHONES)),
    service: SmartphoneService = Depends(get_smartphone_service),
):
    phone = service.create(identity, body, write_view)
    location = str(request.url_for("get_smartphone", phone_id=str(phone.id)))
    return Response(
        content=render_json(service.project(phone, read_view)),
        status_code=HTTP_CREATED,
        media_type=JSON,
        headers={"Location": location},
    )


@router.put("/{phone_id}", name="update_smartphone", status_code=HTTP_NO_CONTENT)
def update_smartphone(
    phone_id: int,
    body: bytes = Depends(raw_body),
    identity: Identity = Depends(get_identity),
    view: ViewRequest = Depends(view_for(MODIFY_PHONES)),
    service: SmartphoneService = Depends(get_smartphone_service),
):
    service.update(identity, phone_id, body, view)
    return Response(status_code=HTTP_NO_CONTENT)


@router.delete("/{phone_id}", name="delete_smartphone", status_code=HTTP_NO_CONTENT)
def delete_smartphone(
    phone_id: int,
    identity: Identity = Depends(get_identity),
    service: SmartphoneService = Depends(get_smartphone_service),
):
    service.delete(identity, phone_id)
    return Response(status_code=HTTP_NO_CONTENT)
