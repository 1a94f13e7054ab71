"""
Routes des clients de l'utilisateur authentifié.

Chaque utilisateur ne voit, ne crée et ne modifie que ses propres clients. La liste est paginée et
servie depuis le cache à tags `cacheCustomers`, invalidé après chaque écriture.
"""

from fastapi import APIRouter, Depends, Query, Request, Response

from bilemo.api.deps import (
    get_container,
    get_customer_service,
    get_identity,
    page_limit,
    raw_body,
    view_for,
)
from bilemo.core.container import Container
from bilemo.core.http_constants import HTTP_CREATED, HTTP_NO_CONTENT
from bilemo.domain.auth import Identity
from bilemo.domain.catalog import GET_CUSTOMERS, MODIFY_CUSTOMERS
from bilemo.domain.services import CustomerService, render_json
from bilemo.domain.views import ViewRequest

router = APIRouter(prefix="/api/customers", tags=["customers"])

JSON = "application/json"


@router.get("", name="list_customers")
def list_customers(
    page: int = Query(1),
    limit: int | None = Query(None),
    identity: Identity = Depends(get_identity),
    view: ViewRequest = Depends(view_for(GET_CUSTOMERS)),
    service: CustomerService = Depends(get_customer_service),
    container: Container = Depends(get_container),
):
    """Liste paginée des clients de l'appelant."""
    body = service.list_page(identity, view, page, page_limit(limit, container))
    return Response(content=body, media_type=JSON)


@router.get("/{customer_id}", name="get_customer")
def get_customer(
    customer_id: int,
    identity: Identity = Depends(get_identity),
    view: ViewRequest = Depends(view_for(GET_CUSTOMERS)),
    service: CustomerService = Depends(get_customer_service),
):
    customer = service.get(identity, customer_id)
    return Response(content=render_json(service.project(customer, view)), media_type=JSON)


@router.post("", name="create_customer", status_code=HTTP_CREATED)
def create_customer(
    request: Request,
    body: bytes = Depends(raw_body),
    identity: Identity = Depends(get_identity),
    write_view: ViewRequest = Depends(view_for(MODIFY_CUSTOMERS)),
    read_view: ViewRequest = Depends(view_for(GET_CUSTOMERS)),
    service: CustomerService = Depends(get_customer_service),
):
    """Crée un client rattaché à l'appelant; répond 201 avec l'en-tête `Location`."""
    customer = service.create(identity, body, write_view)
    location = str(request.url_for("get_customer", customer_id=str(customer.id)))
    return Response(
        content=render_json(service.project(customer, read_view)),
        status_code=HTTP_CREATED,
        media_type=JSON,
        headers={"Location": location},
    )


@router.put("/{customer_id}", name="update_customer", status_code=HTTP_NO_CONTENT)
def update_customer(
    customer_id: int,
    body: bytes = Depends(raw_body),
    identity: Identity = Depends(get_identity),
    view: ViewRequest = Depends(view_for(MODIFY_CUSTOMERS)),
    service: CustomerService = Depends(get_customer_service),
):
    service.update(identity, customer_id, body, view)
    return Response(status_code=HTTP_NO_CONTENT)


@router.delete("/{customer_id}", name="delete_customer", status_code=HTTP_NO_CONTENT)
def delete_customer(
    customer_id: int,
    identity: Identity = Depends(get_identity),
    service: CustomerService = Depends(get_customer_service),
):
    service.delete(identity, customer_id)
    return Response(status_code=HTTP_NO_CONTENT)
