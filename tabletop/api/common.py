"""
Shared helpers for the entity routers.

``build_crud_router`` wires the five standard endpoints of an entity to its
manager; entity modules add their association routes on top.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import EntityNotFoundError, ValidationError
from ..schemas import IdList


def dump(model) -> Dict[str, Any]:
    """Serialize a response model with camelCase keys."""
    return model.model_dump(by_alias=True, mode="json")


def success(data: Any = None, pagination=None, message: Optional[str] = None) -> Dict[str, Any]:
    """Build the success envelope."""
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if pagination is not None:
        body["pagination"] = dump(pagination)
    if message is not None:
        body["message"] = message
    return body


def parse_search(values: Optional[List[str]]) -> Dict[str, str]:
    """Turn repeated ``field:value`` query parameters into a search mapping."""
    search = {}
    for value in values or []:
        field, separator, term = value.partition(":")
        if not separator or not field.strip():
            raise ValidationError(f"Search term '{value}' must have the form field:value")
        search[field.strip()] = term
    return search


class ListParams:
    """Query parameters shared by every list endpoint."""

    def __init__(
        self,
        page: int = Query(1, description="Page number (1-based)"),
        page_size: Optional[int] = Query(None, alias="pageSize", description="Records per page (1-100)"),
        search: Optional[List[str]] = Query(None, description="Repeated field:value substring filters"),
        order_by: Optional[str] = Query(None, alias="orderBy", description="Field to sort by"),
        direction: str = Query("asc", description="Sort direction: asc or desc"),
    ):
        self.page = page
        self.page_size = page_size
        self.search = parse_search(search)
        self.order_by = order_by
        self.direction = direction


def build_crud_router(prefix: str, manager, create_model, update_model) -> APIRouter:
    """
    Create a router with list, get, create, update and delete endpoints.

    Args:
        prefix: URL prefix, e.g. "/races"
        manager: Entity manager instance
        create_model: Pydantic model of the create body, or None when the
            entity module supplies its own create endpoint
        update_model: Pydantic model of the update body

    Returns:
        APIRouter for the entity
    """
    router = APIRouter(prefix=prefix, tags=[prefix.strip("/")])
    entity = manager.entity_name

    @router.get("")
    def list_entities(params: ListParams = Depends(), db: Session = Depends(get_db)):
        entities, pagination = manager.get_many(
            db,
            page=params.page,
            page_size=params.page_size,
            search=params.search,
            order_by=params.order_by,
            direction=params.direction,
        )
        return success([dump(e) for e in entities], pagination=pagination)

    @router.get("/{entity_id}")
    def get_entity(entity_id: int, db: Session = Depends(get_db)):
        result = manager.get(db, entity_id)
        if result is None:
            raise EntityNotFoundError(entity, entity_id)
        return success(dump(result))

    if create_model is not None:

        @router.post("", status_code=201)
        def create_entity(data: create_model, db: Session = Depends(get_db)):
            result = manager.create(db, data)
            return success(dump(result), message=f"{entity} created successfully")

    @router.put("/{entity_id}")
    def update_entity(entity_id: int, data: update_model, db: Session = Depends(get_db)):
        result = manager.update(db, entity_id, data)
        if result is None:
            raise EntityNotFoundError(entity, entity_id)
        return success(dump(result), message=f"{entity} updated successfully")

    @router.delete("/{entity_id}")
    def delete_entity(entity_id: int, db: Session = Depends(get_db)):
        manager.delete(db, entity_id)
        return success(message=f"{entity} deleted successfully")

    return router


def add_association_routes(router: APIRouter, manager, relation: str) -> None:
    """
    Add POST/DELETE ``/{id}/<relation>`` routes calling
    ``associate_<relation>`` and ``dissociate_<relation>`` on the manager.
    """
    associate = getattr(manager, f"associate_{relation}")
    dissociate = getattr(manager, f"dissociate_{relation}")
    entity = manager.entity_name

    @router.post(f"/{{entity_id}}/{relation}", name=f"associate_{relation}")
    def associate_entities(entity_id: int, body: IdList, db: Session = Depends(get_db)):
        associate(db, entity_id, body.ids)
        return success(dump(manager.get(db, entity_id)), message=f"{relation.capitalize()} associated with {entity.lower()}")

    @router.delete(f"/{{entity_id}}/{relation}", name=f"dissociate_{relation}")
    def dissociate_entities(entity_id: int, body: IdList, db: Session = Depends(get_db)):
        dissociate(db, entity_id, body.ids)
        return success(dump(manager.get(db, entity_id)), message=f"{relation.capitalize()} dissociated from {entity.lower()}")
