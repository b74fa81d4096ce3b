"""
Item endpoints.
"""
from ..managers.item_manager import item_manager
from ..schemas import ItemCreate, ItemUpdate
from .common import add_association_routes, build_crud_router

router = build_crud_router("/items", item_manager, ItemCreate, ItemUpdate)
add_association_routes(router, item_manager, "tags")
