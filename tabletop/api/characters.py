"""
Character endpoints.

Every character in a response carries its aggregate stats.
"""
from ..managers.character_manager import character_manager
from ..schemas import CharacterCreate, CharacterUpdate
from .common import add_association_routes, build_crud_router

router = build_crud_router("/characters", character_manager, CharacterCreate, CharacterUpdate)
add_association_routes(router, character_manager, "items")
add_association_routes(router, character_manager, "tags")
