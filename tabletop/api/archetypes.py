"""
Archetype endpoints.
"""
from ..managers.archetype_manager import archetype_manager
from ..schemas import ArchetypeCreate, ArchetypeUpdate
from .common import add_association_routes, build_crud_router

router = build_crud_router("/archetypes", archetype_manager, ArchetypeCreate, ArchetypeUpdate)
add_association_routes(router, archetype_manager, "skills")
add_association_routes(router, archetype_manager, "tags")
