"""
Race endpoints.
"""
from ..managers.race_manager import race_manager
from ..schemas import RaceCreate, RaceUpdate
from .common import add_association_routes, build_crud_router

router = build_crud_router("/races", race_manager, RaceCreate, RaceUpdate)
add_association_routes(router, race_manager, "skills")
add_association_routes(router, race_manager, "tags")
