"""
Skill endpoints.
"""
from ..managers.skill_manager import skill_manager
from ..schemas import SkillCreate, SkillUpdate
from .common import add_association_routes, build_crud_router

router = build_crud_router("/skills", skill_manager, SkillCreate, SkillUpdate)
add_association_routes(router, skill_manager, "tags")
