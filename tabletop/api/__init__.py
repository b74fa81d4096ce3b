"""
FastAPI routers, one per entity.
"""
from .archetypes import router as archetypes_router
from .characters import router as characters_router
from .images import router as images_router
from .items import router as items_router
from .races import router as races_router
from .skills import router as skills_router
from .tags import router as tags_router
from .users import router as users_router

routers = [
    characters_router,
    items_router,
    races_router,
    archetypes_router,
    skills_router,
    tags_router,
    users_router,
    images_router,
]
