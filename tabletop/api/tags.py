"""
Tag endpoints.
"""
from ..managers.tag_manager import tag_manager
from ..schemas import TagCreate, TagUpdate
from .common import build_crud_router

router = build_crud_router("/tags", tag_manager, TagCreate, TagUpdate)
