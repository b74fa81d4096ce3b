"""
Tag management.
"""
from typing import Dict

from sqlalchemy.orm import Session

from ..models import Tag, archetype_tags, character_tags, item_tags, race_tags, skill_tags
from ..schemas import TagResponse
from .base import BaseManager


class TagManager(BaseManager):
    """Manages tags; a tag cannot be deleted while anything carries it."""
    
    model = Tag
    response_model = TagResponse
    entity_name = "Tag"
    name_max_length = 50
    description_max_length = None
    
    def reference_counts(self, db: Session, entity) -> Dict[str, int]:
        return {
            "items": db.query(item_tags).filter(item_tags.c.tag_id == entity.id).count(),
            "characters": db.query(character_tags).filter(character_tags.c.tag_id == entity.id).count(),
            "skills": db.query(skill_tags).filter(skill_tags.c.tag_id == entity.id).count(),
            "archetypes": db.query(archetype_tags).filter(archetype_tags.c.tag_id == entity.id).count(),
            "races": db.query(race_tags).filter(race_tags.c.tag_id == entity.id).count(),
        }


# Global tag manager instance
tag_manager = TagManager()
