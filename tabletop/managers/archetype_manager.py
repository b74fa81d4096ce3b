"""
Archetype management.
"""
from typing import Dict

from sqlalchemy.orm import Session, selectinload

from ..models import Archetype, Character
from ..schemas import ArchetypeResponse
from .base import BaseManager, SkilledMixin, TaggableMixin


class ArchetypeManager(SkilledMixin, TaggableMixin, BaseManager):
    """Manages archetypes with their skills and tags."""
    
    model = Archetype
    response_model = ArchetypeResponse
    entity_name = "Archetype"
    name_max_length = 50
    searchable_fields = ("name", "description")
    
    def query_options(self) -> list:
        return [selectinload(Archetype.skills), selectinload(Archetype.tags)]
    
    def reference_counts(self, db: Session, entity) -> Dict[str, int]:
        return {"characters": db.query(Character).filter(Character.archetype_id == entity.id).count()}
    
    def deletion_blocked_message(self, entity, counts: Dict[str, int]) -> str:
        return (
            f'Cannot delete archetype "{entity.name}" as it is being used by '
            f'{counts["characters"]} characters'
        )


# Global archetype manager instance
archetype_manager = ArchetypeManager()
