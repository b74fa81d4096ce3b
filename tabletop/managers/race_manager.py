"""
Race management.

Races carry the nine stat modifiers that feed character aggregate stats.
"""
from typing import Any, Dict

from sqlalchemy.orm import Session, selectinload

from ..errors import ValidationError
from ..models import Character, Race
from ..schemas import RaceResponse
from .base import BaseManager, SkilledMixin, TaggableMixin


MODIFIER_FIELDS = (
    "health_modifier",
    "stamina_modifier",
    "mana_modifier",
    "strength_modifier",
    "dexterity_modifier",
    "constitution_modifier",
    "intelligence_modifier",
    "wisdom_modifier",
    "charisma_modifier",
)
MODIFIER_RANGE = (-10, 10)


class RaceManager(SkilledMixin, TaggableMixin, BaseManager):
    """Manages races, their modifiers, skills and tags."""
    
    model = Race
    response_model = RaceResponse
    entity_name = "Race"
    name_max_length = 50
    searchable_fields = ("name", "description")
    
    def query_options(self) -> list:
        return [selectinload(Race.skills), selectinload(Race.tags)]
    
    def prepare(self, db: Session, values: Dict[str, Any], existing=None) -> Dict[str, Any]:
        values = super().prepare(db, values, existing)
        
        low, high = MODIFIER_RANGE
        for field in MODIFIER_FIELDS:
            if field not in values:
                continue
            value = values[field]
            if isinstance(value, bool) or not isinstance(value, int) or not low <= value <= high:
                raise ValidationError(f"{field} must be an integer between {low} and {high}")
        
        return values
    
    def reference_counts(self, db: Session, entity) -> Dict[str, int]:
        return {"characters": db.query(Character).filter(Character.race_id == entity.id).count()}
    
    def deletion_blocked_message(self, entity, counts: Dict[str, int]) -> str:
        return (
            f'Cannot delete race "{entity.name}" as it is being used by '
            f'{counts["characters"]} characters'
        )


# Global race manager instance
race_manager = RaceManager()
