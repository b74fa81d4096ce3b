"""
Skill management.
"""
from typing import Dict

from sqlalchemy.orm import Session, selectinload

from ..models import Skill, archetype_skills, race_skills
from ..schemas import SkillResponse
from .base import BaseManager, TaggableMixin


class SkillManager(TaggableMixin, BaseManager):
    """Manages skills and their tags."""
    
    model = Skill
    response_model = SkillResponse
    entity_name = "Skill"
    name_max_length = 100
    searchable_fields = ("name", "description")
    
    def query_options(self) -> list:
        return [selectinload(Skill.tags)]
    
    def reference_counts(self, db: Session, entity) -> Dict[str, int]:
        return {
            "archetypes": db.query(archetype_skills).filter(archetype_skills.c.skill_id == entity.id).count(),
            "races": db.query(race_skills).filter(race_skills.c.skill_id == entity.id).count(),
        }
    
    def deletion_blocked_message(self, entity, counts: Dict[str, int]) -> str:
        total = sum(counts.values())
        return (
            f'Cannot delete skill "{entity.name}" as it is being used by {total} other entities '
            f'(archetypes: {counts["archetypes"]}, races: {counts["races"]})'
        )


# Global skill manager instance
skill_manager = SkillManager()
