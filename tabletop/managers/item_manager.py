"""
Item management.

Items can be equipped in a character's seven equipment slots or held in a
character's general inventory; either blocks deletion.
"""
from typing import Any, Dict

from sqlalchemy.orm import Session, selectinload

from ..errors import ValidationError
from ..models import Character, Item, character_items
from ..schemas import ItemResponse
from .base import BaseManager, TaggableMixin


TYPE_FLAGS = (
    "is_weapon",
    "is_shield",
    "is_armor",
    "is_accessory",
    "is_consumable",
    "is_quest_item",
    "is_crafting_material",
    "is_miscellaneous",
)

# reference label -> character slot column
SLOT_REFERENCES = {
    "primary weapon": Character.primary_weapon_id,
    "secondary weapon": Character.secondary_weapon_id,
    "shield": Character.shield_id,
    "armor": Character.armor_id,
    "first ring": Character.first_ring_id,
    "second ring": Character.second_ring_id,
    "amulet": Character.amulet_id,
}


class ItemManager(TaggableMixin, BaseManager):
    """Manages items and their tags."""
    
    model = Item
    response_model = ItemResponse
    entity_name = "Item"
    name_max_length = 100
    searchable_fields = ("name", "description", "rarity")
    
    def query_options(self) -> list:
        return [selectinload(Item.tags)]
    
    def prepare(self, db: Session, values: Dict[str, Any], existing=None) -> Dict[str, Any]:
        for field, value in values.items():
            if value is None and field != "description":
                raise ValidationError(f"Item {field} cannot be null")

        values = super().prepare(db, values, existing)

        # The resulting item must have at least one type flag set
        if existing is None or any(flag in values for flag in TYPE_FLAGS):
            flags = {
                flag: values.get(flag, getattr(existing, flag, False))
                for flag in TYPE_FLAGS
            }
            if not any(flags.values()):
                raise ValidationError("Item must have at least one type flag set to true")
        
        return values
    
    def reference_counts(self, db: Session, entity) -> Dict[str, int]:
        counts = {
            label: db.query(Character).filter(column == entity.id).count()
            for label, column in SLOT_REFERENCES.items()
        }
        counts["inventory"] = (
            db.query(character_items).filter(character_items.c.item_id == entity.id).count()
        )
        return counts
    
    def deletion_blocked_message(self, entity, counts: Dict[str, int]) -> str:
        details = ", ".join(f"{label}: {count}" for label, count in counts.items() if count > 0)
        return f'Cannot delete item "{entity.name}" as it is being used by characters ({details})'


# Global item manager instance
item_manager = ItemManager()
