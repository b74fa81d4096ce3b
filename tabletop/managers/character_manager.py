"""
Character management system.

Handles character creation, updates and lifecycle. Every character handed
back to callers carries its aggregate stats, recomputed from the stored
base stats, race and equipment on each read.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, joinedload, selectinload

from ..errors import BusinessLogicError, EntityNotFoundError, ValidationError
from ..models import Archetype, Character, Item, Race, User
from ..schemas import CharacterCreate, CharacterRecord, CharacterResponse, CharacterUpdate
from ..stats import EQUIPMENT_SLOTS, compute_aggregates
from .base import BaseManager, TaggableMixin, atomic, clean_name, clean_text, validate_id

logger = logging.getLogger(__name__)

ABILITY_FIELDS = ("strength", "dexterity", "constitution", "intelligence", "wisdom", "charisma")
RESOURCE_FIELDS = ("health", "stamina", "mana")
ABILITY_RANGE = (1, 20)

SLOT_ID_FIELDS = tuple(f"{slot}_id" for slot in EQUIPMENT_SLOTS)

# field -> (label, max length)
TEXT_FIELDS = {
    "surname": ("Character surname", 50),
    "nickname": ("Character nickname", 30),
    "description": ("Character description", 1000),
    "avatar_path": ("Character avatarPath", None),
}


def validate_base_stats(values: Dict[str, Any]) -> None:
    """
    Check base stats present in ``values``.

    Abilities must be integers in [1, 20]; health, stamina and mana must be
    integers of at least 1. Aggregate stats are never checked.
    """
    low, high = ABILITY_RANGE
    for field in ABILITY_FIELDS:
        if field in values:
            value = values[field]
            if isinstance(value, bool) or not isinstance(value, int) or not low <= value <= high:
                raise ValidationError(f"Character {field} must be an integer between {low} and {high}")

    for field in RESOURCE_FIELDS:
        if field in values:
            value = values[field]
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValidationError(f"Character {field} must be an integer of at least 1")


class CharacterManager(TaggableMixin, BaseManager):
    """Manages characters, their equipment, inventory and tags."""

    model = Character
    response_model = CharacterResponse
    entity_name = "Character"
    searchable_fields = ("name", "surname", "nickname", "description")

    def query_options(self) -> list:
        options = [joinedload(Character.race)]
        options.extend(joinedload(getattr(Character, slot)) for slot in EQUIPMENT_SLOTS)
        options.extend([selectinload(Character.items), selectinload(Character.tags)])
        return options

    def to_response(self, entity: Character) -> CharacterResponse:
        """Merge stored fields with freshly computed aggregate stats."""
        record = CharacterRecord.model_validate(entity)
        aggregates = compute_aggregates(entity)
        return CharacterResponse(**record.model_dump(), **aggregates.model_dump())

    def prepare(self, db: Session, values: Dict[str, Any], existing=None) -> Dict[str, Any]:
        if "name" in values:
            values["name"] = clean_name(values["name"], "Character name", 50)

        for field, (label, max_length) in TEXT_FIELDS.items():
            if field in values:
                values[field] = clean_text(values[field], label, max_length)

        validate_base_stats(values)

        if "is_public" in values and not isinstance(values["is_public"], bool):
            raise ValidationError("Character isPublic must be a boolean")

        for field, label in (("user_id", "User ID"), ("race_id", "Race ID"), ("archetype_id", "Archetype ID")):
            if field in values:
                validate_id(values[field], label)

        for field in SLOT_ID_FIELDS:
            if values.get(field) is not None:
                validate_id(values[field], f"{field} value")

        return values

    def _check_references(self, db: Session, values: Dict[str, Any], action: str) -> None:
        """Ensure every referenced user, race, archetype and item exists."""
        if "user_id" in values:
            user = db.query(User).filter(User.id == values["user_id"]).first()
            if user is None:
                raise EntityNotFoundError("User", values["user_id"])
            if not user.is_active:
                raise BusinessLogicError(f"Cannot {action} inactive user")

        if "race_id" in values:
            if db.query(Race.id).filter(Race.id == values["race_id"]).first() is None:
                raise EntityNotFoundError("Race", values["race_id"])

        if "archetype_id" in values:
            if db.query(Archetype.id).filter(Archetype.id == values["archetype_id"]).first() is None:
                raise EntityNotFoundError("Archetype", values["archetype_id"])

        for field in SLOT_ID_FIELDS:
            item_id = values.get(field)
            if item_id is not None and db.query(Item.id).filter(Item.id == item_id).first() is None:
                raise EntityNotFoundError("Item", item_id)

    def name_exists(
        self, db: Session, name: str, exclude_id: Optional[int] = None, user_id: Optional[int] = None
    ) -> bool:
        """Check whether the user already has a character with this name."""
        value = clean_name(name, "Character name", 50)
        query = db.query(Character.id).filter(Character.name == value)
        if user_id is not None:
            query = query.filter(Character.user_id == user_id)
        if exclude_id is not None:
            query = query.filter(Character.id != exclude_id)
        return query.first() is not None

    def _check_name_unique(self, db: Session, name: str, user_id: int, exclude_id: Optional[int] = None):
        if self.name_exists(db, name, exclude_id=exclude_id, user_id=user_id):
            logger.warning(f"Rejected duplicate character name '{name}' for user {user_id}")
            raise BusinessLogicError(f'Character with name "{name}" already exists for this user')

    def create(self, db: Session, data: CharacterCreate) -> CharacterResponse:
        """
        Create a character for an active user.

        Args:
            db: Database session
            data: Character payload with base stats, race, archetype, owner
                and optional equipment slot item IDs

        Returns:
            The stored character re-read with its relations and aggregate stats
        """
        values = self.prepare(db, dict(data.model_dump()))

        with atomic(db):
            self._check_references(db, values, "create character for")
            self._check_name_unique(db, values["name"], values["user_id"])

            character = Character(**values)
            db.add(character)
            db.flush()
            character_id = character.id

        logger.info(f"Created character {character_id} for user {values['user_id']}")

        # Read back with relations so aggregates reflect what was stored
        return self.to_response(self._get_or_raise(db, character_id))

    def update(self, db: Session, entity_id: int, data: CharacterUpdate) -> Optional[CharacterResponse]:
        """
        Apply a partial update; a slot explicitly set to null is unequipped.

        Returns:
            Updated character with aggregate stats, or None if not found
        """
        validate_id(entity_id, "Character ID")
        values = self.prepare(db, dict(data.model_dump(exclude_unset=True)))

        with atomic(db):
            character = db.query(Character).filter(Character.id == entity_id).first()
            if character is None:
                return None

            self._check_references(db, values, "assign character to")

            if "name" in values or "user_id" in values:
                self._check_name_unique(
                    db,
                    values.get("name", character.name),
                    values.get("user_id", character.user_id),
                    exclude_id=entity_id,
                )

            for field, value in values.items():
                setattr(character, field, value)

        logger.info(f"Updated character {entity_id}")
        return self.to_response(self._get_or_raise(db, entity_id))

    def associate_items(self, db: Session, character_id: int, item_ids: List[int]) -> None:
        """Add items to a character's inventory."""
        self._associate(db, character_id, "items", Item, item_ids, "Item")

    def dissociate_items(self, db: Session, character_id: int, item_ids: List[int]) -> None:
        """Remove items from a character's inventory."""
        self._dissociate(db, character_id, "items", item_ids, "Item")


# Global character manager instance
character_manager = CharacterManager()
