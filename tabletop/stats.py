"""
Aggregate stat computation for characters.

Aggregate stats are derived on every character read from the base
attributes, the race modifiers and the bonuses of the equipped items.
They are never stored and never validated against base-stat bounds.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, StrictInt
from pydantic.alias_generators import to_camel


EQUIPMENT_SLOTS = (
    "primary_weapon",
    "secondary_weapon",
    "shield",
    "armor",
    "first_ring",
    "second_ring",
    "amulet",
)

# aggregate -> (base attribute, race modifier)
AGGREGATE_SOURCES = {
    "aggregate_health": ("health", "health_modifier"),
    "aggregate_stamina": ("stamina", "stamina_modifier"),
    "aggregate_mana": ("mana", "mana_modifier"),
    "aggregate_strength": ("strength", "strength_modifier"),
    "aggregate_dexterity": ("dexterity", "dexterity_modifier"),
    "aggregate_constitution": ("constitution", "constitution_modifier"),
    "aggregate_intelligence": ("intelligence", "intelligence_modifier"),
    "aggregate_wisdom": ("wisdom", "wisdom_modifier"),
    "aggregate_charisma": ("charisma", "charisma_modifier"),
}

# aggregate -> item bonus. Stamina and mana take no item bonus.
ITEM_BONUS_SOURCES = {
    "aggregate_health": "bonus_health",
    "aggregate_strength": "bonus_strength",
    "aggregate_dexterity": "bonus_dexterity",
    "aggregate_constitution": "bonus_constitution",
    "aggregate_intelligence": "bonus_intelligence",
    "aggregate_wisdom": "bonus_wisdom",
    "aggregate_charisma": "bonus_charisma",
}


class StatModel(BaseModel):
    """Base for stat records; accepts camelCase keys, snake_case names and ORM objects."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ItemBonuses(StatModel):
    """Bonuses granted by an equipped item."""

    bonus_strength: StrictInt
    bonus_dexterity: StrictInt
    bonus_constitution: StrictInt
    bonus_intelligence: StrictInt
    bonus_wisdom: StrictInt
    bonus_charisma: StrictInt
    bonus_health: StrictInt


class RaceModifiers(StatModel):
    """Per-attribute modifiers of a race."""

    health_modifier: StrictInt
    stamina_modifier: StrictInt
    mana_modifier: StrictInt
    strength_modifier: StrictInt
    dexterity_modifier: StrictInt
    constitution_modifier: StrictInt
    intelligence_modifier: StrictInt
    wisdom_modifier: StrictInt
    charisma_modifier: StrictInt


class StatsInput(StatModel):
    """Base attributes, race modifiers and equipment of a character."""

    health: StrictInt
    stamina: StrictInt
    mana: StrictInt
    strength: StrictInt
    dexterity: StrictInt
    constitution: StrictInt
    intelligence: StrictInt
    wisdom: StrictInt
    charisma: StrictInt
    race: RaceModifiers
    primary_weapon: Optional[ItemBonuses] = None
    secondary_weapon: Optional[ItemBonuses] = None
    shield: Optional[ItemBonuses] = None
    armor: Optional[ItemBonuses] = None
    first_ring: Optional[ItemBonuses] = None
    second_ring: Optional[ItemBonuses] = None
    amulet: Optional[ItemBonuses] = None

    def equipped_items(self) -> List[ItemBonuses]:
        """Return the bonus records of occupied slots, one entry per slot."""
        items = []
        for slot in EQUIPMENT_SLOTS:
            item = getattr(self, slot)
            if item is not None:
                items.append(item)
        return items


class AggregateStats(StatModel):
    """Derived stats exposed alongside a character."""

    aggregate_health: int
    aggregate_stamina: int
    aggregate_mana: int
    aggregate_strength: int
    aggregate_dexterity: int
    aggregate_constitution: int
    aggregate_intelligence: int
    aggregate_wisdom: int
    aggregate_charisma: int


def total_item_bonuses(items: List[ItemBonuses]) -> Dict[str, int]:
    """Sum bonus fields across items; an empty list yields all zeros."""
    totals = {bonus_field: 0 for bonus_field in ITEM_BONUS_SOURCES.values()}

    for item in items:
        for bonus_field in totals:
            totals[bonus_field] += getattr(item, bonus_field)

    return totals


def compute_aggregates(character: Any) -> AggregateStats:
    """
    Compute the nine aggregate stats of a character.

    Args:
        character: StatsInput, or anything it validates from (a mapping with
            camelCase or snake_case keys, or an ORM character with its race
            and equipment slots loaded)

    Returns:
        AggregateStats with base + race modifier for every stat, plus the
        summed item bonuses for every stat except stamina and mana

    Raises:
        pydantic.ValidationError: if a slot holds something other than a
            bonus record or None, or any stat value is not an int (strings
            and booleans are rejected, not coerced)
    """
    if not isinstance(character, StatsInput):
        character = StatsInput.model_validate(character)

    totals = total_item_bonuses(character.equipped_items())

    values = {}
    for aggregate, (base_field, modifier_field) in AGGREGATE_SOURCES.items():
        value = getattr(character, base_field) + getattr(character.race, modifier_field)

        bonus_field = ITEM_BONUS_SOURCES.get(aggregate)
        if bonus_field is not None:
            value += totals[bonus_field]

        values[aggregate] = value

    return AggregateStats(**values)
