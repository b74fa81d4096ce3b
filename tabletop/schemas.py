"""
Request and response payloads for the REST API.

JSON bodies use camelCase keys (``healthModifier``, ``isPublic``); the
Python attributes are snake_case.
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .stats import AggregateStats


Rarity = Literal["Common", "Uncommon", "Rare", "Epic", "Legendary"]
MimeType = Literal["image/jpeg", "image/png", "image/webp"]

TAG_NAME_PATTERN = r"^[a-zA-Z0-9\s\-_]+$"
USER_NAME_PATTERN = r"^[a-zA-Z0-9\s]+$"
EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"


class ApiModel(BaseModel):
    """Base model with camelCase aliases and ORM support."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Pagination(ApiModel):
    """Pagination block of list responses."""

    page: int
    page_size: int
    total: int
    total_pages: int


class NamedRef(ApiModel):
    """Compact reference to a related entity."""

    id: int
    name: str


class IdList(ApiModel):
    """Body of association requests."""

    ids: List[int] = Field(..., description="IDs of the entities to attach or detach")


# Tags

class TagCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=50, pattern=TAG_NAME_PATTERN)


class TagUpdate(ApiModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50, pattern=TAG_NAME_PATTERN)


class TagResponse(ApiModel):
    id: int
    name: str
    created_at: datetime
    updated_at: datetime


# Skills

class SkillCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)


class SkillUpdate(ApiModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)


class SkillResponse(ApiModel):
    id: int
    name: str
    description: Optional[str] = None
    tags: List[NamedRef] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


# Archetypes

class ArchetypeCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=500)


class ArchetypeUpdate(ApiModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=500)


class ArchetypeResponse(ApiModel):
    id: int
    name: str
    description: Optional[str] = None
    skills: List[NamedRef] = Field(default_factory=list)
    tags: List[NamedRef] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


# Races

class RaceCreate(ApiModel):
    """New race; every modifier is an integer in [-10, 10]."""

    name: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    health_modifier: int = Field(..., ge=-10, le=10)
    stamina_modifier: int = Field(..., ge=-10, le=10)
    mana_modifier: int = Field(..., ge=-10, le=10)
    strength_modifier: int = Field(..., ge=-10, le=10)
    dexterity_modifier: int = Field(..., ge=-10, le=10)
    constitution_modifier: int = Field(..., ge=-10, le=10)
    intelligence_modifier: int = Field(..., ge=-10, le=10)
    wisdom_modifier: int = Field(..., ge=-10, le=10)
    charisma_modifier: int = Field(..., ge=-10, le=10)


class RaceUpdate(ApiModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    health_modifier: Optional[int] = Field(None, ge=-10, le=10)
    stamina_modifier: Optional[int] = Field(None, ge=-10, le=10)
    mana_modifier: Optional[int] = Field(None, ge=-10, le=10)
    strength_modifier: Optional[int] = Field(None, ge=-10, le=10)
    dexterity_modifier: Optional[int] = Field(None, ge=-10, le=10)
    constitution_modifier: Optional[int] = Field(None, ge=-10, le=10)
    intelligence_modifier: Optional[int] = Field(None, ge=-10, le=10)
    wisdom_modifier: Optional[int] = Field(None, ge=-10, le=10)
    charisma_modifier: Optional[int] = Field(None, ge=-10, le=10)


class RaceResponse(ApiModel):
    id: int
    name: str
    description: Optional[str] = None
    health_modifier: int
    stamina_modifier: int
    mana_modifier: int
    strength_modifier: int
    dexterity_modifier: int
    constitution_modifier: int
    intelligence_modifier: int
    wisdom_modifier: int
    charisma_modifier: int
    skills: List[NamedRef] = Field(default_factory=list)
    tags: List[NamedRef] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


# Items

class ItemCreate(ApiModel):
    """New item; at least one type flag must be set."""

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    rarity: Rarity
    is_weapon: bool = False
    is_shield: bool = False
    is_armor: bool = False
    is_accessory: bool = False
    is_consumable: bool = False
    is_quest_item: bool = False
    is_crafting_material: bool = False
    is_miscellaneous: bool = False
    attack: int = Field(0, ge=0)
    defense: int = Field(0, ge=0)
    required_strength: int = Field(0, ge=0, le=50)
    required_dexterity: int = Field(0, ge=0, le=50)
    required_constitution: int = Field(0, ge=0, le=50)
    required_intelligence: int = Field(0, ge=0, le=50)
    required_wisdom: int = Field(0, ge=0, le=50)
    required_charisma: int = Field(0, ge=0, le=50)
    bonus_strength: int = Field(0, ge=0, le=50)
    bonus_dexterity: int = Field(0, ge=0, le=50)
    bonus_constitution: int = Field(0, ge=0, le=50)
    bonus_intelligence: int = Field(0, ge=0, le=50)
    bonus_wisdom: int = Field(0, ge=0, le=50)
    bonus_charisma: int = Field(0, ge=0, le=50)
    bonus_health: int = Field(0, ge=0, le=50)
    durability: int = Field(..., ge=1, le=10000)
    weight: int = Field(..., ge=1)


class ItemUpdate(ApiModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    rarity: Optional[Rarity] = None
    is_weapon: Optional[bool] = None
    is_shield: Optional[bool] = None
    is_armor: Optional[bool] = None
    is_accessory: Optional[bool] = None
    is_consumable: Optional[bool] = None
    is_quest_item: Optional[bool] = None
    is_crafting_material: Optional[bool] = None
    is_miscellaneous: Optional[bool] = None
    attack: Optional[int] = Field(None, ge=0)
    defense: Optional[int] = Field(None, ge=0)
    required_strength: Optional[int] = Field(None, ge=0, le=50)
    required_dexterity: Optional[int] = Field(None, ge=0, le=50)
    required_constitution: Optional[int] = Field(None, ge=0, le=50)
    required_intelligence: Optional[int] = Field(None, ge=0, le=50)
    required_wisdom: Optional[int] = Field(None, ge=0, le=50)
    required_charisma: Optional[int] = Field(None, ge=0, le=50)
    bonus_strength: Optional[int] = Field(None, ge=0, le=50)
    bonus_dexterity: Optional[int] = Field(None, ge=0, le=50)
    bonus_constitution: Optional[int] = Field(None, ge=0, le=50)
    bonus_intelligence: Optional[int] = Field(None, ge=0, le=50)
    bonus_wisdom: Optional[int] = Field(None, ge=0, le=50)
    bonus_charisma: Optional[int] = Field(None, ge=0, le=50)
    bonus_health: Optional[int] = Field(None, ge=0, le=50)
    durability: Optional[int] = Field(None, ge=1, le=10000)
    weight: Optional[int] = Field(None, ge=1)


class ItemResponse(ApiModel):
    id: int
    name: str
    description: Optional[str] = None
    rarity: str
    is_weapon: bool
    is_shield: bool
    is_armor: bool
    is_accessory: bool
    is_consumable: bool
    is_quest_item: bool
    is_crafting_material: bool
    is_miscellaneous: bool
    attack: int
    defense: int
    required_strength: int
    required_dexterity: int
    required_constitution: int
    required_intelligence: int
    required_wisdom: int
    required_charisma: int
    bonus_strength: int
    bonus_dexterity: int
    bonus_constitution: int
    bonus_intelligence: int
    bonus_wisdom: int
    bonus_charisma: int
    bonus_health: int
    durability: int
    weight: int
    tags: List[NamedRef] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


# Users

class UserCreate(ApiModel):
    name: str = Field(..., min_length=2, max_length=50, pattern=USER_NAME_PATTERN)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=8)


class UserUpdate(ApiModel):
    name: Optional[str] = Field(None, min_length=2, max_length=50, pattern=USER_NAME_PATTERN)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)
    password: Optional[str] = Field(None, min_length=8)
    is_verified: Optional[bool] = None
    is_active: Optional[bool] = None
    avatar_path: Optional[str] = None


class UserResponse(ApiModel):
    """User as exposed by the API; the password hash is never included."""

    id: int
    name: str
    email: str
    google_id: Optional[str] = None
    github_id: Optional[str] = None
    discord_id: Optional[str] = None
    avatar_path: Optional[str] = None
    is_verified: bool
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class LoginRequest(ApiModel):
    email: str
    password: str


# Images

class ImageCreate(ApiModel):
    """Image upload assembled from a multipart request."""

    filename: str = Field(..., min_length=1, max_length=255)
    size: int = Field(..., ge=1)
    width: int = Field(..., ge=1)
    height: int = Field(..., ge=1)
    mime_type: MimeType
    user_id: int = Field(..., ge=1)
    is_public: bool = False
    data: bytes


class ImageUpdate(ApiModel):
    filename: Optional[str] = Field(None, min_length=1, max_length=255)
    width: Optional[int] = Field(None, ge=1)
    height: Optional[int] = Field(None, ge=1)
    is_public: Optional[bool] = None
    user_id: Optional[int] = Field(None, ge=1)


class ImageResponse(ApiModel):
    id: int
    filename: str
    size: int
    width: int
    height: int
    mime_type: str
    is_public: bool
    user_id: int
    created_at: datetime
    updated_at: datetime


# Characters

class CharacterCreate(ApiModel):
    """New character; abilities are in [1, 20], resources are at least 1."""

    name: str = Field(..., min_length=1, max_length=50)
    surname: Optional[str] = Field(None, max_length=50)
    nickname: Optional[str] = Field(None, max_length=30)
    description: Optional[str] = Field(None, max_length=1000)
    avatar_path: Optional[str] = None
    health: int = Field(..., ge=1)
    stamina: int = Field(..., ge=1)
    mana: int = Field(..., ge=1)
    strength: int = Field(..., ge=1, le=20)
    dexterity: int = Field(..., ge=1, le=20)
    constitution: int = Field(..., ge=1, le=20)
    intelligence: int = Field(..., ge=1, le=20)
    wisdom: int = Field(..., ge=1, le=20)
    charisma: int = Field(..., ge=1, le=20)
    is_public: bool = False
    race_id: int = Field(..., ge=1)
    archetype_id: int = Field(..., ge=1)
    user_id: int = Field(..., ge=1)
    primary_weapon_id: Optional[int] = Field(None, ge=1)
    secondary_weapon_id: Optional[int] = Field(None, ge=1)
    shield_id: Optional[int] = Field(None, ge=1)
    armor_id: Optional[int] = Field(None, ge=1)
    first_ring_id: Optional[int] = Field(None, ge=1)
    second_ring_id: Optional[int] = Field(None, ge=1)
    amulet_id: Optional[int] = Field(None, ge=1)


class CharacterUpdate(ApiModel):
    """Partial character update; an explicit null in a slot unequips it."""

    name: Optional[str] = Field(None, min_length=1, max_length=50)
    surname: Optional[str] = Field(None, max_length=50)
    nickname: Optional[str] = Field(None, max_length=30)
    description: Optional[str] = Field(None, max_length=1000)
    avatar_path: Optional[str] = None
    health: Optional[int] = Field(None, ge=1)
    stamina: Optional[int] = Field(None, ge=1)
    mana: Optional[int] = Field(None, ge=1)
    strength: Optional[int] = Field(None, ge=1, le=20)
    dexterity: Optional[int] = Field(None, ge=1, le=20)
    constitution: Optional[int] = Field(None, ge=1, le=20)
    intelligence: Optional[int] = Field(None, ge=1, le=20)
    wisdom: Optional[int] = Field(None, ge=1, le=20)
    charisma: Optional[int] = Field(None, ge=1, le=20)
    is_public: Optional[bool] = None
    race_id: Optional[int] = Field(None, ge=1)
    archetype_id: Optional[int] = Field(None, ge=1)
    user_id: Optional[int] = Field(None, ge=1)
    primary_weapon_id: Optional[int] = Field(None, ge=1)
    secondary_weapon_id: Optional[int] = Field(None, ge=1)
    shield_id: Optional[int] = Field(None, ge=1)
    armor_id: Optional[int] = Field(None, ge=1)
    first_ring_id: Optional[int] = Field(None, ge=1)
    second_ring_id: Optional[int] = Field(None, ge=1)
    amulet_id: Optional[int] = Field(None, ge=1)


class CharacterRecord(ApiModel):
    """Stored character fields."""

    id: int
    name: str
    surname: Optional[str] = None
    nickname: Optional[str] = None
    description: Optional[str] = None
    avatar_path: Optional[str] = None
    health: int
    stamina: int
    mana: int
    strength: int
    dexterity: int
    constitution: int
    intelligence: int
    wisdom: int
    charisma: int
    is_public: bool
    race_id: int
    archetype_id: int
    user_id: int
    primary_weapon_id: Optional[int] = None
    secondary_weapon_id: Optional[int] = None
    shield_id: Optional[int] = None
    armor_id: Optional[int] = None
    first_ring_id: Optional[int] = None
    second_ring_id: Optional[int] = None
    amulet_id: Optional[int] = None
    items: List[NamedRef] = Field(default_factory=list)
    tags: List[NamedRef] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class CharacterResponse(CharacterRecord, AggregateStats):
    """Stored character fields merged with the derived aggregate stats."""
