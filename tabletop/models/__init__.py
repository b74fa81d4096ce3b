"""
Database models for tabletop entities and their associations.
"""
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    LargeBinary,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


def _association(name: str, left: str, right: str) -> Table:
    """Build a many-to-many association table between two entity tables."""
    return Table(
        name,
        Base.metadata,
        Column(f"{left}_id", Integer, ForeignKey(f"{left}s.id", ondelete="CASCADE"), primary_key=True),
        Column(f"{right}_id", Integer, ForeignKey(f"{right}s.id", ondelete="CASCADE"), primary_key=True),
    )


race_skills = _association("race_skills", "race", "skill")
race_tags = _association("race_tags", "race", "tag")
archetype_skills = _association("archetype_skills", "archetype", "skill")
archetype_tags = _association("archetype_tags", "archetype", "tag")
skill_tags = _association("skill_tags", "skill", "tag")
item_tags = _association("item_tags", "item", "tag")
character_items = _association("character_items", "character", "item")
character_tags = _association("character_tags", "character", "tag")


class User(Base):
    """Account owning characters and images."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=True)  # Argon2 hash; None for OAuth-only accounts
    google_id = Column(String, nullable=True)
    github_id = Column(String, nullable=True)
    discord_id = Column(String, nullable=True)
    avatar_path = Column(String, nullable=True)
    is_verified = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    characters = relationship("Character", back_populates="user")
    images = relationship("Image", back_populates="user")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"


class Image(Base):
    """Uploaded image stored in the database."""

    __tablename__ = "images"
    __table_args__ = (UniqueConstraint("user_id", "filename", name="uq_images_user_filename"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    filename = Column(String(255), nullable=False)
    size = Column(Integer, nullable=False)
    width = Column(Integer, nullable=False)
    height = Column(Integer, nullable=False)
    mime_type = Column(String(20), nullable=False)
    blob = Column(LargeBinary, nullable=False)
    is_public = Column(Boolean, default=False, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    user = relationship("User", back_populates="images")

    def __repr__(self):
        return f"<Image(id={self.id}, filename='{self.filename}', user={self.user_id})>"


class Tag(Base):
    """Free-form label attachable to most entities."""

    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False, unique=True)

    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Tag(id={self.id}, name='{self.name}')>"


class Skill(Base):
    """Ability granted by races and archetypes."""

    __tablename__ = "skills"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    tags = relationship("Tag", secondary=skill_tags, order_by="Tag.name")

    def __repr__(self):
        return f"<Skill(id={self.id}, name='{self.name}')>"


class Archetype(Base):
    """Character class (warrior, mage, ...)."""

    __tablename__ = "archetypes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False, unique=True)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    skills = relationship("Skill", secondary=archetype_skills, order_by="Skill.name")
    tags = relationship("Tag", secondary=archetype_tags, order_by="Tag.name")

    def __repr__(self):
        return f"<Archetype(id={self.id}, name='{self.name}')>"


class Race(Base):
    """Race with per-attribute modifiers in [-10, 10]."""

    __tablename__ = "races"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False, unique=True)
    description = Column(Text, nullable=True)

    # Stat modifiers
    health_modifier = Column(Integer, nullable=False)
    stamina_modifier = Column(Integer, nullable=False)
    mana_modifier = Column(Integer, nullable=False)
    strength_modifier = Column(Integer, nullable=False)
    dexterity_modifier = Column(Integer, nullable=False)
    constitution_modifier = Column(Integer, nullable=False)
    intelligence_modifier = Column(Integer, nullable=False)
    wisdom_modifier = Column(Integer, nullable=False)
    charisma_modifier = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    skills = relationship("Skill", secondary=race_skills, order_by="Skill.name")
    tags = relationship("Tag", secondary=race_tags, order_by="Tag.name")

    def __repr__(self):
        return f"<Race(id={self.id}, name='{self.name}')>"


class Item(Base):
    """Equipment, consumable or miscellaneous item."""

    __tablename__ = "items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    rarity = Column(String(20), nullable=False)  # Common, Uncommon, Rare, Epic, Legendary

    # Type flags
    is_weapon = Column(Boolean, default=False, nullable=False)
    is_shield = Column(Boolean, default=False, nullable=False)
    is_armor = Column(Boolean, default=False, nullable=False)
    is_accessory = Column(Boolean, default=False, nullable=False)
    is_consumable = Column(Boolean, default=False, nullable=False)
    is_quest_item = Column(Boolean, default=False, nullable=False)
    is_crafting_material = Column(Boolean, default=False, nullable=False)
    is_miscellaneous = Column(Boolean, default=False, nullable=False)

    # Combat
    attack = Column(Integer, default=0, nullable=False)
    defense = Column(Integer, default=0, nullable=False)

    # Requirements
    required_strength = Column(Integer, default=0, nullable=False)
    required_dexterity = Column(Integer, default=0, nullable=False)
    required_constitution = Column(Integer, default=0, nullable=False)
    required_intelligence = Column(Integer, default=0, nullable=False)
    required_wisdom = Column(Integer, default=0, nullable=False)
    required_charisma = Column(Integer, default=0, nullable=False)

    # Bonuses
    bonus_strength = Column(Integer, default=0, nullable=False)
    bonus_dexterity = Column(Integer, default=0, nullable=False)
    bonus_constitution = Column(Integer, default=0, nullable=False)
    bonus_intelligence = Column(Integer, default=0, nullable=False)
    bonus_wisdom = Column(Integer, default=0, nullable=False)
    bonus_charisma = Column(Integer, default=0, nullable=False)
    bonus_health = Column(Integer, default=0, nullable=False)

    durability = Column(Integer, nullable=False)
    weight = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    tags = relationship("Tag", secondary=item_tags, order_by="Tag.name")

    def __repr__(self):
        return f"<Item(id={self.id}, name='{self.name}', rarity='{self.rarity}')>"


class Character(Base):
    """Player character with base attributes, race, archetype and equipment."""

    __tablename__ = "characters"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_characters_user_name"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False)
    surname = Column(String(50), nullable=True)
    nickname = Column(String(30), nullable=True)
    description = Column(Text, nullable=True)
    avatar_path = Column(String, nullable=True)

    # Base attributes
    health = Column(Integer, nullable=False)
    stamina = Column(Integer, nullable=False)
    mana = Column(Integer, nullable=False)
    strength = Column(Integer, nullable=False)
    dexterity = Column(Integer, nullable=False)
    constitution = Column(Integer, nullable=False)
    intelligence = Column(Integer, nullable=False)
    wisdom = Column(Integer, nullable=False)
    charisma = Column(Integer, nullable=False)

    is_public = Column(Boolean, default=False, nullable=False)

    # Ownership and classification
    race_id = Column(Integer, ForeignKey("races.id"), nullable=False, index=True)
    archetype_id = Column(Integer, ForeignKey("archetypes.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Equipment slots
    primary_weapon_id = Column(Integer, ForeignKey("items.id", ondelete="SET NULL"), nullable=True)
    secondary_weapon_id = Column(Integer, ForeignKey("items.id", ondelete="SET NULL"), nullable=True)
    shield_id = Column(Integer, ForeignKey("items.id", ondelete="SET NULL"), nullable=True)
    armor_id = Column(Integer, ForeignKey("items.id", ondelete="SET NULL"), nullable=True)
    first_ring_id = Column(Integer, ForeignKey("items.id", ondelete="SET NULL"), nullable=True)
    second_ring_id = Column(Integer, ForeignKey("items.id", ondelete="SET NULL"), nullable=True)
    amulet_id = Column(Integer, ForeignKey("items.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    race = relationship("Race")
    archetype = relationship("Archetype")
    user = relationship("User", back_populates="characters")
    primary_weapon = relationship("Item", foreign_keys=[primary_weapon_id])
    secondary_weapon = relationship("Item", foreign_keys=[secondary_weapon_id])
    shield = relationship("Item", foreign_keys=[shield_id])
    armor = relationship("Item", foreign_keys=[armor_id])
    first_ring = relationship("Item", foreign_keys=[first_ring_id])
    second_ring = relationship("Item", foreign_keys=[second_ring_id])
    amulet = relationship("Item", foreign_keys=[amulet_id])
    items = relationship("Item", secondary=character_items, order_by="Item.name")
    tags = relationship("Tag", secondary=character_tags, order_by="Tag.name")

    def __repr__(self):
        return f"<Character(id={self.id}, name='{self.name}', race={self.race_id})>"
