"""
Shared fixtures: an in-memory database per test and seeded entities.
"""
import os

os.environ.setdefault("TABLETOP_DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from tabletop import models  # noqa: F401 - register models on Base.metadata
from tabletop.database import Base, build_engine, get_db
from tabletop.managers.archetype_manager import archetype_manager
from tabletop.managers.character_manager import character_manager
from tabletop.managers.item_manager import item_manager
from tabletop.managers.race_manager import race_manager
from tabletop.managers.user_manager import user_manager
from tabletop.schemas import (
    ArchetypeCreate,
    CharacterCreate,
    ItemCreate,
    RaceCreate,
    UserCreate,
)
from tabletop.service import app


@pytest.fixture
def engine():
    """Fresh in-memory SQLite engine with all tables."""
    test_engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    """Session for calling managers directly."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    """Test client whose requests use the in-memory database."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


RACE_MODIFIERS = {
    "health_modifier": 10,
    "stamina_modifier": 5,
    "mana_modifier": 0,
    "strength_modifier": 2,
    "dexterity_modifier": 1,
    "constitution_modifier": 2,
    "intelligence_modifier": 0,
    "wisdom_modifier": 0,
    "charisma_modifier": 1,
}

BASE_STATS = {
    "health": 100,
    "stamina": 80,
    "mana": 50,
    "strength": 15,
    "dexterity": 12,
    "constitution": 14,
    "intelligence": 10,
    "wisdom": 11,
    "charisma": 13,
}


@pytest.fixture
def user(db):
    return user_manager.create(
        db, UserCreate(name="Test User", email="Player@Example.com", password="secret-password")
    )


@pytest.fixture
def race(db):
    return race_manager.create(db, RaceCreate(name="Dwarf", description="Stout folk", **RACE_MODIFIERS))


@pytest.fixture
def archetype(db):
    return archetype_manager.create(db, ArchetypeCreate(name="Warrior", description="Front line fighter"))


@pytest.fixture
def sword(db):
    return item_manager.create(
        db,
        ItemCreate(
            name="Iron Sword",
            rarity="Common",
            is_weapon=True,
            attack=5,
            bonus_strength=3,
            bonus_dexterity=1,
            bonus_health=5,
            durability=100,
            weight=3,
        ),
    )


@pytest.fixture
def ring(db):
    return item_manager.create(
        db,
        ItemCreate(
            name="Ring of Vigor",
            rarity="Rare",
            is_accessory=True,
            bonus_constitution=2,
            bonus_health=4,
            durability=50,
            weight=1,
        ),
    )


@pytest.fixture
def character_payload(user, race, archetype):
    """Valid character create fields referencing the seeded entities."""
    return dict(
        name="Thorin",
        race_id=race.id,
        archetype_id=archetype.id,
        user_id=user.id,
        **BASE_STATS,
    )


@pytest.fixture
def character(db, character_payload):
    return character_manager.create(db, CharacterCreate(**character_payload))
