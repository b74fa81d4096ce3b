"""
Tests for the entity managers against an in-memory database.
"""
import pytest

from tabletop.config import settings
from tabletop.errors import BusinessLogicError, EntityNotFoundError, ValidationError
from tabletop.managers.archetype_manager import archetype_manager
from tabletop.managers.character_manager import character_manager
from tabletop.managers.image_manager import check_extension, image_manager
from tabletop.managers.item_manager import item_manager
from tabletop.managers.race_manager import race_manager
from tabletop.managers.skill_manager import skill_manager
from tabletop.managers.tag_manager import tag_manager
from tabletop.managers.user_manager import user_manager
from tabletop.models import User
from tabletop.schemas import (
    CharacterCreate,
    CharacterUpdate,
    ImageCreate,
    ImageUpdate,
    ItemUpdate,
    RaceUpdate,
    SkillCreate,
    TagCreate,
    TagUpdate,
    UserCreate,
    UserUpdate,
)

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24


def make_tags(db, *names):
    return [tag_manager.create(db, TagCreate(name=name)) for name in names]


class TestListing:
    """Pagination, search and ordering."""

    def test_pagination_metadata(self, db):
        make_tags(db, *(f"tag {i:02d}" for i in range(25)))

        tags, pagination = tag_manager.get_many(db, page=3, page_size=10)

        assert [t.name for t in tags] == [f"tag {i:02d}" for i in range(20, 25)]
        assert pagination.total == 25
        assert pagination.total_pages == 3
        assert pagination.page == 3
        assert pagination.page_size == 10

    def test_empty_listing(self, db):
        tags, pagination = tag_manager.get_many(db)

        assert tags == []
        assert pagination.total == 0
        assert pagination.total_pages == 0

    @pytest.mark.parametrize("page", [0, -1])
    def test_page_must_be_positive(self, db, page):
        with pytest.raises(ValidationError, match="Page number must be greater than 0"):
            tag_manager.get_many(db, page=page)

    @pytest.mark.parametrize("page_size", [0, 101])
    def test_page_size_bounds(self, db, page_size):
        with pytest.raises(ValidationError, match="Page size must be between 1 and 100"):
            tag_manager.get_many(db, page_size=page_size)

    def test_search_is_case_insensitive_substring(self, db):
        make_tags(db, "Fire", "Wildfire", "Ice")

        tags, pagination = tag_manager.get_many(db, search={"name": "FIRE"})

        assert [t.name for t in tags] == ["Fire", "Wildfire"]
        assert pagination.total == 2

    @pytest.mark.parametrize("term,expected", [("e_b", ["fire_ball"]), ("%", []), ("_", ["fire_ball"])])
    def test_search_wildcards_match_literally(self, db, term, expected):
        make_tags(db, "fire_ball", "fireXball", "ice")

        tags, _ = tag_manager.get_many(db, search={"name": term})

        assert [t.name for t in tags] == expected

    def test_search_on_unknown_field_is_rejected(self, db):
        with pytest.raises(ValidationError):
            tag_manager.get_many(db, search={"password": "x"})

    def test_descending_order(self, db):
        make_tags(db, "alpha", "beta", "gamma")

        tags, _ = tag_manager.get_many(db, order_by="name", direction="desc")

        assert [t.name for t in tags] == ["gamma", "beta", "alpha"]

    def test_unknown_order_field_is_rejected(self, db):
        with pytest.raises(ValidationError):
            tag_manager.get_many(db, order_by="nope")

    def test_hidden_fields_cannot_be_sorted(self, db):
        with pytest.raises(ValidationError):
            user_manager.get_many(db, order_by="password")

    def test_camel_case_sort_field(self, db, user):
        users, _ = user_manager.get_many(db, order_by="createdAt")
        assert [u.id for u in users] == [user.id]


class TestLookupsAndUniqueness:
    """get, name_exists and duplicate handling."""

    def test_get_missing_returns_none(self, db):
        assert tag_manager.get(db, 999) is None

    @pytest.mark.parametrize("bad_id", [0, -5, "1", 1.5, True])
    def test_get_rejects_invalid_ids(self, db, bad_id):
        with pytest.raises(ValidationError):
            tag_manager.get(db, bad_id)

    def test_names_are_trimmed(self, db):
        skill = skill_manager.create(db, SkillCreate(name="  Parry  ", description="  Block a blow "))

        assert skill.name == "Parry"
        assert skill.description == "Block a blow"

    def test_duplicate_name_conflicts(self, db):
        make_tags(db, "Fire")

        with pytest.raises(BusinessLogicError, match='Tag with name "Fire" already exists'):
            tag_manager.create(db, TagCreate(name="Fire"))

    def test_name_exists_excludes_self(self, db):
        fire, = make_tags(db, "Fire")

        assert tag_manager.name_exists(db, "Fire")
        assert not tag_manager.name_exists(db, "Fire", exclude_id=fire.id)
        assert not tag_manager.name_exists(db, "Water")

    def test_update_to_duplicate_name_conflicts(self, db):
        fire, ice = make_tags(db, "Fire", "Ice")

        with pytest.raises(BusinessLogicError):
            tag_manager.update(db, ice.id, TagUpdate(name="Fire"))

    def test_update_missing_returns_none(self, db):
        assert tag_manager.update(db, 404, TagUpdate(name="Nothing")) is None

    def test_delete_missing_raises(self, db):
        with pytest.raises(EntityNotFoundError, match="Tag with ID 404 not found"):
            tag_manager.delete(db, 404)

    def test_failed_write_leaves_session_usable(self, db):
        make_tags(db, "Fire")
        with pytest.raises(BusinessLogicError):
            tag_manager.create(db, TagCreate(name="Fire"))

        make_tags(db, "Water")
        assert tag_manager.get_many(db)[1].total == 2


class TestDeletionBlockers:
    """Entities in use cannot be deleted."""

    def test_race_in_use(self, db, race, character):
        with pytest.raises(BusinessLogicError, match='Cannot delete race "Dwarf" as it is being used by 1 characters'):
            race_manager.delete(db, race.id)

    def test_archetype_in_use(self, db, archetype, character):
        with pytest.raises(BusinessLogicError):
            archetype_manager.delete(db, archetype.id)

    def test_item_in_slot(self, db, sword, character):
        character_manager.update(db, character.id, CharacterUpdate(primary_weapon_id=sword.id))

        with pytest.raises(BusinessLogicError, match="primary weapon: 1"):
            item_manager.delete(db, sword.id)

    def test_item_in_inventory(self, db, ring, character):
        character_manager.associate_items(db, character.id, [ring.id])

        with pytest.raises(BusinessLogicError, match="inventory: 1"):
            item_manager.delete(db, ring.id)

    def test_tag_in_use(self, db, sword):
        fire, = make_tags(db, "Fire")
        item_manager.associate_tags(db, sword.id, [fire.id])

        with pytest.raises(BusinessLogicError):
            tag_manager.delete(db, fire.id)

    def test_skill_in_use(self, db, race):
        skill = skill_manager.create(db, SkillCreate(name="Stonecunning"))
        race_manager.associate_skills(db, race.id, [skill.id])

        with pytest.raises(BusinessLogicError, match=r"\(archetypes: 0, races: 1\)"):
            skill_manager.delete(db, skill.id)

    def test_user_with_characters(self, db, user, character):
        with pytest.raises(BusinessLogicError, match="characters: 1, images: 0"):
            user_manager.delete(db, user.id)

    def test_unreferenced_entities_delete(self, db, race, sword):
        race_manager.delete(db, race.id)
        item_manager.delete(db, sword.id)

        assert race_manager.get(db, race.id) is None
        assert item_manager.get(db, sword.id) is None

    def test_character_deletes_with_its_associations(self, db, character, ring):
        fire, = make_tags(db, "Fire")
        character_manager.associate_tags(db, character.id, [fire.id])
        character_manager.associate_items(db, character.id, [ring.id])

        character_manager.delete(db, character.id)

        assert character_manager.get(db, character.id) is None
        tag_manager.delete(db, fire.id)
        item_manager.delete(db, ring.id)


class TestAssociations:
    """Many-to-many attach and detach."""

    def test_associate_dedupes_and_is_idempotent(self, db, race):
        fire, ice = make_tags(db, "Fire", "Ice")

        race_manager.associate_tags(db, race.id, [fire.id, fire.id, ice.id])
        race_manager.associate_tags(db, race.id, [fire.id])

        tags = race_manager.get(db, race.id).tags
        assert sorted(t.name for t in tags) == ["Fire", "Ice"]

    def test_associate_reports_missing_ids(self, db, race):
        fire, = make_tags(db, "Fire")

        with pytest.raises(EntityNotFoundError, match="Tags with ID 98, 99 not found"):
            race_manager.associate_tags(db, race.id, [fire.id, 98, 99])

        assert race_manager.get(db, race.id).tags == []

    def test_associate_missing_owner(self, db):
        with pytest.raises(EntityNotFoundError, match="Race with ID 7 not found"):
            race_manager.associate_skills(db, 7, [1])

    @pytest.mark.parametrize("ids", [[0], [-1], ["2"], "1,2"])
    def test_associate_rejects_bad_ids(self, db, race, ids):
        with pytest.raises(ValidationError):
            race_manager.associate_tags(db, race.id, ids)

    def test_dissociate_ignores_unattached_ids(self, db, archetype):
        skill = skill_manager.create(db, SkillCreate(name="Cleave"))
        archetype_manager.associate_skills(db, archetype.id, [skill.id])

        archetype_manager.dissociate_skills(db, archetype.id, [skill.id, 12345])

        assert archetype_manager.get(db, archetype.id).skills == []

    def test_skill_tags(self, db):
        skill = skill_manager.create(db, SkillCreate(name="Fireball"))
        fire, = make_tags(db, "Fire")

        skill_manager.associate_tags(db, skill.id, [fire.id])

        assert [t.name for t in skill_manager.get(db, skill.id).tags] == ["Fire"]


class TestRaceAndItemRules:
    """Entity-specific validation."""

    def test_race_modifier_update_range(self, db, race):
        updated = race_manager.update(db, race.id, RaceUpdate(health_modifier=-10))
        assert updated.health_modifier == -10

    def test_item_requires_a_type_flag(self, db, sword):
        with pytest.raises(ValidationError, match="at least one type flag"):
            item_manager.update(db, sword.id, ItemUpdate(is_weapon=False))

    def test_item_flag_can_move(self, db, sword):
        updated = item_manager.update(db, sword.id, ItemUpdate(is_weapon=False, is_miscellaneous=True))

        assert updated.is_miscellaneous is True
        assert updated.is_weapon is False


class TestCharacters:
    """Character rules and aggregate stats."""

    def test_created_character_carries_aggregates(self, character):
        assert character.aggregate_health == 110
        assert character.aggregate_stamina == 85
        assert character.aggregate_strength == 17

    def test_equipping_updates_aggregates(self, db, character, sword, ring):
        updated = character_manager.update(
            db, character.id, CharacterUpdate(primary_weapon_id=sword.id, first_ring_id=ring.id)
        )

        assert updated.aggregate_health == 110 + 5 + 4
        assert updated.aggregate_strength == 17 + 3
        assert updated.aggregate_constitution == 16 + 2
        assert updated.aggregate_stamina == 85
        assert updated.aggregate_mana == 50

    def test_unequipping_with_null(self, db, character_payload, sword):
        created = character_manager.create(db, CharacterCreate(primary_weapon_id=sword.id, **character_payload))
        assert created.aggregate_strength == 20

        updated = character_manager.update(db, created.id, CharacterUpdate(primary_weapon_id=None))

        assert updated.primary_weapon_id is None
        assert updated.aggregate_strength == 17

    def test_inventory_items_do_not_add_bonuses(self, db, character, sword):
        character_manager.associate_items(db, character.id, [sword.id])

        fetched = character_manager.get(db, character.id)
        assert [i.name for i in fetched.items] == ["Iron Sword"]
        assert fetched.aggregate_strength == 17

    def test_race_change_is_reflected_on_read(self, db, character, race):
        race_manager.update(db, race.id, RaceUpdate(stamina_modifier=-3))

        assert character_manager.get(db, character.id).aggregate_stamina == 77

    def test_listing_carries_aggregates(self, db, character):
        characters, pagination = character_manager.get_many(db)

        assert pagination.total == 1
        assert characters[0].aggregate_charisma == 14

    def test_name_unique_per_user(self, db, character, character_payload):
        with pytest.raises(BusinessLogicError, match="already exists for this user"):
            character_manager.create(db, CharacterCreate(**character_payload))

        other = user_manager.create(db, UserCreate(name="Other", email="other@example.com", password="another-pass"))
        payload = dict(character_payload, user_id=other.id)
        assert character_manager.create(db, CharacterCreate(**payload)).name == "Thorin"

    @pytest.mark.parametrize("field", ["race_id", "archetype_id", "user_id", "amulet_id"])
    def test_missing_references(self, db, character_payload, field):
        payload = dict(character_payload)
        payload[field] = 999

        with pytest.raises(EntityNotFoundError):
            character_manager.create(db, CharacterCreate(**payload))

    def test_inactive_user_cannot_own_characters(self, db, character_payload, user):
        user_manager.update(db, user.id, UserUpdate(is_active=False))

        with pytest.raises(BusinessLogicError, match="Cannot create character for inactive user"):
            character_manager.create(db, CharacterCreate(**character_payload))

    def test_inactive_user_cannot_receive_characters(self, db, character, user):
        other = user_manager.create(db, UserCreate(name="Idle", email="idle@example.com", password="idle-password"))
        user_manager.update(db, other.id, UserUpdate(is_active=False))

        with pytest.raises(BusinessLogicError, match="Cannot assign character to inactive user"):
            character_manager.update(db, character.id, CharacterUpdate(user_id=other.id))

    def test_base_stats_are_validated(self, db, character_payload):
        values = dict(character_payload, strength=21)
        with pytest.raises(ValidationError, match="between 1 and 20"):
            character_manager.create(db, CharacterCreate.model_construct(**values))

    def test_name_exists_is_scoped_to_user(self, db, character, user):
        assert character_manager.name_exists(db, "Thorin", user_id=user.id)
        assert not character_manager.name_exists(db, "Thorin", user_id=user.id + 1)
        assert not character_manager.name_exists(db, "Thorin", exclude_id=character.id, user_id=user.id)


class TestUsers:
    """Accounts and password verification."""

    def test_password_is_hashed_and_hidden(self, db, user):
        stored = db.query(User).filter(User.id == user.id).one()

        assert stored.password.startswith("$argon2id$")
        assert "password" not in user.model_dump()
        assert user.email == "player@example.com"

    def test_email_uniqueness_is_case_insensitive(self, db, user):
        assert user_manager.email_exists(db, "PLAYER@example.com")

        with pytest.raises(BusinessLogicError):
            user_manager.create(db, UserCreate(name="Copy", email="player@EXAMPLE.com", password="whatever-123"))

    def test_verify_password(self, db, user):
        assert user.last_login_at is None

        verified = user_manager.verify_password(db, "PLAYER@example.com", "secret-password")

        assert verified.id == user.id
        assert verified.last_login_at is not None

    def test_wrong_password(self, db, user):
        assert user_manager.verify_password(db, "player@example.com", "wrong-password") is None

    def test_unknown_email(self, db, user):
        assert user_manager.verify_password(db, "nobody@example.com", "secret-password") is None

    def test_inactive_user_cannot_log_in(self, db, user):
        user_manager.update(db, user.id, UserUpdate(is_active=False))

        assert user_manager.verify_password(db, "player@example.com", "secret-password") is None

    def test_empty_credentials(self, db):
        with pytest.raises(ValidationError):
            user_manager.verify_password(db, "", "secret")

    def test_password_change_rehashes(self, db, user):
        user_manager.update(db, user.id, UserUpdate(password="brand-new-password"))

        assert user_manager.verify_password(db, "player@example.com", "secret-password") is None
        assert user_manager.verify_password(db, "player@example.com", "brand-new-password") is not None

    def test_update_last_login(self, db, user):
        user_manager.update_last_login(db, user.id)

        assert user_manager.get(db, user.id).last_login_at is not None

        with pytest.raises(EntityNotFoundError):
            user_manager.update_last_login(db, 999)


def image_payload(user_id, **overrides):
    values = dict(
        filename="portrait.png",
        size=len(PNG_BYTES),
        width=64,
        height=64,
        mime_type="image/png",
        user_id=user_id,
        data=PNG_BYTES,
    )
    values.update(overrides)
    return ImageCreate(**values)


class TestImages:
    """Image storage rules."""

    def test_store_and_read_back(self, db, user):
        image = image_manager.create(db, image_payload(user.id))

        assert image.size == len(PNG_BYTES)
        assert image_manager.get_buffer(db, image.id) == (PNG_BYTES, "image/png")

    def test_missing_buffer(self, db):
        assert image_manager.get_buffer(db, 42) is None

    @pytest.mark.parametrize(
        "filename,mime_type",
        [("photo.jpg", "image/png"), ("photo.png", "image/jpeg"), ("photo", "image/webp")],
    )
    def test_extension_must_match_mime_type(self, filename, mime_type):
        with pytest.raises(ValidationError):
            check_extension(filename, mime_type)

    def test_jpeg_accepts_both_extensions(self):
        check_extension("a.jpg", "image/jpeg")
        check_extension("b.JPEG", "image/jpeg")

    def test_size_must_match_buffer(self, db, user):
        with pytest.raises(ValidationError, match="Buffer size does not match"):
            image_manager.create(db, image_payload(user.id, size=len(PNG_BYTES) + 1))

    def test_dimensions_are_bounded(self, db, user):
        with pytest.raises(ValidationError):
            image_manager.create(db, image_payload(user.id, width=4096))

    def test_filename_unique_per_user(self, db, user):
        image_manager.create(db, image_payload(user.id))

        with pytest.raises(BusinessLogicError):
            image_manager.create(db, image_payload(user.id))

    def test_inactive_user_cannot_upload(self, db, user):
        user_manager.update(db, user.id, UserUpdate(is_active=False))

        with pytest.raises(BusinessLogicError, match="Cannot upload image for inactive user"):
            image_manager.create(db, image_payload(user.id))

    def test_unknown_user(self, db):
        with pytest.raises(EntityNotFoundError):
            image_manager.create(db, image_payload(31337))

    def test_image_quota(self, db, user, monkeypatch):
        monkeypatch.setattr(settings, "max_images_per_user", 2)
        image_manager.create(db, image_payload(user.id, filename="a.png"))
        image_manager.create(db, image_payload(user.id, filename="b.png"))

        with pytest.raises(BusinessLogicError, match="maximum image limit"):
            image_manager.create(db, image_payload(user.id, filename="c.png"))

    def test_user_images_are_paginated(self, db, user):
        for name in ("c.png", "a.png", "b.png"):
            image_manager.create(db, image_payload(user.id, filename=name))

        images, pagination = image_manager.get_user_images(db, user.id, page=1, page_size=2)

        assert [i.filename for i in images] == ["a.png", "b.png"]
        assert pagination.total == 3
        assert pagination.total_pages == 2

    def test_user_images_of_unknown_user(self, db):
        with pytest.raises(EntityNotFoundError):
            image_manager.get_user_images(db, 5)

    def test_metadata_update_checks_extension(self, db, user):
        image = image_manager.create(db, image_payload(user.id))

        with pytest.raises(ValidationError):
            image_manager.update(db, image.id, ImageUpdate(filename="portrait.jpg"))

        updated = image_manager.update(db, image.id, ImageUpdate(filename="avatar.png", is_public=True))
        assert updated.filename == "avatar.png"
        assert updated.is_public is True

    def test_user_with_images_cannot_be_deleted(self, db, user):
        image_manager.create(db, image_payload(user.id))

        with pytest.raises(BusinessLogicError, match="images: 1"):
            user_manager.delete(db, user.id)
