"""
Base manager for entity CRUD.

Provides paginated listing with search and sort, lookups, generic
create/update/delete with reference checks, and many-to-many association
management. Entity managers subclass it and fill in their rules.
"""
import logging
import math
import re
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import settings
from ..errors import BusinessLogicError, EntityNotFoundError, ValidationError
from ..models import Skill, Tag
from ..schemas import Pagination

logger = logging.getLogger(__name__)


def to_snake(name: str) -> str:
    """Convert a camelCase field name to snake_case."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def validate_id(value: Any, label: str) -> int:
    """Ensure an ID is a positive integer."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{label} must be a positive integer")
    return value


def validate_ids(values: Any, label: str) -> List[int]:
    """Validate a list of IDs and drop duplicates, keeping first occurrence order."""
    if not isinstance(values, (list, tuple)):
        raise ValidationError(f"{label} IDs must be an array")

    unique_ids = []
    for value in values:
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValidationError(f"{label} ID {value} must be a positive integer")
        if value not in unique_ids:
            unique_ids.append(value)
    return unique_ids


def clean_name(value: Any, label: str, max_length: int) -> str:
    """Trim a required name and check it is non-empty and short enough."""
    if not isinstance(value, str):
        raise ValidationError(f"{label} must be a string")

    trimmed = value.strip()
    if not trimmed:
        raise ValidationError(f"{label} cannot be empty")
    if len(trimmed) > max_length:
        raise ValidationError(f"{label} cannot exceed {max_length} characters")
    return trimmed


def clean_text(value: Any, label: str, max_length: Optional[int] = None) -> Optional[str]:
    """Trim optional text; blank strings become None."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{label} must be a string")

    trimmed = value.strip()
    if max_length is not None and len(trimmed) > max_length:
        raise ValidationError(f"{label} cannot exceed {max_length} characters")
    return trimmed or None


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so a search term matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@contextmanager
def atomic(db: Session):
    """Run a check-then-write sequence as one transaction, rolling back on failure."""
    try:
        yield
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Integrity error rolled back: {e.orig}")
        raise BusinessLogicError("Operation conflicts with existing data") from e
    except Exception:
        db.rollback()
        raise


class BaseManager:
    """Shared CRUD behaviour for one entity model."""

    model = None
    response_model = None
    entity_name = "Entity"
    unique_field = "name"
    name_max_length = 50
    description_max_length: Optional[int] = 500
    default_order = "name"
    searchable_fields: Tuple[str, ...] = ("name",)
    hidden_fields: Tuple[str, ...] = ()

    # Listing

    def query_options(self) -> list:
        """Loader options applied to every fetch."""
        return []

    def get_many(
        self,
        db: Session,
        page: int = 1,
        page_size: Optional[int] = None,
        search: Optional[Dict[str, str]] = None,
        order_by: Optional[str] = None,
        direction: str = "asc",
        filters: Optional[Dict[str, Any]] = None,
    ) -> Tuple[List[Any], Pagination]:
        """
        Get a page of entities with optional search and ordering.

        Args:
            db: Database session
            page: 1-based page number
            page_size: Records per page (1-100)
            search: Mapping of field name to substring (case-insensitive)
            order_by: Field to sort by (default: name)
            direction: "asc" or "desc"
            filters: Exact-match column filters

        Returns:
            Tuple of response models and pagination info
        """
        if page_size is None:
            page_size = settings.default_page_size

        if not isinstance(page, int) or page < 1:
            raise ValidationError("Page number must be greater than 0")
        if not isinstance(page_size, int) or page_size < 1 or page_size > settings.max_page_size:
            raise ValidationError(f"Page size must be between 1 and {settings.max_page_size}")
        if direction not in ("asc", "desc"):
            raise ValidationError("Sort direction must be 'asc' or 'desc'")

        query = db.query(self.model)

        for field, value in (filters or {}).items():
            query = query.filter(self._column(field) == value)

        for field, value in (search or {}).items():
            field = to_snake(field)
            if field not in self.searchable_fields:
                raise ValidationError(f"Cannot search {self.entity_name.lower()}s by '{field}'")
            query = query.filter(self._column(field).ilike(f"%{escape_like(value)}%", escape="\\"))

        total = query.count()

        sort_column = self._column(to_snake(order_by or self.default_order))
        sort_clause = sort_column.desc() if direction == "desc" else sort_column.asc()

        entities = (
            query.options(*self.query_options())
            .order_by(sort_clause, self.model.id.asc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )

        pagination = Pagination(
            page=page,
            page_size=page_size,
            total=total,
            total_pages=math.ceil(total / page_size),
        )
        return [self.to_response(entity) for entity in entities], pagination

    def _column(self, field: str):
        """Resolve a sortable/filterable column or raise ValidationError."""
        columns = self.model.__table__.columns
        if field not in columns or field in self.hidden_fields:
            raise ValidationError(f"Unknown {self.entity_name.lower()} field '{field}'")
        return columns[field]

    # Lookups

    def to_response(self, entity):
        """Convert an ORM entity into its API representation."""
        return self.response_model.model_validate(entity)

    def _fetch(self, db: Session, entity_id: int):
        return (
            db.query(self.model)
            .options(*self.query_options())
            .filter(self.model.id == entity_id)
            .first()
        )

    def _get_or_raise(self, db: Session, entity_id: int):
        entity = self._fetch(db, entity_id)
        if entity is None:
            raise EntityNotFoundError(self.entity_name, entity_id)
        return entity

    def get(self, db: Session, entity_id: int):
        """Get an entity by ID, or None if it does not exist."""
        validate_id(entity_id, f"{self.entity_name} ID")
        entity = self._fetch(db, entity_id)
        return self.to_response(entity) if entity is not None else None

    def name_exists(self, db: Session, name: str, exclude_id: Optional[int] = None) -> bool:
        """Check whether another entity already uses this unique value."""
        value = clean_name(name, f"{self.entity_name} {self.unique_field}", 255)
        if exclude_id is not None:
            validate_id(exclude_id, "Exclude ID")

        column = getattr(self.model, self.unique_field)
        query = db.query(self.model.id).filter(column == value)
        if exclude_id is not None:
            query = query.filter(self.model.id != exclude_id)
        return query.first() is not None

    # Mutations

    def prepare(self, db: Session, values: Dict[str, Any], existing=None) -> Dict[str, Any]:
        """
        Validate and normalise incoming field values.

        Subclasses extend this for entity-specific rules. ``existing`` is the
        entity being updated, or None on create.
        """
        if "name" in values:
            values["name"] = clean_name(values["name"], f"{self.entity_name} name", self.name_max_length)
        if "description" in values:
            values["description"] = clean_text(
                values["description"], f"{self.entity_name} description", self.description_max_length
            )
        return values

    def check_unique(self, db: Session, values: Dict[str, Any], exclude_id: Optional[int] = None):
        value = values.get(self.unique_field)
        if value is None:
            return
        if self.name_exists(db, value, exclude_id):
            logger.warning(f"Rejected duplicate {self.entity_name.lower()} {self.unique_field} '{value}'")
            raise BusinessLogicError(
                f'{self.entity_name} with {self.unique_field} "{value}" already exists'
            )

    def create(self, db: Session, data):
        """Create an entity from a create payload."""
        values = dict(data.model_dump())

        with atomic(db):
            values = self.prepare(db, values)
            self.check_unique(db, values)
            entity = self.model(**values)
            db.add(entity)
            db.flush()
            entity_id = entity.id

        logger.info(f"Created {self.entity_name.lower()} {entity_id}")
        return self.to_response(self._fetch(db, entity_id))

    def update(self, db: Session, entity_id: int, data):
        """
        Apply a partial update.

        Returns:
            Updated entity or None if not found
        """
        validate_id(entity_id, f"{self.entity_name} ID")
        values = dict(data.model_dump(exclude_unset=True))

        with atomic(db):
            entity = self._fetch(db, entity_id)
            if entity is None:
                return None

            values = self.prepare(db, values, existing=entity)
            self.check_unique(db, values, exclude_id=entity_id)

            for field, value in values.items():
                setattr(entity, field, value)

        logger.info(f"Updated {self.entity_name.lower()} {entity_id}")
        return self.to_response(self._fetch(db, entity_id))

    def reference_counts(self, db: Session, entity) -> Dict[str, int]:
        """Count references that block deletion; empty when nothing blocks."""
        return {}

    def deletion_blocked_message(self, entity, counts: Dict[str, int]) -> str:
        total = sum(counts.values())
        return f'Cannot delete {self.entity_name.lower()} "{entity.name}" as it is being used by {total} other entities'

    def delete(self, db: Session, entity_id: int) -> None:
        """Delete an entity unless other records still reference it."""
        validate_id(entity_id, f"{self.entity_name} ID")

        with atomic(db):
            entity = self._get_or_raise(db, entity_id)

            counts = self.reference_counts(db, entity)
            if sum(counts.values()) > 0:
                message = self.deletion_blocked_message(entity, counts)
                logger.warning(message)
                raise BusinessLogicError(message)

            db.delete(entity)

        logger.info(f"Deleted {self.entity_name.lower()} {entity_id}")

    # Associations

    def _associate(self, db: Session, owner_id: int, relation: str, target_model, ids: Iterable[int], label: str):
        validate_id(owner_id, f"{self.entity_name} ID")
        unique_ids = validate_ids(ids, label)

        with atomic(db):
            owner = self._get_or_raise(db, owner_id)

            targets = db.query(target_model).filter(target_model.id.in_(unique_ids)).all()
            found_ids = {target.id for target in targets}
            missing_ids = [target_id for target_id in unique_ids if target_id not in found_ids]
            if missing_ids:
                raise EntityNotFoundError(f"{label}s", ", ".join(str(i) for i in missing_ids))

            collection = getattr(owner, relation)
            for target in targets:
                if target not in collection:
                    collection.append(target)

        logger.info(f"Associated {label.lower()}s {unique_ids} with {self.entity_name.lower()} {owner_id}")

    def _dissociate(self, db: Session, owner_id: int, relation: str, ids: Iterable[int], label: str):
        validate_id(owner_id, f"{self.entity_name} ID")
        unique_ids = validate_ids(ids, label)

        with atomic(db):
            owner = self._get_or_raise(db, owner_id)

            collection = getattr(owner, relation)
            for target in [t for t in collection if t.id in unique_ids]:
                collection.remove(target)

        logger.info(f"Dissociated {label.lower()}s {unique_ids} from {self.entity_name.lower()} {owner_id}")


class TaggableMixin:
    """Tag association management."""

    def associate_tags(self, db: Session, entity_id: int, tag_ids: List[int]) -> None:
        self._associate(db, entity_id, "tags", Tag, tag_ids, "Tag")

    def dissociate_tags(self, db: Session, entity_id: int, tag_ids: List[int]) -> None:
        self._dissociate(db, entity_id, "tags", tag_ids, "Tag")


class SkilledMixin:
    """Skill association management."""

    def associate_skills(self, db: Session, entity_id: int, skill_ids: List[int]) -> None:
        self._associate(db, entity_id, "skills", Skill, skill_ids, "Skill")

    def dissociate_skills(self, db: Session, entity_id: int, skill_ids: List[int]) -> None:
        self._dissociate(db, entity_id, "skills", skill_ids, "Skill")
