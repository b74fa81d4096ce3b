"""
Domain exceptions raised by the managers.

The HTTP layer maps each kind to a status code:
ValidationError -> 400, EntityNotFoundError -> 404, BusinessLogicError -> 409.
"""
from typing import Any


class TabletopError(Exception):
    """Base exception for all domain errors."""
    
    status_code = 500
    
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TabletopError):
    """Malformed or out-of-range input."""
    
    status_code = 400


class EntityNotFoundError(TabletopError):
    """A requested or referenced entity does not exist."""
    
    status_code = 404
    
    def __init__(self, entity_name: str, entity_id: Any):
        super().__init__(f"{entity_name} with ID {entity_id} not found")
        self.entity_name = entity_name
        self.entity_id = entity_id


class BusinessLogicError(TabletopError):
    """A business rule was violated (duplicates, live references, inactive users)."""
    
    status_code = 409
