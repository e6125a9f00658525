"""Engine-level exceptions."""

from __future__ import annotations

from typing import Optional


class OwnershipViolation(PermissionError):
    """An operation targeted an entity that the given owner does not own."""

    def __init__(self, entity: str, entity_id: Optional[int], owner_id: int) -> None:
        self.entity = entity
        self.entity_id = entity_id
        self.owner_id = owner_id
        super().__init__(f"{entity} {entity_id} does not belong to user {owner_id}")
