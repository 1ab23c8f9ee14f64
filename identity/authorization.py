"""
Ownership rules for book mutations.

Reads and creation are not gated; update and delete require the caller to
own the record.
"""

from typing import Protocol

from utilities.exceptions import ForbiddenError


class OwnedRecord(Protocol):
    """Anything carrying the id of the user who created it."""

    owner_id: str


def can_mutate(authenticated_user_id: str, record: OwnedRecord) -> bool:
    """Whether the user may update or delete the record."""
    return record.owner_id == authenticated_user_id


def authorize_mutation(authenticated_user_id: str, record: OwnedRecord) -> None:
    """
    Raises:
        ForbiddenError: The user does not own the record
    """
    if not can_mutate(authenticated_user_id, record):
        raise ForbiddenError()
