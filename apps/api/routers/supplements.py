"""
Supplements API Router

The supplement cabinet. Removing a supplement only marks it inactive; the
row stays so older insights that mention it still read correctly.
"""

import logging

from fastapi import APIRouter, Depends, Query, status

from core.auth import get_user_context
from core.backend import BackendClient, get_backend
from core.exceptions import NotFoundError, ValidationError
from core.logging import log_fields
from schemas import SupplementCreate, SupplementUpdate, UserContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/supplements", tags=["Supplements"])


def _clean_text(values: dict) -> dict:
    cleaned = {}
    for key, value in values.items():
        cleaned[key] = (value.strip() or None) if isinstance(value, str) else value
    return cleaned


@router.get("")
def list_supplements(
    include_inactive: bool = Query(default=False),
    user: UserContext = Depends(get_user_context),
    backend: BackendClient = Depends(get_backend),
):
    supplements = backend.fetch_supplements(user, active_only=not include_inactive)
    return [s.model_dump(mode="json") for s in supplements]


@router.post("", status_code=status.HTTP_201_CREATED)
def add_supplement(
    supplement: SupplementCreate,
    user: UserContext = Depends(get_user_context),
    backend: BackendClient = Depends(get_backend),
):
    payload = _clean_text(supplement.model_dump(exclude_none=True))
    if not payload.get("name"):
        raise ValidationError("Supplement name is required", field="name")

    saved = backend.add_supplement(user, {k: v for k, v in payload.items() if v is not None})
    logger.info(
        f"Supplement added: {saved.name}",
        extra=log_fields(user_id=user.user_id, supplement_id=saved.id),
    )
    return saved.model_dump(mode="json")


@router.patch("/{supplement_id}")
def update_supplement(
    supplement_id: str,
    updates: SupplementUpdate,
    user: UserContext = Depends(get_user_context),
    backend: BackendClient = Depends(get_backend),
):
    """Write only the fields sent. Sending an empty string clears a text field."""
    changes = _clean_text(updates.model_dump(exclude_unset=True))
    if not changes:
        raise ValidationError("No fields to update")
    if "name" in changes and not changes["name"]:
        raise ValidationError("Supplement name cannot be empty", field="name")

    saved = backend.update_supplement(user, supplement_id, changes)
    if saved is None:
        raise NotFoundError("Supplement", supplement_id)
    return saved.model_dump(mode="json")


@router.delete("/{supplement_id}")
def remove_supplement(
    supplement_id: str,
    user: UserContext = Depends(get_user_context),
    backend: BackendClient = Depends(get_backend),
):
    if backend.deactivate_supplement(user, supplement_id) is None:
        raise NotFoundError("Supplement", supplement_id)
    logger.info(
        "Supplement deactivated",
        extra=log_fields(user_id=user.user_id, supplement_id=supplement_id),
    )
    return {"deleted": True, "id": supplement_id}
