"""
Check-ins API Router

One check-in per user per calendar day. Saving again on the same day
replaces that day's check-in; only a new check-in for today moves the
streak.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from core.auth import get_user_context
from core.backend import BackendClient, get_backend
from core.config import settings
from core.exceptions import ValidationError
from core.logging import log_fields
from schemas import CheckInCreate, UserContext
from services.check_in_streak import next_streak
from services.insight_window import to_local

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/check-ins", tags=["Check-ins"])


@router.post("", status_code=status.HTTP_201_CREATED)
def save_check_in(
    check_in: CheckInCreate,
    user: UserContext = Depends(get_user_context),
    backend: BackendClient = Depends(get_backend),
):
    """
    Create or update a daily check-in.

    If a check-in already exists for the date it is replaced and the
    streak is left alone.
    """
    today = to_local(datetime.now(timezone.utc), user.local_tz()).date()
    day = check_in.check_in_date or today
    if day > today:
        raise ValidationError("Check-in date cannot be in the future", field="check_in_date")

    existing = backend.fetch_check_ins(user, day, day)
    saved = backend.save_check_in(user, {
        "check_in_date": day.isoformat(),
        "energy": check_in.energy,
        "gut": check_in.gut,
        "mood": check_in.mood,
        "symptoms": list(check_in.symptoms),
        "notes": (check_in.notes or "").strip() or None,
    })

    streak = None
    if not existing and day == today:
        profile = backend.fetch_profile(user)
        streak = next_streak(
            today,
            profile.last_check_in if profile else None,
            profile.streak_count if profile else 0,
            profile.longest_streak if profile else 0,
        )
        backend.update_profile(user, streak.profile_updates())
        logger.info(
            f"Check-in streak updated to {streak.streak_count}",
            extra=log_fields(user_id=user.user_id, streak=streak.streak_count),
        )

    return {
        "check_in": saved.model_dump(mode="json"),
        "created": not existing,
        "streak": streak.to_dict() if streak else None,
    }


@router.get("")
def list_check_ins(
    start: Optional[date] = Query(default=None),
    end: Optional[date] = Query(default=None),
    user: UserContext = Depends(get_user_context),
    backend: BackendClient = Depends(get_backend),
):
    """Check-ins in [start, end], newest first. Defaults to the insights window."""
    end = end or to_local(datetime.now(timezone.utc), user.local_tz()).date()
    start = start or end - timedelta(days=settings.INSIGHTS_WINDOW_DAYS - 1)
    if start > end:
        raise ValidationError("start must not be after end", field="start")

    check_ins = backend.fetch_check_ins(user, start, end)
    return [c.model_dump(mode="json") for c in check_ins]
