"""
Coach API Router

Context for the AI health coach. The chat call itself is made by the
client against the AI service; this router only supplies what to send.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from core.auth import get_user_context
from core.backend import BackendClient, get_backend
from core.config import settings
from schemas import CoachPromptRequest, UserContext
from services.coach_context import build_coach_context, build_conversation_prompt
from services.insight_window import window_bounds

router = APIRouter(prefix="/v1/coach", tags=["Coach"])


def _context_for(user: UserContext, backend: BackendClient):
    now = datetime.now(timezone.utc)
    start, end, start_at = window_bounds(now, settings.INSIGHTS_WINDOW_DAYS, user.local_tz())
    return build_coach_context(
        backend.fetch_check_ins(user, start, end),
        backend.fetch_meals(user, start_at, now),
        backend.fetch_supplements(user),
        now,
        profile=backend.fetch_profile(user),
        user=user,
    )


@router.get("/context")
def get_context(
    user: UserContext = Depends(get_user_context),
    backend: BackendClient = Depends(get_backend),
):
    return _context_for(user, backend).to_dict()


@router.post("/prompt")
def build_prompt(
    request: CoachPromptRequest,
    user: UserContext = Depends(get_user_context),
    backend: BackendClient = Depends(get_backend),
):
    """System prompt plus the next-turn prompt for a chat message."""
    context = _context_for(user, backend)
    history = [m.model_dump() for m in request.history]
    return {
        "system_prompt": context.system_prompt(),
        "prompt": build_conversation_prompt(history, request.message),
    }
