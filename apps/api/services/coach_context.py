"""
Coach Context Builder

Assembles the plain-text block describing a user's recent data that the
AI health coach receives as part of its system prompt, plus the prompt
itself and the rolling conversation prompt.

Pure: the chat call itself happens elsewhere.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from schemas import Profile, UserContext
from services.checkin_trends import (
    classify_trend,
    compute_averages,
    recent_check_ins,
    top_symptoms,
)
from services.gut_reference import symptom_label
from services.insight_window import build_window, to_local


RECENT_MEALS_IN_CONTEXT = 5
SYMPTOMS_IN_CONTEXT = 3
CONVERSATION_TURNS = 6

COACH_GUIDELINES = [
    "Be warm, supportive, and encouraging",
    "Give specific, actionable advice based on their data",
    "Reference their actual meals, symptoms, and patterns when relevant",
    'Explain the "why" behind recommendations',
    "Keep responses concise but helpful (2-4 paragraphs max)",
    "If they ask about something not in their data, give general gut health advice",
    "Use emojis occasionally to be friendly",
    "Never diagnose medical conditions - recommend seeing a doctor for serious concerns",
    "Focus on gut health, nutrition, supplements, and lifestyle factors",
]


@dataclass
class CoachContext:
    lines: List[str] = field(default_factory=list)
    greeting: str = ""

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    def system_prompt(self) -> str:
        guidelines = "\n".join(f"- {g}" for g in COACH_GUIDELINES)
        return (
            "You are a friendly, knowledgeable gut health AI assistant called GutSync AI. "
            "You help users understand their digestive health, food choices, and overall wellness.\n\n"
            f"USER'S HEALTH DATA:\n{self.text}\n\n"
            f"GUIDELINES:\n{guidelines}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "context": self.text,
            "lines": list(self.lines),
            "greeting": self.greeting,
            "system_prompt": self.system_prompt(),
        }


def _first_name(profile: Optional[Profile], user: Optional[UserContext]) -> str:
    name = (profile.name if profile else None) or (user.display_name if user else None)
    if name and name.split():
        return name.split()[0]
    return "there"


def _join(values: Any) -> str:
    if isinstance(values, (list, tuple)):
        return ", ".join(str(v) for v in values)
    return str(values)


def _score(value: Any) -> str:
    return "N/A" if value is None else f"{value:g}"


def _avg(value: Optional[float]) -> str:
    return "N/A" if value is None else f"{value:.1f}"


def build_coach_context(
    check_ins: Sequence[Any],
    meals: Sequence[Any],
    supplements: Sequence[Any],
    now: datetime,
    profile: Optional[Profile] = None,
    user: Optional[UserContext] = None,
) -> CoachContext:
    tz = user.local_tz() if user else None
    window = build_window(check_ins, meals, supplements, tz)
    today = to_local(now, tz).date()
    lines: List[str] = []

    if profile is not None:
        if profile.name:
            lines.append(f"User's name: {profile.name}")
        if profile.health_conditions:
            lines.append(f"Health conditions: {_join(profile.health_conditions)}")
        if profile.food_sensitivities:
            lines.append(f"Food sensitivities: {_join(profile.food_sensitivities)}")

    if window.check_ins:
        latest = window.check_ins[-1]
        lines.append(
            f"Most recent check-in: Gut {_score(latest.gut)}/10, "
            f"Energy {_score(latest.energy)}/10, Mood {_score(latest.mood)}/10"
        )
        if latest.symptoms:
            labels = [symptom_label(s) for s in sorted(latest.symptoms)]
            lines.append(f"Current symptoms: {', '.join(labels)}")

        week = recent_check_ins(window.check_ins, today)
        if week:
            averages = compute_averages(week)
            lines.append(
                f"7-day averages: Gut {_avg(averages.gut)}/10, "
                f"Energy {_avg(averages.energy)}/10, Mood {_avg(averages.mood)}/10"
            )

    if meals:
        recent = sorted(
            (m for m in meals if getattr(m, "logged_at", None)),
            key=lambda m: to_local(m.logged_at, tz),
            reverse=True,
        )[:RECENT_MEALS_IN_CONTEXT]
        if recent:
            described = [
                f"{m.meal_type}: {m.description} (gut score: {_score(m.gut_score)})"
                for m in recent
            ]
            lines.append(f"Recent meals: {'; '.join(described)}")

    active = [s.name for s in supplements if getattr(s, "active", True)]
    if active:
        lines.append(f"Current supplements: {', '.join(active)}")

    if window.check_ins:
        common = top_symptoms(window.check_ins, SYMPTOMS_IN_CONTEXT)
        if common:
            lines.append(
                "Common symptoms this week: "
                + ", ".join(f"{s.label} ({s.count}x)" for s in common)
            )
        lines.append(f"Gut trend: {classify_trend(window.check_ins).value}")

    greeting = (
        f"Hey {_first_name(profile, user)}! 💚 I'm your personal Health Coach.\n\n"
        "I can see your meals, check-ins, and supplements, so my advice is personalized to YOU."
    )
    return CoachContext(lines=lines, greeting=greeting)


def build_conversation_prompt(history: Sequence[Dict[str, str]], new_message: str) -> str:
    """
    Prompt for the next turn: the last few exchanged messages followed by
    the new question. History items are {"role": "user"|"assistant", "content"}.
    """
    recent = [
        f"{'User' if m.get('role') == 'user' else 'Assistant'}: {m.get('content', '')}"
        for m in list(history)[-CONVERSATION_TURNS:]
    ]
    if not recent:
        return new_message
    return "Previous conversation:\n" + "\n\n".join(recent) + f"\n\nUser's new question: {new_message}"
