from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime, date, timezone, tzinfo
from typing import Optional, List, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


MealType = Literal["breakfast", "lunch", "dinner", "snack"]
MealPeriod = Literal["today", "week", "month", "all"]


def _none_to_list(value):
    return [] if value is None else value


def _whole_score(value):
    """Round a stored score to an int; unreadable values become None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return None


class CheckIn(BaseModel):
    """Daily self-report. One per user per calendar day."""
    id: Optional[str] = None
    user_id: Optional[str] = None
    check_in_date: date
    energy: Optional[int] = None
    gut: Optional[int] = None
    mood: Optional[int] = None
    symptoms: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, frozen=True)

    @field_validator("symptoms", mode="before")
    @classmethod
    def symptoms_default(cls, value):
        return _none_to_list(value)

    @field_validator("energy", "gut", "mood", mode="before")
    @classmethod
    def score_as_int(cls, value):
        return _whole_score(value)


class Meal(BaseModel):
    id: Optional[str] = None
    user_id: Optional[str] = None
    meal_type: str = "snack"
    description: str = ""
    photo_url: Optional[str] = None
    calories: Optional[float] = None
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None
    fiber: Optional[float] = None
    sugar: Optional[float] = None
    gut_score: Optional[float] = None
    ai_analysis: Optional[str] = None
    ai_tips: List[str] = Field(default_factory=list)
    logged_at: datetime

    model_config = ConfigDict(from_attributes=True, frozen=True)

    @field_validator("ai_tips", mode="before")
    @classmethod
    def tips_default(cls, value):
        return _none_to_list(value)

    @field_validator("description", mode="before")
    @classmethod
    def description_default(cls, value):
        return value or ""


class Supplement(BaseModel):
    id: Optional[str] = None
    user_id: Optional[str] = None
    name: str
    dosage: Optional[str] = None
    time_of_day: Optional[str] = None
    best_time: Optional[str] = None
    notes: Optional[str] = None
    active: bool = True

    model_config = ConfigDict(from_attributes=True, frozen=True)


class Profile(BaseModel):
    """Subset of the backend profile row the API reads or writes."""
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    health_conditions: Optional[List[str]] = None
    food_sensitivities: Optional[List[str]] = None
    streak_count: int = 0
    longest_streak: int = 0
    last_check_in: Optional[date] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("streak_count", "longest_streak", mode="before")
    @classmethod
    def zero_if_null(cls, value):
        return 0 if value is None else value


class UserContext(BaseModel):
    """
    The authenticated caller, passed explicitly to every derivation that
    needs identity or local time.
    """
    user_id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    timezone: str = "UTC"
    access_token: Optional[str] = Field(default=None, repr=False)

    model_config = ConfigDict(frozen=True)

    def local_tz(self) -> tzinfo:
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            return timezone.utc


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class InsightsSnapshot(BaseModel):
    """Records already fetched by the caller, computed without the backend."""
    check_ins: List[CheckIn] = Field(default_factory=list)
    meals: List[Meal] = Field(default_factory=list)
    supplements: List[Supplement] = Field(default_factory=list)
    now: Optional[datetime] = None
    top_symptom_limit: Optional[int] = Field(default=None, ge=1, le=12)


class CheckInCreate(BaseModel):
    check_in_date: Optional[date] = None
    energy: int = Field(ge=1, le=10)
    gut: int = Field(ge=1, le=10)
    mood: int = Field(ge=1, le=10)
    symptoms: List[str] = Field(default_factory=list)
    notes: Optional[str] = None


class MealCreate(BaseModel):
    meal_type: MealType
    description: str = Field(min_length=1)
    photo_url: Optional[str] = None
    calories: Optional[float] = Field(default=None, ge=0)
    protein: Optional[float] = Field(default=None, ge=0)
    carbs: Optional[float] = Field(default=None, ge=0)
    fat: Optional[float] = Field(default=None, ge=0)
    fiber: Optional[float] = Field(default=None, ge=0)
    sugar: Optional[float] = Field(default=None, ge=0)
    gut_score: Optional[float] = Field(default=None, ge=0, le=10)
    ai_analysis: Optional[str] = None
    ai_tips: List[str] = Field(default_factory=list)
    logged_at: Optional[datetime] = None


class MealAnalysisRequest(BaseModel):
    description: str = Field(min_length=1)
    meal_type: MealType = "snack"
    photo_base64: Optional[str] = None


class CoachMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class CoachPromptRequest(BaseModel):
    message: str = Field(min_length=1)
    history: List[CoachMessage] = Field(default_factory=list)


class SupplementCreate(BaseModel):
    name: str = Field(min_length=1)
    dosage: Optional[str] = None
    time_of_day: Optional[str] = None
    best_time: Optional[str] = None
    notes: Optional[str] = None


class SupplementUpdate(BaseModel):
    """Partial update; only the fields sent are written."""
    name: Optional[str] = Field(default=None, min_length=1)
    dosage: Optional[str] = None
    time_of_day: Optional[str] = None
    best_time: Optional[str] = None
    notes: Optional[str] = None
    active: Optional[bool] = None
