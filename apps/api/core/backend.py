"""
Backend client.

Thin wrapper over the hosted backend's REST surface (PostgREST tables and
the auth user endpoint). Every call runs with the caller's access token so
the backend's row-level security applies.

Connection errors and 5xx responses are retried with exponential backoff;
anything else raises BackendError immediately.
"""
import logging
import time
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Type, TypeVar

import requests
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from core.config import settings
from core.logging import log_fields
from schemas import CheckIn, Meal, Profile, Supplement, UserContext

logger = logging.getLogger(__name__)

Record = TypeVar("Record", bound=BaseModel)


class BackendError(Exception):
    """A backend call failed. status_code is None when no response arrived."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BackendClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        anon_key: Optional[str] = None,
        timeout: Optional[float] = None,
        retry_attempts: Optional[int] = None,
        backoff_s: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or settings.SUPABASE_URL).rstrip("/")
        self.anon_key = settings.SUPABASE_ANON_KEY if anon_key is None else anon_key
        self.timeout = timeout or settings.EXTERNAL_API_TIMEOUT
        self.retry_attempts = retry_attempts or settings.EXTERNAL_API_RETRY_ATTEMPTS
        self.backoff_s = settings.EXTERNAL_API_BACKOFF_S if backoff_s is None else backoff_s
        self.session = session or requests.Session()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _headers(self, access_token: Optional[str], prefer: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {access_token or self.anon_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _request(
        self,
        method: str,
        path: str,
        access_token: Optional[str],
        params: Any = None,
        json: Any = None,
        prefer: Optional[str] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        headers = self._headers(access_token, prefer)
        last_error = "no attempt made"

        for attempt in range(self.retry_attempts):
            try:
                r = self.session.request(
                    method, url, params=params, json=json, headers=headers, timeout=self.timeout
                )
            except requests.exceptions.RequestException as e:
                last_error = str(e)
                logger.warning(
                    f"Backend {method} {path} failed (attempt {attempt + 1}/{self.retry_attempts}): {e}"
                )
            else:
                if r.status_code < 500:
                    return self._handle_response(r, method, path)
                last_error = f"HTTP {r.status_code}"
                logger.warning(
                    f"Backend {method} {path} returned {r.status_code} "
                    f"(attempt {attempt + 1}/{self.retry_attempts})"
                )

            if attempt < self.retry_attempts - 1:
                time.sleep(self.backoff_s * (2 ** attempt))

        raise BackendError(f"Backend unavailable: {last_error}")

    @staticmethod
    def _handle_response(r: requests.Response, method: str, path: str) -> Any:
        if not r.ok:
            try:
                payload = r.json()
                message = payload.get("message") or payload.get("msg") or payload.get("error") or r.text
            except ValueError:
                message = r.text
            logger.info(f"Backend {method} {path} rejected with {r.status_code}: {message}")
            raise BackendError(str(message), status_code=r.status_code)
        if not r.content:
            return None
        try:
            return r.json()
        except ValueError:
            raise BackendError(f"Invalid JSON from backend for {method} {path}", status_code=r.status_code)

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def fetch_user(self, access_token: str) -> Dict[str, Any]:
        """Resolve an access token to the backend's user record."""
        data = self._request("GET", "/auth/v1/user", access_token)
        if not isinstance(data, dict) or not data.get("id"):
            raise BackendError("Backend returned no user", status_code=401)
        return data

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_rows(model: Type[Record], rows: Any, table: str) -> List[Record]:
        """Validate rows one by one; a row that cannot be read is logged and skipped."""
        records: List[Record] = []
        for row in rows or []:
            try:
                records.append(model.model_validate(row))
            except PydanticValidationError as e:
                row_id = row.get("id") if isinstance(row, dict) else None
                logger.warning(
                    f"Skipping unreadable {table} row {row_id}: {e.error_count()} error(s)",
                    extra=log_fields(table=table, row_id=row_id),
                )
        return records

    def fetch_check_ins(self, user: UserContext, start: date, end: date) -> List[CheckIn]:
        params = [
            ("select", "*"),
            ("user_id", f"eq.{user.user_id}"),
            ("check_in_date", f"gte.{start.isoformat()}"),
            ("check_in_date", f"lte.{end.isoformat()}"),
            ("order", "check_in_date.desc"),
        ]
        rows = self._request("GET", "/rest/v1/check_ins", user.access_token, params=params)
        return self._parse_rows(CheckIn, rows, "check_ins")

    def list_meals(
        self,
        user: UserContext,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Meal]:
        """Meals newest first, optionally bounded on logged_at."""
        params = [
            ("select", "*"),
            ("user_id", f"eq.{user.user_id}"),
        ]
        if start is not None:
            params.append(("logged_at", f"gte.{start.isoformat()}"))
        if end is not None:
            params.append(("logged_at", f"lte.{end.isoformat()}"))
        params.append(("order", "logged_at.desc"))
        rows = self._request("GET", "/rest/v1/meals", user.access_token, params=params)
        return self._parse_rows(Meal, rows, "meals")

    def fetch_meals(self, user: UserContext, start: datetime, end: datetime) -> List[Meal]:
        return self.list_meals(user, start, end)

    def fetch_supplements(self, user: UserContext, active_only: bool = False) -> List[Supplement]:
        params = [
            ("select", "*"),
            ("user_id", f"eq.{user.user_id}"),
        ]
        if active_only:
            params.append(("active", "eq.true"))
        params.append(("order", "created_at.asc"))
        rows = self._request("GET", "/rest/v1/supplements", user.access_token, params=params)
        return self._parse_rows(Supplement, rows, "supplements")

    def fetch_profile(self, user: UserContext) -> Optional[Profile]:
        params = [("select", "*"), ("id", f"eq.{user.user_id}")]
        rows = self._request("GET", "/rest/v1/profiles", user.access_token, params=params) or []
        return Profile.model_validate(rows[0]) if rows else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save_check_in(self, user: UserContext, payload: Dict[str, Any]) -> CheckIn:
        """Insert or replace the user's check-in for payload['check_in_date']."""
        body = {**payload, "user_id": user.user_id}
        rows = self._request(
            "POST",
            "/rest/v1/check_ins",
            user.access_token,
            params={"on_conflict": "user_id,check_in_date"},
            json=body,
            prefer="resolution=merge-duplicates,return=representation",
        )
        if not rows:
            raise BackendError("Backend returned no check-in after save")
        return CheckIn.model_validate(rows[0])

    def update_profile(self, user: UserContext, updates: Dict[str, Any]) -> Optional[Profile]:
        rows = self._request(
            "PATCH",
            "/rest/v1/profiles",
            user.access_token,
            params={"id": f"eq.{user.user_id}"},
            json=updates,
            prefer="return=representation",
        )
        return Profile.model_validate(rows[0]) if rows else None

    def add_meal(self, user: UserContext, payload: Dict[str, Any]) -> Meal:
        body = {**payload, "user_id": user.user_id}
        rows = self._request(
            "POST",
            "/rest/v1/meals",
            user.access_token,
            json=body,
            prefer="return=representation",
        )
        if not rows:
            raise BackendError("Backend returned no meal after insert")
        return Meal.model_validate(rows[0])

    def delete_meal(self, user: UserContext, meal_id: str) -> bool:
        """True when a meal was deleted, False when none matched."""
        rows = self._request(
            "DELETE",
            "/rest/v1/meals",
            user.access_token,
            params={"id": f"eq.{meal_id}", "user_id": f"eq.{user.user_id}"},
            prefer="return=representation",
        )
        return bool(rows)

    def add_supplement(self, user: UserContext, payload: Dict[str, Any]) -> Supplement:
        body = {**payload, "user_id": user.user_id, "active": True}
        rows = self._request(
            "POST",
            "/rest/v1/supplements",
            user.access_token,
            json=body,
            prefer="return=representation",
        )
        if not rows:
            raise BackendError("Backend returned no supplement after insert")
        return Supplement.model_validate(rows[0])

    def update_supplement(
        self, user: UserContext, supplement_id: str, updates: Dict[str, Any]
    ) -> Optional[Supplement]:
        """The updated supplement, or None when none matched."""
        rows = self._request(
            "PATCH",
            "/rest/v1/supplements",
            user.access_token,
            params={"id": f"eq.{supplement_id}", "user_id": f"eq.{user.user_id}"},
            json=updates,
            prefer="return=representation",
        )
        return Supplement.model_validate(rows[0]) if rows else None

    def deactivate_supplement(self, user: UserContext, supplement_id: str) -> Optional[Supplement]:
        """Soft delete: the row stays, marked inactive, so history still reads it."""
        return self.update_supplement(user, supplement_id, {"active": False})


_backend: Optional[BackendClient] = None


def get_backend() -> BackendClient:
    """Shared client (FastAPI dependency). Tests override it."""
    global _backend
    if _backend is None:
        _backend = BackendClient()
    return _backend
