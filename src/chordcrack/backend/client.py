from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..settings import Settings
from .errors import BackendError, InvalidResponse, NotAuthenticated, TransientBackendError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


@dataclass
class AuthSession:
    """Signed-in user, as handed over by the app shell's auth flow."""

    access_token: str
    user_id: str
    username: str = ""
    email: str = ""
    refresh_token: Optional[str] = None


class SupabaseClient:
    """Lightweight Supabase PostgREST client for the ChordCrack tables.

    Usage:
      client = SupabaseClient(url=settings.supabase_url, anon_key=settings.supabase_anon_key)
      client.set_session(AuthSession(access_token=..., user_id=...))
    """

    def __init__(
        self,
        url: str,
        anon_key: str,
        session: Optional[AuthSession] = None,
        timeout: float = 10.0,
        http: Optional[requests.Session] = None,
    ) -> None:
        if not url:
            raise ValueError("Supabase URL must be provided")
        if not anon_key:
            raise ValueError("Supabase anon key must be provided")
        self.base_url = url.rstrip("/")
        self.rest_url = f"{self.base_url}/rest/v1"
        self.anon_key = anon_key
        self.timeout = timeout
        self.session: Optional[AuthSession] = session
        self.http = http or requests.Session()
        self.http.headers.update(
            {
                "apikey": anon_key,
                "Content-Type": "application/json",
                "Accept": "application/json",
                "User-Agent": "chordcrack-core/0.1",
            }
        )

    @classmethod
    def from_settings(cls, settings: Settings, session: Optional[AuthSession] = None) -> "SupabaseClient":
        return cls(url=settings.supabase_url, anon_key=settings.supabase_anon_key, session=session)

    # ---------- Session ----------
    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    def set_session(self, session: Optional[AuthSession]) -> None:
        self.session = session
        logger.info("Supabase session %s", "set" if session else "cleared")

    def clear_session(self) -> None:
        self.set_session(None)

    def require_user_id(self) -> str:
        if self.session is None or not self.session.user_id:
            raise NotAuthenticated("Not authenticated", status_code=401)
        return self.session.user_id

    # ---------- Low-level request wrapper ----------
    def _auth_headers(self) -> Dict[str, str]:
        token = self.session.access_token if self.session else self.anon_key
        return {"Authorization": f"Bearer {token}"}

    def request(
        self,
        method: str,
        table: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> requests.Response:
        url = f"{self.rest_url}/{table.lstrip('/')}"
        merged = self._auth_headers()
        if headers:
            merged.update(headers)
        logger.debug("Supabase %s %s params=%s", method, url, params)
        return self._send(method, url, params=params, json=json, headers=merged)

    @retry(
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        stop=stop_after_attempt(3),
        retry=retry_if_exception_type(TransientBackendError),
        reraise=True,
    )
    def _send(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        try:
            resp = self.http.request(method=method, url=url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning("Supabase %s %s failed: %s", method, url, exc)
            raise TransientBackendError(f"Network error calling {url}: {exc}") from exc
        if resp.status_code >= 500:
            logger.warning("Supabase 5xx response: %s - %s", resp.status_code, resp.text)
            raise TransientBackendError(f"Supabase server error: {resp.status_code}", status_code=resp.status_code)
        if resp.status_code == 401:
            raise NotAuthenticated(f"Supabase rejected credentials: {resp.text}", status_code=401)
        if resp.status_code >= 400:
            logger.error("Supabase API error %s: %s", resp.status_code, resp.text)
            raise BackendError(f"Supabase API error {resp.status_code}: {resp.text}", status_code=resp.status_code)
        return resp

    def fetch(self, table: str, model: Type[M], *, params: Optional[Dict[str, Any]] = None) -> List[M]:
        """GET rows from ``table`` and decode each into ``model``."""
        resp = self.request("GET", table, params=params)
        return self._decode_rows(resp, model)

    def insert(
        self,
        table: str,
        row: Dict[str, Any],
        model: Optional[Type[M]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Optional[M]:
        """POST a row. With ``model``, asks for and decodes the created row."""
        hdrs = dict(headers or {})
        if model is not None:
            hdrs.setdefault("Prefer", "return=representation")
        resp = self.request("POST", table, json=row, headers=hdrs)
        if model is None:
            return None
        rows = self._decode_rows(resp, model)
        if not rows:
            raise InvalidResponse(f"Insert into {table} returned no rows")
        return rows[0]

    def update(self, table: str, params: Dict[str, Any], changes: Dict[str, Any]) -> None:
        self.request("PATCH", table, params=params, json=changes)

    def delete(self, table: str, params: Dict[str, Any]) -> None:
        self.request("DELETE", table, params=params)

    @staticmethod
    def _decode_rows(resp: requests.Response, model: Type[M]) -> List[M]:
        try:
            data = resp.json()
        except ValueError as exc:
            raise InvalidResponse(f"Response is not JSON: {resp.text[:200]}") from exc
        if isinstance(data, dict):
            data = [data]
        try:
            return [model.model_validate(item) for item in data]
        except ValidationError as exc:
            raise InvalidResponse(f"Unexpected {model.__name__} payload: {exc}") from exc


def eq(value: Any) -> str:
    """PostgREST equality filter value."""
    return f"eq.{value}"
