"""Lookup of the signed-in user."""

import logging

import requests
from cachetools import TTLCache
from pydantic import ValidationError

from models.user import ActingUser
from services.api_client import ApiClient, ApiError
from utils.constants import SESSION_ENDPOINT

logger = logging.getLogger(__name__)

SESSION_CACHE_TTL_SECONDS = 60
_SESSION_KEY = "user"


class SessionService:
    """Resolves the acting user from the backend session endpoint."""

    def __init__(self, client: ApiClient, ttl_seconds: int = SESSION_CACHE_TTL_SECONDS):
        self.client = client
        self._cache: TTLCache = TTLCache(maxsize=1, ttl=ttl_seconds)

    def current_user(self) -> ActingUser | None:
        """Return the signed-in user, or None when anonymous or unreachable."""
        if _SESSION_KEY in self._cache:
            return self._cache[_SESSION_KEY]

        try:
            data = self.client.get(SESSION_ENDPOINT)
        except (ApiError, requests.exceptions.RequestException) as e:
            logger.warning(f"Session lookup failed: {e}")
            return None

        user = None
        raw_user = data.get("user") if isinstance(data, dict) else None
        if raw_user:
            try:
                user = ActingUser(**raw_user)
            except ValidationError as e:
                logger.warning(f"Ignoring malformed session user: {e}")

        self._cache[_SESSION_KEY] = user
        return user

    def refresh(self) -> ActingUser | None:
        """Drop the cached user and look it up again."""
        self._cache.clear()
        return self.current_user()
