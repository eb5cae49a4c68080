"""Rollbar REST API client.

Wraps the three read calls the unfurler needs: token validation, item lookup
by project counter and occurrence lookup by id. Every failure surfaces as
RemoteError, except in validate_token() which fails closed.
"""

from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel

from ..config import get_settings
from ..errors import RemoteError
from ..log import get_logger
from ..schemas.rollbar import (
    ApiResponse, Item, ItemResponse, Occurrence, OccurrenceResponse, ValidationResponse,
)

logger = get_logger("rollbar")

R = TypeVar("R", bound=BaseModel)

INVALID_TOKEN_MESSAGE = "invalid access token"

class RollbarClient:
    def __init__(self, client: Optional[httpx.Client] = None, api_url: Optional[str] = None):
        settings = get_settings()
        self.api_url = (api_url or settings.ROLLBAR_API_URL).rstrip("/")
        self.client = client or httpx.Client(
            timeout=settings.ROLLBAR_TIMEOUT,
            follow_redirects=True,
            headers={"User-Agent": "RollbarUnfurler/1.0"}
        )

    def close(self):
        self.client.close()

    def _get(self, path: str, token: str, schema: Type[R]) -> R:
        try:
            resp = self.client.get(f"{self.api_url}/{path}", params={"access_token": token})
            payload: Dict[str, Any] = resp.json()
            return schema.model_validate(payload)
        except httpx.HTTPError as e:
            raise RemoteError(f"GET {path} failed: {e}") from e
        except ValueError as e:
            # Covers JSON decode errors and pydantic validation errors
            raise RemoteError(f"GET {path} returned an unexpected payload: {e}") from e

    @staticmethod
    def _unwrap(response: ApiResponse):
        if response.err != 0:
            raise RemoteError(f"API error: {response.message}")
        if response.result is None:
            raise RemoteError("API error: empty result")
        return response.result

    def validate_token(self, token: str) -> bool:
        """
        Checks that token is a usable Rollbar read token.
        There is no way to ask which project a token belongs to, so any answer
        other than "invalid access token" counts as valid.
        """
        if not token:
            return False
        try:
            response = self._get("item/1", token, ValidationResponse)
        except RemoteError as e:
            logger.warning(f"validate_token error: {e}")
            return False
        return response.err == 0 or response.message != INVALID_TOKEN_MESSAGE

    def fetch_item(self, counter: str, token: str) -> Item:
        return self._unwrap(self._get(f"item_by_counter/{counter}", token, ItemResponse))

    def fetch_occurrence(self, occurrence_id: int, token: str) -> Occurrence:
        return self._unwrap(self._get(f"instance/{occurrence_id}", token, OccurrenceResponse))
