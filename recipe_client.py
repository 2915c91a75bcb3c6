import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import requests
from pydantic import ValidationError

from attachment_encoder import Payload
from constants import (
    ALL_CATEGORIES,
    API_BASE_URL,
    GENERIC_NETWORK_FAILURE,
    RECIPES_PATH,
    REQUEST_TIMEOUT,
)
from recipe_errors import NetworkFailure, NotFoundFailure
from recipe_models import Recipe

log = logging.getLogger(__name__)


def build_query_string(search: Optional[str] = None, category: Optional[str] = None) -> str:
    """Search wins over category; no category or ``all`` means unfiltered."""
    search = (search or "").strip()
    if search:
        return urlencode({"search": search})
    if category and category != ALL_CATEGORIES:
        return urlencode({"category": category})
    return ""


def error_message(resp: requests.Response, fallback: str) -> str:
    try:
        body = resp.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    return fallback


class RecipeApiClient:
    """Blocking client for the recipe REST API."""

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

    def _url(self, recipe_id: Optional[int] = None, query: str = "") -> str:
        url = f"{self.base_url}{RECIPES_PATH}"
        if recipe_id is not None:
            url = f"{url}/{recipe_id}"
        if query:
            url = f"{url}?{query}"
        return url

    def _request(self, method: str, url: str, fallback: str, **kwargs: Any) -> requests.Response:
        log.debug("%s %s", method, url)
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            log.warning("%s %s failed: %s", method, url, exc)
            raise NetworkFailure(GENERIC_NETWORK_FAILURE) from exc
        if not resp.ok:
            message = error_message(resp, fallback)
            log.warning("%s %s returned %s: %s", method, url, resp.status_code, message)
            if resp.status_code == 404:
                raise NotFoundFailure(message, status=resp.status_code)
            raise NetworkFailure(message, status=resp.status_code)
        return resp

    def _recipe(self, resp: requests.Response, fallback: str) -> Recipe:
        try:
            return Recipe.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            raise NetworkFailure(fallback, status=resp.status_code) from exc

    def list_recipes(self, search: Optional[str] = None, category: Optional[str] = None) -> List[Recipe]:
        fallback = "Failed to fetch recipes"
        resp = self._request("GET", self._url(query=build_query_string(search, category)), fallback)
        try:
            data: List[Dict[str, Any]] = resp.json()
            return [Recipe.model_validate(item) for item in data]
        except (ValueError, ValidationError) as exc:
            raise NetworkFailure(fallback, status=resp.status_code) from exc

    def get_recipe(self, recipe_id: int) -> Recipe:
        # the detail endpoint's own message is not shown to the user
        fallback = "Failed to fetch recipe"
        try:
            resp = self._request("GET", self._url(recipe_id), fallback)
        except NotFoundFailure as exc:
            raise NotFoundFailure(fallback, status=404) from exc
        except NetworkFailure as exc:
            raise NetworkFailure(fallback, status=exc.status) from exc
        return self._recipe(resp, fallback)

    def create_recipe(self, payload: Payload) -> Recipe:
        fallback = "Failed to create recipe"
        resp = self._request("POST", self._url(), fallback, files=payload.multipart())
        return self._recipe(resp, fallback)

    def update_recipe(self, recipe_id: int, payload: Payload) -> Recipe:
        fallback = "Failed to update recipe"
        resp = self._request("PUT", self._url(recipe_id), fallback, files=payload.multipart())
        return self._recipe(resp, fallback)

    def delete_recipe(self, recipe_id: int) -> None:
        self._request("DELETE", self._url(recipe_id), "Failed to delete recipe")
