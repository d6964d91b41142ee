"""WikiTree API client.

Every call returns the first element of the API's JSON list wrapped in a
small response object. A non-empty ``status`` is a server-side answer, not a
transport failure: the caller decides whether it means rate limiting, the
profile cap, or a privacy refusal.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx

from ..net import RateLimitConfig
from .base import DEFAULT_TIMEOUT, BaseClient, RateLimitError, WikiTreeAPIError, WikiTreeError

logger = logging.getLogger(__name__)

__all__ = [
    "WikiTreeClient",
    "WikiTreeAction",
    "WikiTreeError",
    "WikiTreeAPIError",
    "RateLimitError",
    "ProfileResponse",
    "PeopleResponse",
    "BioResponse",
    "WatchlistResponse",
    "PROFILE_FIELDS",
]


# =============================================================================
# Constants
# =============================================================================

WIKITREE_API_URL = "https://api.wikitree.com/api.php"
DEFAULT_APP_ID = "bioCheck"

# Status strings are matched by prefix; the server appends detail
WIKITREE_STATUS_LIMIT_EXCEEDED = "Limit exceeded"
WIKITREE_STATUS_MAX_PROFILES = "Maximum number of profiles"
WIKITREE_STATUS_PERMISSION_DENIED = "Permission denied"

PROFILE_FIELDS: tuple[str, ...] = (
    "Id",
    "Name",
    "IsLiving",
    "Privacy",
    "Manager",
    "BirthDate",
    "DeathDate",
    "BirthDateDecade",
    "DeathDateDecade",
    "FirstName",
    "LastNameCurrent",
    "LastNameAtBirth",
    "Father",
    "Mother",
    "Bio",
)


class WikiTreeAction(str, Enum):
    """WikiTree API action types."""
    GET_PERSON = "getPerson"
    GET_PEOPLE = "getPeople"
    GET_BIO = "getBio"
    GET_WATCHLIST = "getWatchlist"


# =============================================================================
# Responses
# =============================================================================

def _status_text(value: Any) -> str:
    """Normalize the API status: ``0`` and missing mean success."""
    if value in (None, 0, "0", ""):
        return ""
    return str(value)


def _first(data: Any) -> dict[str, Any]:
    if isinstance(data, list):
        data = data[0] if data else {}
    if not isinstance(data, dict):
        raise WikiTreeAPIError(f"Unexpected WikiTree response: {type(data).__name__}")
    return data


def _redirects(result_by_key: Any) -> dict[int, int]:
    """Numeric keys whose result came back under a different profile id."""
    redirects: dict[int, int] = {}
    if not isinstance(result_by_key, Mapping):
        return redirects
    for key, result in result_by_key.items():
        if not isinstance(result, Mapping):
            continue
        try:
            requested, actual = int(key), int(result.get("Id") or 0)
        except (TypeError, ValueError):
            continue
        if actual and actual != requested:
            redirects[actual] = requested
    return redirects


@dataclass
class ProfileResponse:
    status: str = ""
    person: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return not self.status


@dataclass
class PeopleResponse:
    """A page of a batch expand. ``redirects`` maps returned ids to the numeric keys that redirected to them."""

    status: str = ""
    people: dict[str, dict[str, Any]] = field(default_factory=dict)
    redirects: dict[int, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.status

    @property
    def rate_limited(self) -> bool:
        return self.status.startswith(WIKITREE_STATUS_LIMIT_EXCEEDED)

    @property
    def max_profiles_reached(self) -> bool:
        return self.status.startswith(WIKITREE_STATUS_MAX_PROFILES)


@dataclass
class BioResponse:
    status: str = ""
    bio: str | None = None

    @property
    def permission_denied(self) -> bool:
        return self.status.startswith(WIKITREE_STATUS_PERMISSION_DENIED)


@dataclass
class WatchlistResponse:
    status: str = ""
    count: int = 0
    profiles: list[dict[str, Any]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.status


# =============================================================================
# Client
# =============================================================================

class WikiTreeClient(BaseClient):
    """Async client for ``api.wikitree.com``.

    Authentication is the browser session: pass the WikiTree cookies
    (``WIKITREE_COOKIES``) to see profiles the logged-in user may read.

    Rate Limiting:
        Requests share the ``wikitree`` limiter from ``biocheck.net``,
        configured by ``RATE_WIKITREE_MAX``, ``RATE_WIKITREE_WINDOW`` and
        ``RATE_WIKITREE_MIN_INTERVAL``. Concurrency is bounded separately by
        the traversal engine.
    """

    name = "wikitree"
    base_url = WIKITREE_API_URL

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        app_id: str = DEFAULT_APP_ID,
        cookies: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        rate_limit: RateLimitConfig | None = None,
    ) -> None:
        super().__init__(client, timeout=timeout, rate_limit=rate_limit)
        self.app_id = app_id
        self.cookies = cookies

    def _default_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.cookies:
            headers["Cookie"] = self.cookies
        return headers

    def _params(self, action: WikiTreeAction, **extra: Any) -> dict[str, Any]:
        params: dict[str, Any] = {"action": action.value, "appId": self.app_id}
        params.update({k: v for k, v in extra.items() if v is not None})
        return params

    async def get_profile(self, key: str | int, fields: Iterable[str] = PROFILE_FIELDS) -> ProfileResponse:
        """Fetch one profile by WikiTree id or numeric id, following redirects."""
        params = self._params(
            WikiTreeAction.GET_PERSON,
            key=str(key),
            fields=",".join(fields),
            resolveRedirect=1,
        )
        first = _first(await self._request_json("GET", self.base_url, params=params))
        person = first.get("person")
        return ProfileResponse(
            status=_status_text(first.get("status")),
            person=person if isinstance(person, dict) else None,
        )

    async def get_people(
        self,
        keys: Iterable[str | int],
        *,
        fields: Iterable[str] = PROFILE_FIELDS,
        ancestors: int = 0,
        descendants: int = 0,
        nuclear: int = 0,
        min_generation: int = 0,
        limit: int = 1000,
        start: int = 0,
    ) -> PeopleResponse:
        """Batch expand: the given profiles plus their relatives, one page at a time.

        Sent as a form POST since the key list can be long.
        """
        data = self._params(
            WikiTreeAction.GET_PEOPLE,
            keys=",".join(str(k) for k in keys),
            fields=",".join(fields),
            resolveRedirect=1,
            ancestors=ancestors or None,
            descendants=descendants or None,
            nuclear=nuclear or None,
            minGeneration=min_generation or None,
            limit=limit,
            start=start or None,
        )
        first = _first(await self._request_json("POST", self.base_url, data=data))
        people = first.get("people")
        # PHP serializes an empty map as []
        if not isinstance(people, Mapping):
            people = {}
        return PeopleResponse(
            status=_status_text(first.get("status")),
            people={str(k): v for k, v in people.items() if isinstance(v, dict)},
            redirects=_redirects(first.get("resultByKey")),
        )

    async def get_bio(self, key: str | int) -> BioResponse:
        """Fetch the wiki markup of one biography."""
        params = self._params(WikiTreeAction.GET_BIO, key=str(key), bioFormat="wiki", resolveRedirect=1)
        first = _first(await self._request_json("GET", self.base_url, params=params))
        bio = first.get("bio")
        return BioResponse(status=_status_text(first.get("status")), bio=bio if isinstance(bio, str) else None)

    async def get_watchlist(
        self,
        *,
        offset: int = 0,
        limit: int = 1,
        fields: Iterable[str] = PROFILE_FIELDS,
    ) -> WatchlistResponse:
        """Fetch one page of the logged-in user's watchlist (people only)."""
        params = self._params(
            WikiTreeAction.GET_WATCHLIST,
            fields=",".join(fields),
            getPerson=1,
            getSpace=0,
            resolveRedirect=1,
            offset=offset,
            limit=limit,
        )
        first = _first(await self._request_json("GET", self.base_url, params=params))
        profiles = first.get("watchlist")
        try:
            count = int(first.get("watchlistCount") or 0)
        except (TypeError, ValueError):
            count = 0
        return WatchlistResponse(
            status=_status_text(first.get("status")),
            count=count,
            profiles=[p for p in profiles if isinstance(p, dict)] if isinstance(profiles, list) else [],
        )
