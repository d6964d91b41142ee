"""WikiTree+ services: profile search and the template catalog."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from .base import BaseClient, WikiTreeAPIError

logger = logging.getLogger(__name__)

WIKITREE_PLUS_SEARCH_URL = "https://wikitree.sdms.si/function/WTWebProfileSearch/Profiles.json"
WIKITREE_PLUS_TEMPLATES_URL = "https://plus.wikitree.com/chrome/templatesExp.json"


class WikiTreePlusError(WikiTreeAPIError):
    """Raised when the WikiTree+ search or template service fails."""


@dataclass
class QueryResponse:
    """Profile ids matching a text query, in the order the service ranks them."""

    found: int = 0
    profiles: list[int] = field(default_factory=list)


class WikiTreePlusClient(BaseClient):
    name = "wikitree_plus"
    base_url = WIKITREE_PLUS_SEARCH_URL
    error_class = WikiTreePlusError

    async def search(self, query: str, max_profiles: int = 1000, *, open_only: bool = False) -> QueryResponse:
        """Run a WikiTree+ text query.

        ``found`` is the total match count, which may exceed ``len(profiles)``
        when ``max_profiles`` truncates the list.
        """
        params: dict[str, Any] = {"Query": query, "format": "JSON", "maxProfiles": max_profiles}
        if open_only:
            params["Privacy"] = "Public"
        data = await self._request_json("GET", self.base_url, params=params)
        response = data.get("response") if isinstance(data, dict) else None
        if not isinstance(response, dict):
            raise WikiTreePlusError("WikiTree+ search returned no response object")

        profiles: list[int] = []
        for value in response.get("profiles") or []:
            try:
                profiles.append(int(value))
            except (TypeError, ValueError):
                logger.debug("Skipping non-numeric profile id %r", value)
        try:
            found = int(response.get("found") or 0)
        except (TypeError, ValueError):
            found = len(profiles)
        return QueryResponse(found=found, profiles=profiles)

    async def fetch_templates(self) -> list[dict[str, Any]]:
        """Download the template catalog used to load a ``RuleSet``."""
        data = await self._request_json(
            "GET", WIKITREE_PLUS_TEMPLATES_URL, params={"appid": "bioCheck"}
        )
        templates = data.get("templates") if isinstance(data, dict) else None
        if not isinstance(templates, list):
            raise WikiTreePlusError("Template catalog has no templates list")
        logger.info("Fetched %d templates from WikiTree+", len(templates))
        return templates
