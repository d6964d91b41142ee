"""Remote services: the WikiTree API and WikiTree+."""

from .base import RateLimitError, WikiTreeAPIError, WikiTreeError
from .wikitree import (
    PROFILE_FIELDS,
    BioResponse,
    PeopleResponse,
    ProfileResponse,
    WatchlistResponse,
    WikiTreeAction,
    WikiTreeClient,
)
from .wikitree_plus import QueryResponse, WikiTreePlusClient, WikiTreePlusError

__all__ = [
    "RateLimitError",
    "WikiTreeAPIError",
    "WikiTreeError",
    "PROFILE_FIELDS",
    "BioResponse",
    "PeopleResponse",
    "ProfileResponse",
    "WatchlistResponse",
    "WikiTreeAction",
    "WikiTreeClient",
    "QueryResponse",
    "WikiTreePlusClient",
    "WikiTreePlusError",
]
