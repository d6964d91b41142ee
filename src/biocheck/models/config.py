"""Run configuration and engine tunables."""
from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field, model_validator

# ==============================================================================
# Limits
# ==============================================================================

MAX_PROFILES = 10000
MAX_GENERATIONS = 20
MAX_DESCENDANT_GENERATIONS = 5
MAX_RANDOM_PROFILE_ID = 39715080


class ReportMode(str, Enum):
    """Which checked profiles produce a report row.

    ``issues`` reports profiles with style issues, empty or undated biographies,
    and marked or possibly unsourced profiles. The other modes add to that set.
    """

    ISSUES = "issues"
    ALL = "all"
    NON_MANAGED = "non-managed"


class CheckConfig(BaseModel):
    """What to check and how to report it. Immutable once built."""

    model_config = {"frozen": True}

    wikitree_id: str | None = Field(default=None, description="Starting profile, e.g. Smith-123")
    query: str | None = Field(default=None, description="WikiTree+ search query")

    ancestor_generations: int = Field(default=0, ge=0, le=MAX_GENERATIONS)
    descendant_generations: int = Field(default=0, ge=0, le=MAX_DESCENDANT_GENERATIONS)
    relative_degrees: int = Field(default=0, ge=0, le=MAX_GENERATIONS)
    check_all_connections: bool = Field(
        default=False, description="Expand relatives of every checked profile, not just those with issues"
    )

    open_only: bool = False
    ignore_pre1500: bool = False
    reliable_sources_only: bool = Field(default=False, description="Apply pre-1700 rules to every profile")

    report_mode: ReportMode = ReportMode.ISSUES
    sources_report: bool = Field(default=False, description="Report source lines instead of style rows")
    review_report: bool = Field(default=False, description="Report profile-review rows instead of style rows")
    stats_only: bool = Field(default=False, description="Count results without building rows")
    max_profiles: int = Field(default=5000, ge=1, le=MAX_PROFILES)
    max_report_rows: int = Field(default=1000, ge=1)

    search_start: int = Field(default=0, ge=0)
    search_max: int = Field(default=1000, ge=1, le=MAX_PROFILES)
    random_min: int = Field(default=1, ge=1)
    random_max: int = Field(default=MAX_RANDOM_PROFILE_ID, ge=1)

    user_id: int = Field(default=0, description="Logged-in user's profile id, 0 when not logged in")
    search_term: str = ""

    @model_validator(mode="after")
    def _check_random_range(self) -> CheckConfig:
        if self.random_min >= self.random_max:
            raise ValueError(f"random_min ({self.random_min}) must be less than random_max ({self.random_max})")
        return self


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


@dataclass(frozen=True)
class EngineSettings:
    """Traversal tunables. Defaults match what the WikiTree API tolerates."""

    max_pending_requests: int = 80
    watchlist_max_pending_requests: int = 8
    sync_delay: float = 0.08
    keys_per_request: int = 100
    page_limit: int = 1000
    max_ancestor_depth: int = 10
    max_generations: int = MAX_GENERATIONS
    max_descendant_generations: int = MAX_DESCENDANT_GENERATIONS
    watchlist_page_size: int = 200
    watchlist_max_profiles: int = 5000

    @classmethod
    def from_env(cls) -> EngineSettings:
        """Read overrides from ``BIOCHECK_*`` environment variables."""
        return cls(
            max_pending_requests=_env_int("BIOCHECK_MAX_PENDING", cls.max_pending_requests),
            watchlist_max_pending_requests=_env_int(
                "BIOCHECK_WATCHLIST_MAX_PENDING", cls.watchlist_max_pending_requests
            ),
            sync_delay=float(os.getenv("BIOCHECK_SYNC_DELAY_MS", str(int(cls.sync_delay * 1000)))) / 1000,
            keys_per_request=_env_int("BIOCHECK_KEYS_PER_REQUEST", cls.keys_per_request),
            page_limit=_env_int("BIOCHECK_PAGE_LIMIT", cls.page_limit),
        )
