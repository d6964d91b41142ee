"""Discovery strategies: which profiles a run starts from."""
from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..models.config import MAX_RANDOM_PROFILE_ID, CheckConfig
from ..models.person import PersonRecord

if TYPE_CHECKING:
    from .engine import TraversalEngine

logger = logging.getLogger(__name__)


class CheckStrategy(ABC):
    """Feeds profiles into a ``TraversalEngine``."""

    @abstractmethod
    async def discover(self, engine: TraversalEngine) -> None:
        """Consider the strategy's profiles. Errors go to ``engine.fail``."""


@dataclass
class ByProfile(CheckStrategy):
    """One profile plus optional generations of ancestors and descendants."""

    wikitree_id: str
    ancestor_generations: int = 0
    descendant_generations: int = 0

    @classmethod
    def from_config(cls, config: CheckConfig) -> ByProfile:
        if not config.wikitree_id:
            raise ValueError("A WikiTree id is required")
        return cls(config.wikitree_id, config.ancestor_generations, config.descendant_generations)

    async def discover(self, engine: TraversalEngine) -> None:
        response = await engine.client.get_profile(self.wikitree_id)
        if not response.ok or response.person is None:
            detail = f": {response.status}" if response.status else ""
            engine.fail(f"Profile {self.wikitree_id} not found{detail}")
            return

        # A numeric key that comes back under another id was redirected
        requested = int(self.wikitree_id) if self.wikitree_id.isdigit() else None
        person = PersonRecord.from_api(response.person, requested)
        if person is None:
            engine.collector.count_profiles()
            engine.collector.add_privacy_excluded()
            engine.fail(f"Privacy settings do not allow checking {self.wikitree_id}")
            return

        await engine.consider(person)
        if self.ancestor_generations > 0:
            await engine.check_ancestors([person.profile_id], self.ancestor_generations)
        if self.descendant_generations > 0:
            await engine.check_descendants([person.profile_id], self.descendant_generations)


@dataclass
class ByQuery(CheckStrategy):
    """Profiles matching a WikiTree+ text query, sliced by start and max."""

    query: str
    search_start: int = 0
    search_max: int = 1000
    open_only: bool = False

    @classmethod
    def from_config(cls, config: CheckConfig) -> ByQuery:
        if not config.query:
            raise ValueError("A WikiTree+ query is required")
        return cls(config.query, config.search_start, config.search_max, config.open_only)

    async def discover(self, engine: TraversalEngine) -> None:
        if engine.plus_client is None:
            engine.fail("A WikiTree+ client is required to check a query")
            return
        result = await engine.plus_client.search(
            self.query, max_profiles=self.search_start + self.search_max, open_only=self.open_only
        )
        end = min(result.found, self.search_start + self.search_max)
        ids = result.profiles[self.search_start:end]
        logger.info("Examining %d of %d profiles found via search", len(ids), result.found)
        todo = [pid for pid in ids if pid not in engine.registry]
        if todo:
            await engine.check_people(todo)


@dataclass
class ByWatchlist(CheckStrategy):
    """The logged-in user's watchlist, from ``search_start`` for up to ``search_max`` profiles."""

    search_start: int = 0
    search_max: int = 1000

    @classmethod
    def from_config(cls, config: CheckConfig) -> ByWatchlist:
        return cls(config.search_start, config.search_max)

    async def discover(self, engine: TraversalEngine) -> None:
        settings = engine.settings
        engine.throttle.max_pending = settings.watchlist_max_pending_requests

        # A one-profile page tells us the watchlist size
        first = await engine.client.get_watchlist(offset=0, limit=1)
        if not first.ok:
            engine.fail(f"Could not get watchlist: {first.status}")
            return
        count = first.count
        if not count:
            engine.fail("Could not get watchlist. Make sure you are logged in.")
            return
        if self.search_start >= count:
            engine.fail(
                f"Check starting at {self.search_start} must be less than the "
                f"{count} profiles on your watchlist"
            )
            return

        max_count = min(count, settings.watchlist_max_profiles)
        end = min(max_count, self.search_start + self.search_max)
        engine.collector.count_profiles(max(end - self.search_start, 0))

        offset = self.search_start
        while offset < end and not engine.time_to_quit():
            page = await engine.client.get_watchlist(
                offset=offset, limit=min(settings.watchlist_page_size, end - offset)
            )
            if not page.ok:
                engine.fail(f"Could not get watchlist: {page.status}")
                return
            if not page.profiles:
                break
            for data in page.profiles:
                if offset >= end or engine.time_to_quit():
                    break
                offset += 1
                person = PersonRecord.from_api(data)
                if person is None:
                    engine.collector.add_privacy_excluded()
                    continue
                await engine.consider(person, count=False)


@dataclass
class RandomSample(CheckStrategy):
    """Distinct random profile ids in ``[random_min, random_max)``."""

    count: int
    random_min: int = 1
    random_max: int = MAX_RANDOM_PROFILE_ID
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def __post_init__(self) -> None:
        if self.random_min >= self.random_max:
            raise ValueError(f"Random min {self.random_min} must be less than random max {self.random_max}")

    @classmethod
    def from_config(cls, config: CheckConfig, rng: random.Random | None = None) -> RandomSample:
        return cls(config.search_max, config.random_min, config.random_max, rng or random.Random())

    def draw(self) -> list[int]:
        population = range(self.random_min, self.random_max)
        return self.rng.sample(population, min(self.count, len(population)))

    async def discover(self, engine: TraversalEngine) -> None:
        ids = [pid for pid in self.draw() if pid not in engine.registry]
        logger.info("Checking %d random profiles between %d and %d", len(ids), self.random_min, self.random_max)
        if ids:
            await engine.check_people(ids)
