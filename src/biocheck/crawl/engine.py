"""Bounded-concurrency traversal of WikiTree profiles.

Every discovery strategy funnels into ``TraversalEngine.check_people``: a
batch expand of identities, paginated, whose results are deduplicated
against the ``ProfileRegistry`` and handed to ``consider``. Biography
fetches run as tasks tracked by a ``RequestThrottle``; when too many are in
flight the engine pauses and drains them before issuing more.

All shared state (registry, collector, flags) is mutated from the one event
loop, between awaits, so nothing here needs a lock.
"""
from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
from datetime import date
from typing import TYPE_CHECKING, Any

from ..biography import BiographyParser, SourceValidator
from ..logging import get_logger
from ..models.config import CheckConfig, EngineSettings
from ..models.person import (
    Eligibility,
    PersonRecord,
    PrivacyLevel,
    check_eligibility,
    is_undated,
    source_context,
)
from ..net import RequestThrottle
from ..registry import ProfileRegistry
from ..report import ResultCollector, RunSummary
from ..rules import RuleSet
from ..sources.base import WikiTreeError
from ..sources.wikitree import WikiTreeClient

if TYPE_CHECKING:
    from ..sources.wikitree_plus import WikiTreePlusClient
    from .strategies import CheckStrategy

log = get_logger(__name__)


class CancellationToken:
    """Cooperative cancel flag checked before every unit of work."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


def _profile_id(data: Mapping[str, Any], fallback: Any = None) -> int:
    try:
        return int(data.get("Id") or fallback or 0)
    except (TypeError, ValueError):
        return 0


class TraversalEngine:
    """Discovers, deduplicates and checks profiles for one run.

    Args:
        client: WikiTree API client
        rules: Loaded rule set shared by every parse
        config: What to check and how to report it
        registry: Profiles seen this run (a fresh one by default)
        collector: Receives checked profiles and counters
        settings: Throttle and paging tunables
        token: Cancellation token; ``cancel()`` stops new work
        plus_client: WikiTree+ client, needed only for text queries
        today: Reference date for "too old to remember"
    """

    def __init__(
        self,
        client: WikiTreeClient,
        rules: RuleSet,
        config: CheckConfig,
        *,
        registry: ProfileRegistry | None = None,
        collector: ResultCollector | None = None,
        settings: EngineSettings | None = None,
        token: CancellationToken | None = None,
        plus_client: WikiTreePlusClient | None = None,
        today: date | None = None,
    ) -> None:
        self.client = client
        self.plus_client = plus_client
        self.config = config
        self.registry = registry if registry is not None else ProfileRegistry()
        self.collector = collector if collector is not None else ResultCollector(config)
        self.settings = settings or EngineSettings()
        self.token = token or CancellationToken()
        self.today = today
        self.parser = BiographyParser(rules)
        self.validator = SourceValidator(rules)
        self.throttle = RequestThrottle(self.settings.max_pending_requests, self.settings.sync_delay)

        self.max_profiles_reached = False
        self.rate_limited = False
        self.error_message = ""
        self._ineligible: set[int] = set()
        self._expanded: set[int] = set()

    # =========================================================================
    # Termination
    # =========================================================================

    def time_to_quit(self) -> bool:
        return (
            self.token.cancelled
            or self.max_profiles_reached
            or self.rate_limited
            or bool(self.error_message)
            or self.collector.report_limit_reached
        )

    def fail(self, message: str) -> None:
        """Record an unrecoverable error; no new requests are issued afterwards."""
        if not self.error_message:
            self.error_message = message
        log.error("engine.error", message=message)

    async def drain(self) -> None:
        """Wait for every biography fetch in flight."""
        for error in await self.throttle.drain():
            log.error("engine.task_failed", error=repr(error))

    # =========================================================================
    # Batch expand
    # =========================================================================

    async def check_people(
        self,
        keys: Iterable[int | str],
        *,
        ancestors: int = 0,
        descendants: int = 0,
        nuclear: int = 0,
        min_generation: int = 0,
    ) -> list[PersonRecord]:
        """Expand ``keys`` in chunks and consider every profile returned.

        Returns every profile the server sent back, including ones already
        registered or ineligible, so callers can walk parent links.
        """
        keys = list(dict.fromkeys(keys))
        size = self.settings.keys_per_request
        limit = self.settings.page_limit
        found: list[PersonRecord] = []

        for offset in range(0, len(keys), size):
            chunk = keys[offset:offset + size]
            start = 0
            while not self.time_to_quit():
                log.debug("engine.batch", keys=len(chunk), start=start, ancestors=ancestors,
                          descendants=descendants, nuclear=nuclear)
                try:
                    response = await self.client.get_people(
                        chunk,
                        ancestors=ancestors,
                        descendants=descendants,
                        nuclear=nuclear,
                        min_generation=min_generation,
                        limit=limit,
                        start=start,
                    )
                except WikiTreeError as e:
                    self.fail(f"Error from WikiTree API: {e}")
                    return found

                if response.rate_limited:
                    self.rate_limited = True
                    log.warning("engine.rate_limited", status=response.status)
                    return found
                if response.max_profiles_reached:
                    self.max_profiles_reached = True
                    log.warning("engine.max_profiles", status=response.status)
                    return found
                if not response.ok:
                    self.fail(f"Error from WikiTree API: {response.status}")
                    return found

                for key, data in response.people.items():
                    requested = response.redirects.get(_profile_id(data, key))
                    person = await self._consider_data(data, key, requested)
                    if person is not None:
                        found.append(person)

                if len(response.people) < limit:
                    break
                start += limit
        return found

    async def _consider_data(
        self, data: Mapping[str, Any], key: Any = None, requested_id: int | None = None
    ) -> PersonRecord | None:
        person = PersonRecord.from_api(data, requested_id)
        if person is None:
            # No Name: the profile is hidden from us
            profile_id = _profile_id(data, key)
            if profile_id and profile_id not in self._ineligible and profile_id not in self.registry:
                self._ineligible.add(profile_id)
                self.collector.count_profiles()
                self.collector.add_privacy_excluded()
            return None
        await self.consider(person)
        return person

    # =========================================================================
    # Per-profile work
    # =========================================================================

    async def consider(self, person: PersonRecord, *, count: bool = True) -> bool:
        """Register ``person`` and start its check if it is new and eligible.

        The profile is reserved in the registry when the fetch is issued, not
        when it completes, so a second path to the same profile is skipped.

        Returns:
            True if a check was started
        """
        profile_id = person.profile_id
        if profile_id in self._ineligible:
            return False
        if self.registry.has(profile_id):
            return False
        if count:
            self.collector.count_profiles()

        eligibility = check_eligibility(
            person,
            user_id=self.config.user_id,
            open_only=self.config.open_only,
            ignore_pre1500=self.config.ignore_pre1500,
        )
        if eligibility is Eligibility.PRIVACY_EXCLUDED:
            self._ineligible.add(profile_id)
            self.collector.add_privacy_excluded()
            return False
        if eligibility is Eligibility.DATE_EXCLUDED:
            self._ineligible.add(profile_id)
            self.collector.add_date_excluded()
            return False

        if self.time_to_quit():
            return False
        if len(self.registry) >= self.config.max_profiles:
            self.max_profiles_reached = True
            log.warning("engine.max_profiles", limit=self.config.max_profiles)
            return False

        self.registry.add(profile_id, person.wikitree_id, person.requested_id)
        if person.has_biography:
            self.check_biography(person, person.biography or "")
        else:
            for error in await self.throttle.wait_for_capacity():
                log.error("engine.task_failed", error=repr(error))
            # The drain above may have stopped the run; the reserved profile stays unchecked
            if self.time_to_quit():
                return False
            self.throttle.spawn(self._fetch_and_check(person))
        return True

    async def _fetch_and_check(self, person: PersonRecord) -> None:
        try:
            response = await self.client.get_bio(person.profile_id)
        except WikiTreeError as e:
            log.warning("engine.bio_failed", profile=person.wikitree_id, error=str(e))
            return
        if response.permission_denied or response.bio is None:
            self.collector.add_privacy_excluded()
            return
        self.check_biography(person, response.bio)

    def check_biography(self, person: PersonRecord, biography: str) -> None:
        """Parse and validate one biography, then record the outcome."""
        context = source_context(person, self.config.reliable_sources_only, self.today)
        undated = is_undated(person) and person.privacy > PrivacyLevel.UNKNOWN
        parsed = self.parser.parse(
            biography, context, is_undated=undated, search_term=self.config.search_term
        )
        judgment = self.validator.validate(parsed)

        profile_id = person.profile_id
        if judgment.has_style_issues:
            self.registry.mark_style(profile_id)
        if judgment.is_marked_unsourced:
            self.registry.mark_unsourced(profile_id)
        elif not judgment.has_sources:
            self.registry.mark_possibly_unsourced(profile_id)

        self.collector.add_profile(person, parsed, judgment)
        person.biography = None

    # =========================================================================
    # Generational expansion
    # =========================================================================

    async def check_ancestors(self, root_ids: Iterable[int], generations: int) -> None:
        """Check ``generations`` of ancestors, in bounded steps past the per-request depth."""
        remaining = min(generations, self.settings.max_generations)
        frontier = list(root_ids)
        min_generation = 1
        first = True
        while remaining > 0 and frontier and not self.time_to_quit():
            depth = min(remaining, self.settings.max_ancestor_depth)
            # Frontier profiles after the first step are themselves unseen ancestors
            found = await self.check_people(
                frontier,
                ancestors=depth if first else depth - 1,
                min_generation=min_generation if first else 0,
            )
            remaining -= depth
            first = False
            frontier = sorted({
                parent
                for person in found
                for parent in person.parent_ids
                if parent not in self.registry and parent not in self._ineligible
            })
            log.debug("engine.ancestor_frontier", size=len(frontier), remaining=remaining)

    async def check_descendants(self, root_ids: Iterable[int], generations: int) -> None:
        generations = min(generations, self.settings.max_descendant_generations)
        if generations > 0 and not self.time_to_quit():
            await self.check_people(root_ids, descendants=generations, min_generation=1)

    async def check_relatives(self, degrees: int) -> None:
        """Expand immediate family of profiles with issues, ``degrees`` times.

        Each pass only expands profiles not expanded before, so the loop ends
        even when the family graph has cycles.
        """
        for degree in range(degrees):
            if self.time_to_quit():
                break
            await self.drain()
            if self.config.check_all_connections:
                candidates = self.registry.all_ids
            else:
                candidates = self.registry.issue_ids()
            todo = [pid for pid in candidates if pid not in self._expanded]
            if not todo:
                break
            self._expanded.update(todo)
            log.info("engine.relatives", degree=degree + 1, profiles=len(todo))
            await self.check_people(todo, nuclear=1)
        await self.drain()

    # =========================================================================
    # Run
    # =========================================================================

    async def run(self, strategy: CheckStrategy) -> RunSummary:
        """Run ``strategy`` then relative expansion. Never raises for remote failures."""
        log.info("engine.start", strategy=type(strategy).__name__)
        try:
            await strategy.discover(self)
            if self.config.relative_degrees > 0:
                await self.check_relatives(self.config.relative_degrees)
        except WikiTreeError as e:
            self.fail(f"Error from WikiTree: {e}")
        except asyncio.CancelledError:
            self.token.cancel()
            raise
        except Exception as e:
            log.exception("engine.unexpected_error")
            self.fail(f"Unexpected error: {e}")
        finally:
            await self.drain()

        summary = self.summary()
        log.info("engine.terminated", checked=summary.checked, reported=summary.reported,
                 canceled=summary.canceled, rate_limited=summary.rate_limited,
                 max_profiles=summary.max_profiles_reached, error=summary.error_message or None)
        return summary

    def summary(self) -> RunSummary:
        return self.collector.summary(
            redirected=self.registry.redirected_count,
            duplicates=self.registry.duplicate_count,
            requests=self.client.request_count + (self.plus_client.request_count if self.plus_client else 0),
            throttle_waits=self.throttle.waits,
            max_profiles_reached=self.max_profiles_reached,
            rate_limited=self.rate_limited,
            canceled=self.token.cancelled,
            error_message=self.error_message,
        )
