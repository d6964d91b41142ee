"""Shared fixtures: a loaded rule set and an in-memory WikiTree."""
from __future__ import annotations

import asyncio
from collections.abc import Iterable
from datetime import date
from typing import Any

import pytest

from biocheck.crawl import TraversalEngine
from biocheck.models import CheckConfig, EngineSettings
from biocheck.rules import RuleSet
from biocheck.sources import BioResponse, PeopleResponse, ProfileResponse, WatchlistResponse, WikiTreeAPIError
from biocheck.sources.wikitree_plus import QueryResponse

TEMPLATE_CATALOG: list[dict[str, Any]] = [
    {"name": "Estimated Date", "type": "profile box", "group": "research note box", "status": "approved"},
    {"name": "Unknown Parents", "type": "profile box", "group": "research note box", "status": "approved"},
    {"name": "Uncertain Parentage", "type": "profile box", "group": "research note box", "status": "beta"},
    {"name": "US Civil War", "type": "project box"},
    {"name": "Mayflower Navbox", "type": "navigation profile box"},
    {"name": "Died Young", "type": "sticker"},
    {"name": "Sticker Without Type"},
    "not a mapping",
]

SOURCED_BIO = (
    "== Biography ==\nHello\n== Sources ==\n"
    "Smith, John. Birth certificate, county archive, 1850.\n<references />"
)
UNSOURCED_BIO = "== Biography ==\nJohn was born in 1850.\n\n== Sources ==\n<references />"


def make_profile(
    profile_id: int,
    name: str | None = None,
    *,
    father: int = 0,
    mother: int = 0,
    privacy: int = 60,
    manager: int = 1,
    birth: str = "1850-01-01",
    death: str = "1920-05-01",
    bio: str | None = SOURCED_BIO,
) -> dict[str, Any]:
    """A profile as the API returns it; ``bio=None`` leaves the Bio field out."""
    data: dict[str, Any] = {
        "Id": profile_id,
        "Name": f"Smith-{profile_id}" if name is None else name,
        "FirstName": "John",
        "LastNameAtBirth": "Smith",
        "LastNameCurrent": "Smith",
        "Privacy": privacy,
        "Manager": manager,
        "IsLiving": 0,
        "BirthDate": birth,
        "DeathDate": death,
        "Father": father,
        "Mother": mother,
    }
    if bio is not None:
        data["Bio"] = bio
    return data


class FakeWikiTree:
    """In-memory stand-in for ``WikiTreeClient`` built from linked profiles."""

    def __init__(self, profiles: Iterable[dict[str, Any]], bios: dict[int, str] | None = None) -> None:
        self.profiles: dict[int, dict[str, Any]] = {p["Id"]: p for p in profiles}
        self.bios = bios or {}
        self.denied: set[int] = set()
        self.failing_bios: set[int] = set()
        self.people_status = ""
        self.people_error: Exception | None = None
        self.watchlist: list[int] = []
        self.redirects: dict[int, int] = {}
        self.request_count = 0
        self.people_calls: list[dict[str, Any]] = []
        self.bio_calls: list[int] = []
        self.watchlist_calls: list[tuple[int, int]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.on_bio = None

    def _children(self, profile_id: int) -> list[int]:
        return [
            pid for pid, p in self.profiles.items()
            if profile_id in (p.get("Father"), p.get("Mother"))
        ]

    def _parents(self, profile_id: int) -> list[int]:
        p = self.profiles.get(profile_id, {})
        return [pid for pid in (p.get("Father"), p.get("Mother")) if pid]

    def _walk(self, root: int, step, depth: int, found: dict[int, int]) -> None:
        frontier = [root]
        for generation in range(1, depth + 1):
            nxt = []
            for pid in frontier:
                for other in step(pid):
                    if other not in found:
                        found[other] = generation
                        nxt.append(other)
            frontier = nxt

    async def get_profile(self, key, fields=None) -> ProfileResponse:
        self.request_count += 1
        for p in self.profiles.values():
            if str(key) in (str(p["Id"]), p["Name"]):
                return ProfileResponse(person=p)
        return ProfileResponse(status="Invalid page name")

    async def get_people(
        self, keys, *, fields=None, ancestors=0, descendants=0, nuclear=0, min_generation=0, limit=1000, start=0
    ) -> PeopleResponse:
        keys = [int(k) for k in keys]
        self.request_count += 1
        self.people_calls.append(
            {"keys": keys, "ancestors": ancestors, "descendants": descendants, "nuclear": nuclear,
             "min_generation": min_generation, "limit": limit, "start": start}
        )
        if self.people_error is not None:
            raise self.people_error
        if self.people_status:
            return PeopleResponse(status=self.people_status)

        found: dict[int, int] = {}
        redirected: dict[int, int] = {}
        for requested in keys:
            key = self.redirects.get(requested, requested)
            if key != requested:
                redirected[key] = requested
            found.setdefault(key, 0)
            self._walk(key, self._parents, ancestors, found)
            self._walk(key, self._children, descendants, found)
            if nuclear:
                for pid in self._parents(key) + self._children(key):
                    found.setdefault(pid, 1)
                for parent in self._parents(key):
                    for sibling in self._children(parent):
                        found.setdefault(sibling, 1)
        ids = [pid for pid, gen in found.items() if gen >= min_generation and pid in self.profiles]
        page = ids[start:start + limit]
        return PeopleResponse(
            people={str(pid): self.profiles[pid] for pid in page},
            redirects={pid: req for pid, req in redirected.items() if pid in page},
        )

    async def get_bio(self, key) -> BioResponse:
        self.request_count += 1
        self.bio_calls.append(int(key))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if self.on_bio is not None:
                self.on_bio(int(key))
            if int(key) in self.failing_bios:
                raise WikiTreeAPIError("boom", status_code=500)
            if int(key) in self.denied:
                return BioResponse(status="Permission denied.")
            return BioResponse(bio=self.bios.get(int(key)))
        finally:
            self.in_flight -= 1

    async def get_watchlist(self, *, offset=0, limit=1, fields=None) -> WatchlistResponse:
        self.request_count += 1
        self.watchlist_calls.append((offset, limit))
        page = self.watchlist[offset:offset + limit]
        return WatchlistResponse(count=len(self.watchlist), profiles=[self.profiles[pid] for pid in page])


class FakePlus:
    """In-memory stand-in for ``WikiTreePlusClient``."""

    def __init__(self, profiles: list[int], found: int | None = None) -> None:
        self.profiles = profiles
        self.found = len(profiles) if found is None else found
        self.request_count = 0
        self.searches: list[tuple[str, int]] = []

    async def search(self, query: str, max_profiles: int = 1000, *, open_only: bool = False) -> QueryResponse:
        self.request_count += 1
        self.searches.append((query, max_profiles))
        return QueryResponse(found=self.found, profiles=self.profiles[:max_profiles])


@pytest.fixture
def rules() -> RuleSet:
    rule_set = RuleSet()
    rule_set.load(TEMPLATE_CATALOG)
    return rule_set


@pytest.fixture
def bare_rules() -> RuleSet:
    rule_set = RuleSet()
    rule_set.load(None)
    return rule_set


@pytest.fixture
def make_engine(rules):
    """Build a ``TraversalEngine`` over fake clients with no throttle delay."""

    def build(client, *, plus=None, settings=None, token=None, **config):
        return TraversalEngine(
            client,
            rules,
            CheckConfig(**config),
            settings=settings or EngineSettings(sync_delay=0),
            token=token,
            plus_client=plus,
            today=date(2026, 1, 1),
        )

    return build
