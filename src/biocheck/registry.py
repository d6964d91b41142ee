"""Registry of profiles seen during one run.

The registry only grows: a profile, once added, stays for the rest of the
run so it is never checked twice.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RegistryEntry:
    profile_id: int
    wikitree_id: str


class ProfileRegistry:
    """Profiles reserved or checked this run, plus result buckets for relative expansion."""

    def __init__(self) -> None:
        self._entries: dict[int, RegistryEntry] = {}
        self._redirected: set[int] = set()
        self._style: set[int] = set()
        self._marked: set[int] = set()
        self._possibly_unsourced: set[int] = set()
        self.duplicate_count = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, profile_id: object) -> bool:
        """Pure membership test; does not touch the duplicate counter."""
        return profile_id in self._entries or profile_id in self._redirected

    def add(self, profile_id: int, wikitree_id: str, requested_id: int | None = None) -> bool:
        """Register a profile. First write wins; returns False if it was already present."""
        if requested_id is not None and requested_id != profile_id:
            self._redirected.add(requested_id)
        if profile_id in self._entries:
            return False
        self._entries[profile_id] = RegistryEntry(profile_id, wikitree_id)
        return True

    def has(self, profile_id: int) -> bool:
        """Counted lookup: a hit is recorded as a duplicate sighting.

        Ids that redirected to a registered profile count as seen.
        """
        if profile_id in self:
            self.duplicate_count += 1
            return True
        return False

    def get(self, profile_id: int) -> RegistryEntry | None:
        return self._entries.get(profile_id)

    # --------------------------------------------------------------------------
    # Result buckets
    # --------------------------------------------------------------------------

    def mark_style(self, profile_id: int) -> None:
        self._style.add(profile_id)

    def mark_unsourced(self, profile_id: int) -> None:
        self._marked.add(profile_id)

    def mark_possibly_unsourced(self, profile_id: int) -> None:
        self._possibly_unsourced.add(profile_id)

    @property
    def all_ids(self) -> list[int]:
        return list(self._entries)

    @property
    def style_ids(self) -> list[int]:
        return sorted(self._style)

    @property
    def marked_ids(self) -> list[int]:
        return sorted(self._marked)

    @property
    def possibly_unsourced_ids(self) -> list[int]:
        return sorted(self._possibly_unsourced)

    @property
    def redirected_count(self) -> int:
        return len(self._redirected)

    def issue_ids(self) -> list[int]:
        """Snapshot of every profile in any result bucket."""
        return sorted(self._style | self._marked | self._possibly_unsourced)

    def wikitree_ids(self) -> list[str]:
        return sorted((entry.wikitree_id for entry in self._entries.values()), key=str.lower)
