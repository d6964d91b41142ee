"""Profile records and the date and privacy predicates derived from them."""
from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date
from enum import Enum, IntEnum
from typing import Any

from pydantic import BaseModel, Field

from ..rules import SourceContext

WIKITREE_PROFILE_URL = "https://www.wikitree.com/wiki/"
REDIRECT_MARKER = "#REDIRECT"

# Born more than this many years ago, or died more than DEATH_MEMORY_YEARS ago
BIRTH_MEMORY_YEARS = 150
DEATH_MEMORY_YEARS = 100

_DATE_PATTERN = re.compile(r"^(\d{4})(?:-(\d{1,2}))?(?:-(\d{1,2}))?")
_DECADE_PATTERN = re.compile(r"^(\d{3,4})s")


class PrivacyLevel(IntEnum):
    """WikiTree privacy levels."""

    UNKNOWN = 0
    UNLISTED = 10
    PRIVATE = 20
    PRIVATE_PUBLIC_BIO = 30
    PRIVATE_PUBLIC_TREE = 35
    PRIVATE_PUBLIC_BIO_TREE = 40
    PUBLIC = 50
    OPEN = 60


# Lowest level a logged-out user can read, and the level "open only" requires
MIN_PRIVACY = PrivacyLevel.PRIVATE_PUBLIC_BIO_TREE
OPEN_PRIVACY = PrivacyLevel.OPEN

PRIVACY_LABELS: dict[int, str] = {
    PrivacyLevel.UNKNOWN: "Unknown",
    PrivacyLevel.UNLISTED: "Black",
    PrivacyLevel.PRIVATE: "Red",
    PrivacyLevel.PRIVATE_PUBLIC_BIO: "Orange",
    PrivacyLevel.PRIVATE_PUBLIC_TREE: "Light Orange",
    PrivacyLevel.PRIVATE_PUBLIC_BIO_TREE: "Yellow",
    PrivacyLevel.PUBLIC: "Green",
    PrivacyLevel.OPEN: "",
}


class DatePrecision(IntEnum):
    UNKNOWN = 0
    DECADE = 1
    YEAR = 2
    MONTH = 3
    DAY = 4


class ProfileDate(BaseModel):
    """A WikiTree date. Unknown parts are ``0`` in the API (``1850-03-00``)."""

    model_config = {"frozen": True}

    year: int | None = None
    month: int | None = None
    day: int | None = None
    precision: DatePrecision = DatePrecision.UNKNOWN

    @classmethod
    def parse(cls, value: str | None, decade: str | None = None) -> ProfileDate:
        """Parse an API date, falling back to the ``...DateDecade`` field."""
        match = _DATE_PATTERN.match((value or "").strip())
        if match:
            year = int(match.group(1))
            month = int(match.group(2) or 0)
            day = int(match.group(3) or 0)
            if year > 0:
                if month and day:
                    return cls(year=year, month=month, day=day, precision=DatePrecision.DAY)
                if month:
                    return cls(year=year, month=month, precision=DatePrecision.MONTH)
                return cls(year=year, precision=DatePrecision.YEAR)

        match = _DECADE_PATTERN.match((decade or "").strip())
        if match:
            return cls(year=int(match.group(1)), precision=DatePrecision.DECADE)
        return cls()

    @property
    def is_known(self) -> bool:
        return self.year is not None

    def __str__(self) -> str:
        if self.precision == DatePrecision.DAY:
            return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"
        if self.precision == DatePrecision.MONTH:
            return f"{self.year:04d}-{self.month:02d}"
        if self.precision == DatePrecision.YEAR:
            return f"{self.year:04d}"
        if self.precision == DatePrecision.DECADE:
            return f"{self.year}s"
        return ""


class PersonRecord(BaseModel):
    """One profile as returned by the WikiTree API.

    ``biography`` is only held until the biography has been checked.
    """

    profile_id: int = Field(description="Server-assigned numeric id")
    wikitree_id: str = Field(description="Display id, e.g. Smith-123")
    first_name: str = ""
    last_name_current: str = ""
    last_name_at_birth: str = ""
    manager_id: int = Field(default=0, description="0 when the profile is orphaned")
    privacy: int = Field(default=PrivacyLevel.UNKNOWN)
    is_living: bool = False
    birth: ProfileDate = Field(default_factory=ProfileDate)
    death: ProfileDate = Field(default_factory=ProfileDate)
    father_id: int = 0
    mother_id: int = 0
    biography: str | None = None
    requested_id: int | None = Field(default=None, description="Id we asked for, when it differs after a redirect")

    @classmethod
    def from_api(cls, data: Mapping[str, Any], requested_id: int | None = None) -> PersonRecord | None:
        """Build a record from an API profile. Returns None if the profile has no Name."""
        name = data.get("Name")
        if not name:
            return None
        try:
            profile_id = int(data.get("Id") or 0)
        except (TypeError, ValueError):
            return None

        return cls(
            profile_id=profile_id,
            wikitree_id=str(name),
            first_name=str(data.get("FirstName") or data.get("RealName") or ""),
            last_name_current=str(data.get("LastNameCurrent") or ""),
            last_name_at_birth=str(data.get("LastNameAtBirth") or ""),
            manager_id=_as_int(data.get("Manager")),
            privacy=_as_int(data.get("Privacy")),
            is_living=bool(_as_int(data.get("IsLiving"))),
            birth=ProfileDate.parse(data.get("BirthDate"), data.get("BirthDateDecade")),
            death=ProfileDate.parse(data.get("DeathDate"), data.get("DeathDateDecade")),
            father_id=_as_int(data.get("Father")),
            mother_id=_as_int(data.get("Mother")),
            biography=data.get("Bio"),
            requested_id=requested_id,
        )

    @property
    def report_name(self) -> str:
        last = self.last_name_current or self.last_name_at_birth
        return f"{self.first_name} {last}".strip()

    @property
    def link(self) -> str:
        return WIKITREE_PROFILE_URL + self.wikitree_id

    @property
    def privacy_label(self) -> str:
        return PRIVACY_LABELS.get(self.privacy, str(self.privacy))

    @property
    def has_biography(self) -> bool:
        return self.biography is not None and not self.biography.startswith(REDIRECT_MARKER)

    @property
    def is_orphan(self) -> bool:
        return self.manager_id == 0

    @property
    def is_redirected(self) -> bool:
        return self.requested_id is not None and self.requested_id != self.profile_id

    @property
    def parent_ids(self) -> list[int]:
        return [pid for pid in (self.father_id, self.mother_id) if pid]


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


# ==============================================================================
# Date predicates
# ==============================================================================


def _reference_year(person: PersonRecord) -> int | None:
    if person.birth.is_known:
        return person.birth.year
    if person.death.is_known:
        return person.death.year
    return None


def is_pre1500(person: PersonRecord) -> bool:
    year = _reference_year(person)
    return year is not None and year < 1500


def is_pre1700(person: PersonRecord) -> bool:
    year = _reference_year(person)
    return year is not None and year < 1700


def is_too_old_to_remember(person: PersonRecord, today: date | None = None) -> bool:
    """True if no living person could have known the subject."""
    current = (today or date.today()).year
    if person.birth.is_known and current - person.birth.year > BIRTH_MEMORY_YEARS:
        return True
    if person.death.is_known and current - person.death.year > DEATH_MEMORY_YEARS:
        return True
    return False


def is_undated(person: PersonRecord) -> bool:
    return not person.birth.is_known and not person.death.is_known


def source_context(person: PersonRecord, reliable_sources_only: bool = False, today: date | None = None) -> SourceContext:
    """Age context for source classification.

    Reliable-sources-only applies the full pre-1700 rules regardless of dates.
    """
    if reliable_sources_only:
        return SourceContext(too_old_to_remember=True, is_pre1700=True, is_pre1500=is_pre1500(person))
    return SourceContext(
        too_old_to_remember=is_too_old_to_remember(person, today),
        is_pre1700=is_pre1700(person),
        is_pre1500=is_pre1500(person),
    )


# ==============================================================================
# Eligibility
# ==============================================================================


class Eligibility(str, Enum):
    ELIGIBLE = "eligible"
    PRIVACY_EXCLUDED = "privacy"
    DATE_EXCLUDED = "date"


def check_eligibility(
    person: PersonRecord | None,
    *,
    user_id: int = 0,
    open_only: bool = False,
    ignore_pre1500: bool = False,
) -> Eligibility:
    """Decide whether a profile may be checked.

    Profiles without a Name, profiles below the public privacy floor when
    nobody is logged in, and non-open profiles under ``open_only`` are
    privacy exclusions. Pre-1500 profiles under ``ignore_pre1500`` are date
    exclusions.
    """
    if person is None:
        return Eligibility.PRIVACY_EXCLUDED
    if person.privacy < MIN_PRIVACY and user_id == 0:
        return Eligibility.PRIVACY_EXCLUDED
    if open_only and person.privacy < OPEN_PRIVACY:
        return Eligibility.PRIVACY_EXCLUDED
    if ignore_pre1500 and is_pre1500(person):
        return Eligibility.DATE_EXCLUDED
    return Eligibility.ELIGIBLE
