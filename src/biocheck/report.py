"""Result collection, report rows and the end-of-run summary."""
from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from .models.config import CheckConfig, ReportMode
from .models.person import PersonRecord
from .models.results import Judgment, ParseResult, StyleDefect

logger = logging.getLogger(__name__)

INCOMPLETE = "Results may be incomplete."


class ProfileStatus(str, Enum):
    SOURCED = "Sourced"
    MARKED = "Marked"
    POSSIBLY_UNSOURCED = "?"


# Report columns that group several defects, in display order
_DEFECT_COLUMNS: dict[str, tuple[tuple[StyleDefect, str], ...]] = {
    "missing_end": (
        (StyleDefect.UNTERMINATED_COMMENT, "Comment"),
        (StyleDefect.UNTERMINATED_REF, "ref tag"),
        (StyleDefect.UNTERMINATED_SPAN, "span"),
    ),
    "biography_heading": (
        (StyleDefect.MISSING_BIOGRAPHY_HEADING, "Missing"),
        (StyleDefect.MULTIPLE_BIOGRAPHY_HEADINGS, "Multiple"),
        (StyleDefect.EMPTY_BIOGRAPHY_SECTION, "Empty"),
    ),
    "sources_heading": (
        (StyleDefect.MISSING_SOURCES_HEADING, "Missing"),
        (StyleDefect.MULTIPLE_SOURCES_HEADINGS, "Multiple"),
        (StyleDefect.SOURCES_HEADING_EXTRA_EQUALS, "Extra ="),
    ),
    "references_tag": (
        (StyleDefect.MISSING_REFERENCES_TAG, "Missing"),
        (StyleDefect.MULTIPLE_REFERENCES_TAGS, "Multiple"),
        (StyleDefect.REF_AFTER_REFERENCES, "ref Following"),
    ),
    "acknowledgements": (
        (StyleDefect.ACKNOWLEDGEMENTS_HEADING_EXTRA_EQUALS, "Extra ="),
        (StyleDefect.ACKNOWLEDGEMENTS_BEFORE_SOURCES, "Before Sources"),
    ),
}


def defect_columns(defects: list[StyleDefect]) -> dict[str, str]:
    """Collapse defects into the grouped report columns (``"Missing, Multiple"``)."""
    present = set(defects)
    return {
        column: ", ".join(label for defect, label in entries if defect in present)
        for column, entries in _DEFECT_COLUMNS.items()
    }


# =============================================================================
# Rows
# =============================================================================

class ProfileReport(BaseModel):
    """One reported profile in the default (style and sourcing) report."""

    profile_id: int
    wikitree_id: str
    name: str = ""
    link: str = ""
    status: ProfileStatus = ProfileStatus.SOURCED
    privacy: str = ""
    birth_date: str = ""
    death_date: str = ""
    is_empty: bool = False
    missing_end: str = ""
    biography_heading: str = ""
    sources_heading: str = ""
    references_tag: str = ""
    acknowledgements: str = ""
    bio_line_count: int = 0
    inline_ref_count: int = 0
    source_line_count: int = 0
    misplaced_line_count: int = 0
    has_search_string: bool = False
    defects: list[StyleDefect] = Field(default_factory=list)
    messages: list[str] = Field(default_factory=list)


class SourceRow(BaseModel):
    """One source line. ``source_number`` is 0 for invalid lines and -1 when none were found."""

    profile_id: int
    wikitree_id: str
    name: str = ""
    link: str = ""
    source_number: int = -1
    source_line: str = ""


class ReviewRow(BaseModel):
    """Profile review worksheet row."""

    wikitree_id: str
    name: str = ""
    link: str = ""
    status: ProfileStatus = ProfileStatus.SOURCED
    has_style_issues: bool = False
    privacy: str = ""
    is_orphan: bool = False
    birth_date: str = ""
    death_date: str = ""


# =============================================================================
# Summary
# =============================================================================

class RunSummary(BaseModel):
    """Terminal counters and flags for one run. Always produced, even after an error."""

    checked: int = 0
    reported: int = 0
    style_issues: int = 0
    marked_unsourced: int = 0
    possibly_unsourced: int = 0
    total_profiles: int = 0
    privacy_excluded: int = 0
    date_excluded: int = 0
    redirected: int = 0
    duplicates: int = 0
    requests: int = 0
    throttle_waits: int = 0
    max_profiles_reached: bool = False
    report_limit_reached: bool = False
    rate_limited: bool = False
    canceled: bool = False
    error_message: str = ""

    @property
    def incomplete(self) -> bool:
        return (
            self.max_profiles_reached
            or self.report_limit_reached
            or self.rate_limited
            or self.canceled
            or bool(self.error_message)
        )

    @property
    def progress_message(self) -> str:
        msg = (
            f"Checked {self.checked} profiles: Found {self.reported} profiles with "
            f"{self.style_issues} style issues; {self.marked_unsourced} marked unsourced; "
            f"{self.possibly_unsourced} possibly unsourced not marked"
        )
        if self.canceled:
            msg = "Canceled. " + msg
        return msg

    @property
    def notes(self) -> list[str]:
        notes = []
        if self.rate_limited:
            notes.append(f"The WikiTree server is busy, try again later. {INCOMPLETE}")
        if self.max_profiles_reached:
            notes.append(f"Reached maximum number of profiles. {INCOMPLETE}")
        if self.report_limit_reached:
            notes.append(f"Reached maximum number of reported profiles. {INCOMPLETE}")
        if self.canceled:
            notes.append(f"Check canceled. {INCOMPLETE}")
        if self.error_message:
            notes.append(f"{self.error_message} {INCOMPLETE}")
        return notes

    @property
    def state_message(self) -> str:
        msg = f"Check completed. Examined {self.total_profiles} unique profiles."
        excluded = self.privacy_excluded + self.date_excluded
        if excluded > 0:
            msg += f" Privacy, date, or other reasons did not allow checking for {excluded} profiles."
        for note in self.notes:
            msg += " " + note
        return msg


# =============================================================================
# Collector
# =============================================================================

class ResultCollector:
    """Accumulates counters and rows as profiles are checked.

    All mutation happens from the engine's single event loop, so no locking.
    """

    def __init__(self, config: CheckConfig | None = None) -> None:
        self.config = config or CheckConfig()
        self.rows: list[ProfileReport] = []
        self.source_rows: list[SourceRow] = []
        self.review_rows: list[ReviewRow] = []
        self.total_profiles = 0
        self.checked = 0
        self.reported = 0
        self.style_issues = 0
        self.marked_unsourced = 0
        self.possibly_unsourced = 0
        self.privacy_excluded = 0
        self.date_excluded = 0

    @property
    def report_limit_reached(self) -> bool:
        return self.reported >= self.config.max_report_rows

    def count_profiles(self, count: int = 1) -> None:
        self.total_profiles += count

    def add_privacy_excluded(self) -> None:
        self.privacy_excluded += 1

    def add_date_excluded(self) -> None:
        self.date_excluded += 1

    def add_profile(self, person: PersonRecord, parsed: ParseResult, judgment: Judgment) -> bool:
        """Count a checked profile and emit its row if the report mode wants it.

        Returns True when the profile was reported.
        """
        config = self.config
        self.checked += 1
        status = ProfileStatus.SOURCED

        report = config.report_mode is ReportMode.ALL
        if config.report_mode is ReportMode.NON_MANAGED and person.manager_id != config.user_id:
            report = True

        if parsed.is_uncertain_existence:
            logger.info("Profile %s is Uncertain Existence, not reported", person.wikitree_id)
        else:
            if judgment.has_style_issues:
                self.style_issues += 1
                report = True
            if judgment.is_empty:
                report = True
            if judgment.is_marked_unsourced:
                self.marked_unsourced += 1
                status = ProfileStatus.MARKED
                report = True
            elif not judgment.has_sources:
                self.possibly_unsourced += 1
                status = ProfileStatus.POSSIBLY_UNSOURCED
                report = True
            elif judgment.is_undated:
                report = True

        if not report:
            return False
        self.reported += 1
        if config.stats_only or self.reported > config.max_report_rows:
            return True

        if config.sources_report:
            self._add_source_rows(person, judgment)
        elif config.review_report:
            self.review_rows.append(
                ReviewRow(
                    wikitree_id=person.wikitree_id,
                    name=person.report_name,
                    link=person.link,
                    status=status,
                    has_style_issues=judgment.has_style_issues,
                    privacy=person.privacy_label,
                    is_orphan=person.is_orphan,
                    birth_date=str(person.birth),
                    death_date=str(person.death),
                )
            )
        else:
            self.rows.append(
                ProfileReport(
                    profile_id=person.profile_id,
                    wikitree_id=person.wikitree_id,
                    name=person.report_name,
                    link=person.link,
                    status=status,
                    privacy=person.privacy_label,
                    birth_date=str(person.birth),
                    death_date=str(person.death),
                    is_empty=judgment.is_empty,
                    bio_line_count=parsed.total_lines,
                    inline_ref_count=parsed.inline_ref_count,
                    source_line_count=parsed.possible_sources_line_count,
                    misplaced_line_count=judgment.misplaced_line_count,
                    has_search_string=parsed.has_search_string,
                    defects=judgment.style_defects,
                    messages=judgment.messages,
                    **defect_columns(judgment.style_defects),
                )
            )
        return True

    def _add_source_rows(self, person: PersonRecord, judgment: Judgment) -> None:
        def row(number: int, line: str) -> SourceRow:
            return SourceRow(
                profile_id=person.profile_id,
                wikitree_id=person.wikitree_id,
                name=person.report_name,
                link=person.link,
                source_number=number,
                source_line=line,
            )

        if not judgment.invalid_sources and not judgment.valid_sources:
            self.source_rows.append(row(-1, ""))
            return
        self.source_rows.extend(row(0, line) for line in judgment.invalid_sources)
        if self.config.report_mode is ReportMode.ALL:
            self.source_rows.extend(row(i + 1, line) for i, line in enumerate(judgment.valid_sources))

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------

    def sorted_rows(self) -> list[BaseModel]:
        """The active report's rows, ordered by WikiTree id ignoring case."""
        if self.config.sources_report:
            rows: list[Any] = self.source_rows
        elif self.config.review_report:
            rows = self.review_rows
        else:
            rows = self.rows
        return sorted(rows, key=lambda r: r.wikitree_id.lower())

    def summary(self, **extra: Any) -> RunSummary:
        """Snapshot the counters; ``extra`` supplies engine-side counts and flags."""
        return RunSummary(
            checked=self.checked,
            reported=self.reported,
            style_issues=self.style_issues,
            marked_unsourced=self.marked_unsourced,
            possibly_unsourced=self.possibly_unsourced,
            total_profiles=self.total_profiles,
            privacy_excluded=self.privacy_excluded,
            date_excluded=self.date_excluded,
            report_limit_reached=self.report_limit_reached,
            **extra,
        )

    def write_json(self, path: str | Path, summary: RunSummary) -> Path:
        """Write rows and summary to a JSON file."""
        path = Path(path)
        payload = {
            "summary": summary.model_dump(mode="json"),
            "messages": [summary.progress_message, summary.state_message],
            "rows": [row.model_dump(mode="json") for row in self.sorted_rows()],
        }
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.info("Wrote %d rows to %s", len(payload["rows"]), path)
        return path
