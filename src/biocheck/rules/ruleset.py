"""Rule set for biography headings, template boxes and source lines.

The rule set is built in two phases. Construction loads the static phrase
tables; ``load()`` then merges the template catalog (research note boxes,
project boxes, navigation boxes, stickers) fetched from WikiTree+. After
``load()`` the rule set is read-only and can be shared by any number of
concurrent parses.

If the catalog cannot be fetched the rule set stays usable: the template
checks simply report "not found".
"""
from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from . import phrases

logger = logging.getLogger(__name__)

# ==============================================================================
# Constants
# ==============================================================================

MIN_SOURCE_LENGTH = 15
APPROVED_STATUS = "approved"

_NON_ALPHA_SPACE = re.compile(r"[^a-z ]")
_NON_ALPHA = re.compile(r"[^a-z]")
_DIGIT_RUN = re.compile(r"\d+")


class TemplateKind(str, Enum):
    """Template categories the parser cares about."""

    RESEARCH_NOTE_BOX = "research note box"
    PROJECT_BOX = "project box"
    NAV_BOX = "navigation profile box"
    STICKER = "sticker"


class SourceVerdict(str, Enum):
    """Outcome of classifying one candidate source line.

    Members are listed in the order the elimination pipeline applies them.
    """

    TOO_SHORT = "too_short"
    INVALID_STANDALONE = "invalid_standalone"
    FINDAGRAVE_CITATION = "findagrave_citation"
    INVALID_PARTIAL = "invalid_partial"
    INVALID_START = "invalid_start"
    CENSUS_ONLY = "census_only"
    FAMILY_TREE_WITHOUT_ID = "family_tree_without_id"
    REPOSITORY_ONLY = "repository_only"
    GEDCOM_ARTIFACT = "gedcom_artifact"
    VALID = "valid"


@dataclass(frozen=True)
class SourceContext:
    """Age context that selects which extra invalid-phrase lists apply."""

    too_old_to_remember: bool = False
    is_pre1700: bool = False
    is_pre1500: bool = False


@dataclass(frozen=True)
class SourceClassification:
    """Result of classifying a candidate source line."""

    valid: bool
    reason: SourceVerdict


def _starts_with_any(line: str, entries: Iterable[str]) -> bool:
    return any(line.startswith(entry) for entry in entries)


def _contains_any(line: str, entries: Iterable[str]) -> bool:
    return any(entry in line for entry in entries)


def normalize_source_line(line: str) -> str:
    """Lower-case a candidate line and strip list bullet, "source:" prefix and trailing period."""
    text = line.strip()
    if text.startswith("*"):
        text = text[1:]
    text = text.strip().lower()
    if text.startswith("source:"):
        text = text[len("source:"):].strip()
    if text.endswith("."):
        text = text[:-1].strip()
    return text


class RuleSet:
    """Heading synonyms, template catalog and source phrase lists."""

    def __init__(self) -> None:
        self._biography_headings = frozenset(phrases.BIOGRAPHY_HEADINGS)
        self._research_notes_headings = frozenset(phrases.RESEARCH_NOTES_HEADINGS)
        self._sources_headings = frozenset(phrases.SOURCES_HEADINGS)
        self._acknowledgements_headings = frozenset(phrases.ACKNOWLEDGEMENTS_HEADINGS)
        self._census = frozenset(phrases.CENSUS_STRINGS)
        # Longest first so the most specific census term is removed
        self._census_by_length = tuple(sorted(set(phrases.CENSUS_STRINGS), key=len, reverse=True))
        self._invalid_sources = frozenset(phrases.INVALID_SOURCES)
        self._too_old_sources = frozenset(phrases.TOO_OLD_TO_REMEMBER_SOURCES)
        self._invalid_sources_pre1700 = frozenset(phrases.INVALID_SOURCES_PRE1700)

        self._research_note_boxes: dict[str, str] = {}
        self._project_boxes: frozenset[str] = frozenset()
        self._nav_boxes: frozenset[str] = frozenset()
        self._stickers: tuple[str, ...] = ()
        self._loaded = False

    # --------------------------------------------------------------------------
    # Lifecycle
    # --------------------------------------------------------------------------

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def load(self, templates: Iterable[Mapping[str, Any]] | None) -> None:
        """Merge the template catalog. Only the first call has any effect.

        Each entry is a mapping with ``name``, ``type`` and, for profile boxes,
        ``group`` and ``status``. Malformed entries are skipped. Passing ``None``
        (catalog unavailable) marks the rule set loaded with an empty catalog.
        """
        if self._loaded:
            logger.debug("Template catalog already loaded, ignoring reload")
            return

        rnb: dict[str, str] = {}
        projects: set[str] = set()
        navs: set[str] = set()
        stickers: list[str] = []
        skipped = 0

        for entry in templates or ():
            try:
                name = str(entry["name"]).lower().strip()
                kind = str(entry.get("type") or "").lower().strip()
            except (KeyError, TypeError, AttributeError):
                skipped += 1
                continue
            if not name:
                skipped += 1
                continue

            if kind == "profile box":
                group = str(entry.get("group") or "").lower().strip()
                if group == TemplateKind.RESEARCH_NOTE_BOX.value:
                    rnb[name] = str(entry.get("status") or "").lower().strip()
            elif kind == TemplateKind.NAV_BOX.value:
                navs.add(name)
            elif kind == TemplateKind.PROJECT_BOX.value:
                projects.add(name)
            elif kind == TemplateKind.STICKER.value:
                stickers.append(name)

        self._research_note_boxes = rnb
        self._project_boxes = frozenset(projects)
        self._nav_boxes = frozenset(navs)
        self._stickers = tuple(stickers)
        self._loaded = True

        if skipped:
            logger.warning("Skipped %d malformed template catalog entries", skipped)
        logger.info(
            "Loaded template catalog: %d research note boxes, %d project boxes, %d nav boxes, %d stickers",
            len(rnb), len(projects), len(navs), len(stickers),
        )

    # --------------------------------------------------------------------------
    # Headings
    # --------------------------------------------------------------------------

    def is_biography_heading(self, text: str) -> bool:
        return text.lower().strip() in self._biography_headings

    def is_research_notes_heading(self, text: str) -> bool:
        return text.lower().strip() in self._research_notes_headings

    def is_sources_heading(self, text: str) -> bool:
        return text.lower().strip() in self._sources_headings

    def is_acknowledgements_heading(self, text: str) -> bool:
        return text.lower().strip() in self._acknowledgements_headings

    # --------------------------------------------------------------------------
    # Template boxes (names are the text inside ``{{`` up to ``|`` or ``}}``)
    # --------------------------------------------------------------------------

    def is_research_notes_box(self, name: str) -> bool:
        return name.lower().strip() in self._research_note_boxes

    def research_notes_box_status(self, name: str) -> str:
        """Catalog status of a research note box, or "" if it is not one."""
        return self._research_note_boxes.get(name.lower().strip(), "")

    def is_project_box(self, name: str) -> bool:
        return name.lower().strip() in self._project_boxes

    def is_nav_box(self, name: str) -> bool:
        return name.lower().strip() in self._nav_boxes

    def is_sticker(self, name: str) -> bool:
        return _starts_with_any(name.lower().strip(), self._stickers)

    def classify_template(self, name: str) -> TemplateKind | None:
        if self.is_research_notes_box(name):
            return TemplateKind.RESEARCH_NOTE_BOX
        if self.is_project_box(name):
            return TemplateKind.PROJECT_BOX
        if self.is_nav_box(name):
            return TemplateKind.NAV_BOX
        if self.is_sticker(name):
            return TemplateKind.STICKER
        return None

    # --------------------------------------------------------------------------
    # Phrase list lookups (inputs are already lower case)
    # --------------------------------------------------------------------------

    def is_census(self, line: str) -> bool:
        return line in self._census

    def census_term(self, line: str) -> str:
        """Longest census term contained in the line, or ""."""
        for term in self._census_by_length:
            if term in line:
                return term
        return ""

    def is_invalid_source(self, line: str) -> bool:
        return line in self._invalid_sources

    def is_invalid_source_too_old(self, line: str) -> bool:
        return line in self._too_old_sources

    def is_invalid_source_pre1700(self, line: str) -> bool:
        return line in self._invalid_sources_pre1700

    def is_invalid_partial_source(self, line: str) -> bool:
        return _contains_any(line, phrases.INVALID_PARTIAL_SOURCES)

    def is_invalid_partial_source_too_old(self, line: str) -> bool:
        return _contains_any(line, phrases.INVALID_PARTIAL_SOURCES_TOO_OLD)

    def is_invalid_partial_source_pre1700(self, line: str) -> bool:
        return _contains_any(line, phrases.INVALID_PARTIAL_SOURCES_PRE1700)

    def is_invalid_start_source(self, line: str) -> bool:
        return _starts_with_any(line, phrases.INVALID_START_SOURCES)

    def contains_valid_partial_source(self, text: str) -> bool:
        return _contains_any(text.lower(), phrases.VALID_PARTIAL_SOURCES)

    # --------------------------------------------------------------------------
    # Source line classification
    # --------------------------------------------------------------------------

    def classify_source_line(self, line: str, context: SourceContext | None = None) -> SourceClassification:
        """Classify a candidate source line.

        The checks run in a fixed order and the first elimination wins. Lines
        that match several heuristics resolve according to that order.
        """
        context = context or SourceContext()
        text = normalize_source_line(line)

        if len(text) < MIN_SOURCE_LENGTH:
            return SourceClassification(False, SourceVerdict.TOO_SHORT)

        if self._is_invalid_standalone(text, context):
            return SourceClassification(False, SourceVerdict.INVALID_STANDALONE)

        if "findagrave" in text and "created by" in text:
            return SourceClassification(True, SourceVerdict.FINDAGRAVE_CITATION)

        if self._is_invalid_partial(text, context):
            return SourceClassification(False, SourceVerdict.INVALID_PARTIAL)

        if self.is_invalid_start_source(text):
            return SourceClassification(False, SourceVerdict.INVALID_START)

        if self.is_census_only(text):
            return SourceClassification(False, SourceVerdict.CENSUS_ONLY)

        if self.is_family_tree_without_id(text):
            return SourceClassification(False, SourceVerdict.FAMILY_TREE_WITHOUT_ID)

        if self.is_repository_only(text):
            return SourceClassification(False, SourceVerdict.REPOSITORY_ONLY)

        if self.is_gedcom_artifact(text):
            return SourceClassification(False, SourceVerdict.GEDCOM_ARTIFACT)

        return SourceClassification(True, SourceVerdict.VALID)

    def _is_invalid_standalone(self, text: str, context: SourceContext) -> bool:
        if self.is_invalid_source(text):
            return True
        if context.too_old_to_remember:
            if self.is_invalid_source_too_old(text):
                return True
            if context.is_pre1700 and self.is_invalid_source_pre1700(text):
                return True
        return False

    def _is_invalid_partial(self, text: str, context: SourceContext) -> bool:
        if self.is_invalid_partial_source(text):
            return True
        if context.too_old_to_remember:
            if self.is_invalid_partial_source_too_old(text):
                return True
            if context.is_pre1700 and self.is_invalid_partial_source_pre1700(text):
                return True
        return False

    def is_census_only(self, text: str) -> bool:
        """True if nothing but a census term, a date and "at"/"on" remains."""
        letters = _NON_ALPHA_SPACE.sub("", text).strip()
        if self.is_census(letters):
            return True
        term = self.census_term(letters)
        if not term:
            return False
        rest = letters.replace(term, "", 1)
        rest = rest.replace("at", "").replace("on", "")
        rest = _NON_ALPHA.sub("", rest).strip()
        return not rest or self.is_invalid_source(rest)

    @staticmethod
    def is_family_tree_without_id(text: str) -> bool:
        """True if the line cites an Ancestry member tree with no tree id after it."""
        for marker in phrases.FAMILY_TREE_MARKERS:
            position = text.find(marker)
            if position >= 0:
                tail = text[position:]
                return not any(len(run) > 4 for run in _DIGIT_RUN.findall(tail))
        return False

    @staticmethod
    def is_repository_only(text: str) -> bool:
        """True if the line is a GEDCOM repository record with only boilerplate in it."""
        if "repository" not in text:
            return False
        for token in phrases.REPOSITORY_BOILERPLATE:
            text = text.replace(token, "")
        text = text.replace("r-", "").replace("#r", "")
        return _NON_ALPHA.sub("", text) == "repository"

    @staticmethod
    def is_gedcom_artifact(text: str) -> bool:
        if text.startswith(":"):
            text = text[1:].strip()
        return _starts_with_any(text, phrases.GEDCOM_ARTIFACTS)
