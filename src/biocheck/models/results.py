"""Parse results, source judgments and style defects."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, Field

from ..rules import SourceContext

NOT_FOUND = -1


class StyleDefect(str, Enum):
    """Structural or style problems found in a biography."""

    EMPTY_BIOGRAPHY = "empty_biography"
    UNTERMINATED_COMMENT = "unterminated_comment"
    UNDATED = "undated"
    CATEGORY_NOT_AT_START = "category_not_at_start"
    MISSING_BIOGRAPHY_HEADING = "missing_biography_heading"
    MULTIPLE_BIOGRAPHY_HEADINGS = "multiple_biography_headings"
    EMPTY_BIOGRAPHY_SECTION = "empty_biography_section"
    UNEXPECTED_CONTENT_BEFORE_BIOGRAPHY = "unexpected_content_before_biography"
    MISSING_SOURCES_HEADING = "missing_sources_heading"
    MULTIPLE_SOURCES_HEADINGS = "multiple_sources_headings"
    SOURCES_HEADING_EXTRA_EQUALS = "sources_heading_extra_equals"
    MISSING_REFERENCES_TAG = "missing_references_tag"
    MULTIPLE_REFERENCES_TAGS = "multiple_references_tags"
    ACKNOWLEDGEMENTS_HEADING_EXTRA_EQUALS = "acknowledgements_heading_extra_equals"
    ACKNOWLEDGEMENTS_BEFORE_SOURCES = "acknowledgements_before_sources"
    UNKNOWN_SECTION_HEADING = "unknown_section_heading"
    UNTERMINATED_REF = "unterminated_ref"
    REF_AFTER_REFERENCES = "ref_after_references"
    UNTERMINATED_SPAN = "unterminated_span"
    RESEARCH_NOTE_BOX_OUT_OF_ORDER = "research_note_box_out_of_order"
    RESEARCH_NOTE_BOX_STATUS = "research_note_box_status"
    MISSING_RESEARCH_NOTE_BOX = "missing_research_note_box"
    PROJECT_BOX_OUT_OF_ORDER = "project_box_out_of_order"
    NAV_BOX_OUT_OF_ORDER = "nav_box_out_of_order"
    STICKER_OUT_OF_ORDER = "sticker_out_of_order"
    MIGHT_HAVE_EMAIL = "might_have_email"


@dataclass(frozen=True)
class Heading:
    level: int
    text: str


@dataclass(frozen=True)
class ParseResult:
    """Everything the parser learned about one biography.

    Indices refer to ``lines`` and are ``NOT_FOUND`` when the section is absent.
    ``lines`` is the working buffer: comments removed and the Research Notes
    and Acknowledgements sections blanked.
    """

    lines: tuple[str, ...] = ()
    biography_index: int = NOT_FOUND
    sources_index: int = NOT_FOUND
    references_index: int = NOT_FOUND
    acknowledgements_index: int = NOT_FOUND
    research_notes_index: int = NOT_FOUND
    headings: tuple[Heading, ...] = ()
    unexpected_lines: tuple[str, ...] = ()
    wrong_level_headings: tuple[str, ...] = ()
    missing_research_note_boxes: tuple[str, ...] = ()
    ref_strings: tuple[str, ...] = ()
    named_ref_strings: tuple[str, ...] = ()
    style_defects: frozenset[StyleDefect] = frozenset()
    section_messages: tuple[str, ...] = ()
    style_messages: tuple[str, ...] = ()
    context: SourceContext = field(default_factory=SourceContext)
    is_empty: bool = False
    is_marked_unsourced: bool = False
    is_undated: bool = False
    is_uncertain_existence: bool = False
    has_categories: bool = False
    has_search_string: bool = False
    possible_sources_line_count: int = 0
    normalized_text: str = field(default="", repr=False)

    @property
    def total_lines(self) -> int:
        return len(self.lines)

    @property
    def inline_ref_count(self) -> int:
        return len(self.ref_strings) + len(self.named_ref_strings)

    @property
    def has_style_issues(self) -> bool:
        return bool(self.style_defects)

    @property
    def messages(self) -> tuple[str, ...]:
        return self.section_messages + self.style_messages

    def has_defect(self, defect: StyleDefect) -> bool:
        return defect in self.style_defects


class Judgment(BaseModel):
    """Sourcing verdict for one biography."""

    model_config = {"frozen": True}

    has_sources: bool = False
    is_marked_unsourced: bool = False
    is_empty: bool = False
    is_undated: bool = False
    valid_sources: list[str] = Field(default_factory=list)
    invalid_sources: list[str] = Field(default_factory=list)
    invalid_span_targets: list[str] = Field(default_factory=list)
    style_defects: list[StyleDefect] = Field(default_factory=list)
    messages: list[str] = Field(default_factory=list)
    misplaced_line_count: int = 0

    @property
    def has_style_issues(self) -> bool:
        return bool(self.style_defects)

    @property
    def is_possibly_unsourced(self) -> bool:
        return not self.has_sources and not self.is_marked_unsourced

    def has_defect(self, defect: StyleDefect) -> bool:
        return defect in self.style_defects
