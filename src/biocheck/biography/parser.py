"""Biography parser.

Turns the raw wiki markup of a WikiTree biography into a ``ParseResult``:
section positions, headings, inline citations, and the style defects found
along the way. Malformed markup is the common case, so the parser never
raises for it; every problem becomes a defect.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field

from ..models.results import NOT_FOUND, Heading, ParseResult, StyleDefect
from ..rules import RuleSet, SourceContext, TemplateKind

# ==============================================================================
# Markup
# ==============================================================================

COMMENT_START = "<!--"
COMMENT_END = "-->"
HEADING_START = "=="
REFERENCES_TAG = "<references"
TEMPLATE_START = "{{"
TEMPLATE_END = "}}"
CATEGORY_LINK = "[[category"
UNSOURCED = "unsourced"
UNSOURCED_TEMPLATES = ("{{unsourced", "{{ unsourced")
UNCERTAIN_EXISTENCE = "uncertain existence"
NOTOC = "__notoc__"
TOC = "__toc__"

MAX_HEADING_LEVEL = 3
MAX_UNEXPECTED_LINES = 5
UNEXPECTED_LINE_WIDTH = 40

_BR = re.compile(r"<br\b[^>]*>", re.IGNORECASE)
_REF_START = re.compile(r"<ref>", re.IGNORECASE)
_REF_END = re.compile(r"</ref\s*>", re.IGNORECASE)
_NAMED_REF_START = re.compile(r"<ref\s+name", re.IGNORECASE)
_EMAIL = re.compile(r"^[a-z0-9._%+-]+@[a-z0-9-]+(?:\.[a-z0-9-]+)*\.[a-z]{2,3}$")
_EMAIL_PUNCTUATION = "()<>[]{},;:\"'"


def strip_comments(text: str) -> str | None:
    """Remove ``<!-- ... -->`` spans. Returns None if a comment never ends."""
    parts: list[str] = []
    pos = 0
    while True:
        start = text.find(COMMENT_START, pos)
        if start < 0:
            parts.append(text[pos:])
            return "".join(parts)
        end = text.find(COMMENT_END, start + len(COMMENT_START))
        if end < 0:
            return None
        parts.append(text[pos:start])
        pos = end + len(COMMENT_END)


def split_lines(text: str) -> list[str]:
    """Split on newlines, moving text that follows a ``<references />`` tag to its own line."""
    lines: list[str] = []
    for raw in text.split("\n"):
        raw = raw.rstrip("\r")
        pos = raw.lower().find(REFERENCES_TAG)
        if pos >= 0:
            close = raw.find(">", pos)
            if close >= 0 and raw[close + 1:].strip():
                lines.append(raw[: close + 1])
                lines.append(raw[close + 1:])
                continue
        lines.append(raw)
    return lines


def is_blank(line: str) -> bool:
    """Blank lines and separator lines (only dashes) count as empty."""
    return not line.replace("-", "").strip()


def parse_heading(line: str) -> Heading:
    """Level and text of a ``== Heading ==`` line, with bold/italic quotes removed."""
    stripped = line.strip()
    count = len(stripped) - len(stripped.lstrip("="))
    text = stripped[count:]
    cut = text.find("=")
    if cut >= 0:
        text = text[:cut]
    text = text.strip().strip("'").strip()
    return Heading(min(count, MAX_HEADING_LEVEL), text)


def might_be_email(line: str) -> bool:
    """True if the line looks like it holds an email address, even one spaced out."""
    at = line.find("@")
    if at < 0:
        return False
    if _EMAIL.match(line):
        return True
    for part in line.split():
        if _EMAIL.match(part.strip(_EMAIL_PUNCTUATION)):
            return True
    # Spaces put in to dodge detection: last word before the @ plus everything after
    before = line[:at].strip()
    space = before.rfind(" ")
    candidate = (before[space + 1:] if space >= 0 else before) + line[at:]
    return bool(_EMAIL.match(candidate.replace(" ", "")))


def template_name(combined: str) -> str:
    """Text after ``{{`` up to the first ``|`` or ``}}``."""
    inner = combined[len(TEMPLATE_START):]
    ends = [pos for pos in (inner.find("|"), inner.find(TEMPLATE_END)) if pos >= 0]
    return (inner[: min(ends)] if ends else inner).strip()


@dataclass
class _HeadingLine:
    index: int
    heading: Heading
    kind: str


@dataclass
class _ParseState:
    lines: list[str]
    defects: set[StyleDefect] = field(default_factory=set)
    section_messages: list[str] = field(default_factory=list)
    style_messages: list[str] = field(default_factory=list)

    first_non_blank: int = NOT_FOUND
    first_category: int = NOT_FOUND
    notoc_index: int = NOT_FOUND
    biography_index: int = NOT_FOUND
    sources_index: int = NOT_FOUND
    references_index: int = NOT_FOUND
    acknowledgements_index: int = NOT_FOUND
    research_notes_index: int = NOT_FOUND

    heading_lines: list[_HeadingLine] = field(default_factory=list)
    wrong_level_headings: list[str] = field(default_factory=list)
    unexpected_lines: list[str] = field(default_factory=list)
    research_note_boxes: list[str] = field(default_factory=list)

    have_research_note_box: bool = False
    have_project_box: bool = False
    have_nav_box: bool = False

    is_marked_unsourced: bool = False
    is_uncertain_existence: bool = False
    has_categories: bool = False
    has_search_string: bool = False

    @property
    def have_biography(self) -> bool:
        return self.biography_index != NOT_FOUND


class BiographyParser:
    """Parses WikiTree biographies against a shared, read-only ``RuleSet``.

    A parser keeps no per-call state, so one instance can serve every
    concurrent check in a run.
    """

    def __init__(self, rules: RuleSet):
        self.rules = rules

    def parse(
        self,
        text: str | None,
        context: SourceContext | None = None,
        *,
        is_undated: bool = False,
        search_term: str = "",
    ) -> ParseResult:
        """Parse one biography.

        Args:
            text: Raw wiki markup.
            context: Age context, carried through to source validation.
            is_undated: The profile has no birth or death date.
            search_term: Optional text to look for (case-insensitive).
        """
        context = context or SourceContext()

        if not text or not text.strip():
            return ParseResult(
                context=context,
                is_empty=True,
                is_undated=is_undated,
                style_defects=frozenset({StyleDefect.EMPTY_BIOGRAPHY}),
                section_messages=("Biography is empty",),
            )

        stripped = strip_comments(text)
        if stripped is None:
            return ParseResult(
                context=context,
                is_undated=is_undated,
                style_defects=frozenset({StyleDefect.UNTERMINATED_COMMENT}),
                section_messages=("Comment with no ending",),
                normalized_text=text.lower(),
            )

        stripped = _BR.sub("", stripped)
        state = _ParseState(lines=split_lines(stripped))

        self._scan(state, search_term.lower().strip())
        self._check_placement(state)

        if any(tag in stripped.lower() for tag in UNSOURCED_TEMPLATES):
            state.is_marked_unsourced = True

        ref_strings, named_ref_strings = self._extract_inline_refs(state)
        possible_sources = self._possible_sources_line_count(state)
        self._build_messages(state, is_undated)
        self._blank_notes_and_acknowledgements(state)

        return ParseResult(
            lines=tuple(state.lines),
            biography_index=state.biography_index,
            sources_index=state.sources_index,
            references_index=state.references_index,
            acknowledgements_index=state.acknowledgements_index,
            research_notes_index=state.research_notes_index,
            headings=tuple(h.heading for h in state.heading_lines),
            unexpected_lines=tuple(state.unexpected_lines),
            wrong_level_headings=tuple(state.wrong_level_headings),
            missing_research_note_boxes=tuple(self._missing_research_note_boxes(state)),
            ref_strings=tuple(ref_strings),
            named_ref_strings=tuple(named_ref_strings),
            style_defects=frozenset(state.defects),
            section_messages=tuple(state.section_messages),
            style_messages=tuple(state.style_messages),
            context=context,
            is_marked_unsourced=state.is_marked_unsourced,
            is_undated=is_undated,
            is_uncertain_existence=state.is_uncertain_existence,
            has_categories=state.has_categories,
            has_search_string=state.has_search_string,
            possible_sources_line_count=possible_sources,
            normalized_text=stripped.lower(),
        )

    # --------------------------------------------------------------------------
    # Line scan
    # --------------------------------------------------------------------------

    def _scan(self, state: _ParseState, search_term: str) -> None:
        lines = state.lines
        index = 0
        while index < len(lines):
            line = lines[index].lower().strip()
            skip = 0
            if not is_blank(line):
                if state.first_non_blank == NOT_FOUND:
                    state.first_non_blank = index

                if REFERENCES_TAG in line:
                    if state.references_index == NOT_FOUND:
                        state.references_index = index
                    else:
                        state.defects.add(StyleDefect.MULTIPLE_REFERENCES_TAGS)

                if line.startswith(HEADING_START):
                    self._evaluate_heading(state, index, lines[index])

                if might_be_email(line):
                    state.defects.add(StyleDefect.MIGHT_HAVE_EMAIL)
                if search_term and search_term in line:
                    state.has_search_string = True

                if line.startswith("[["):
                    line = line.replace("[[ ", "[[", 1)

                if line.startswith(CATEGORY_LINK):
                    self._evaluate_category(state, index, line)
                elif line.startswith(TEMPLATE_START):
                    skip = self._evaluate_template(state, index)
                elif not state.have_biography:
                    if NOTOC in line or TOC in line:
                        state.notoc_index = index
                    else:
                        raw = lines[index]
                        if len(raw) > UNEXPECTED_LINE_WIDTH:
                            raw = raw[:UNEXPECTED_LINE_WIDTH] + "..."
                        state.unexpected_lines.append(raw)
            index += 1 + skip

    def _evaluate_heading(self, state: _ParseState, index: int, raw: str) -> None:
        heading = parse_heading(raw)
        text = heading.text
        rules = self.rules

        if rules.is_biography_heading(text):
            kind = "biography"
            if state.biography_index == NOT_FOUND:
                state.biography_index = index
            else:
                state.defects.add(StyleDefect.MULTIPLE_BIOGRAPHY_HEADINGS)
        elif rules.is_research_notes_heading(text):
            kind = "research_notes"
            if state.research_notes_index == NOT_FOUND:
                state.research_notes_index = index
        elif rules.is_sources_heading(text):
            kind = "sources"
            if heading.level > 2:
                state.defects.add(StyleDefect.SOURCES_HEADING_EXTRA_EQUALS)
            if state.sources_index == NOT_FOUND:
                state.sources_index = index
            else:
                state.defects.add(StyleDefect.MULTIPLE_SOURCES_HEADINGS)
        elif rules.is_acknowledgements_heading(text):
            kind = "acknowledgements"
            if heading.level > 2:
                state.defects.add(StyleDefect.ACKNOWLEDGEMENTS_HEADING_EXTRA_EQUALS)
            if state.sources_index == NOT_FOUND:
                state.defects.add(StyleDefect.ACKNOWLEDGEMENTS_BEFORE_SOURCES)
            if state.acknowledgements_index == NOT_FOUND:
                state.acknowledgements_index = index
        else:
            kind = "other"
            if heading.level == 2:
                state.wrong_level_headings.append(text)

        state.heading_lines.append(_HeadingLine(index, heading, kind))

    def _evaluate_category(self, state: _ParseState, index: int, line: str) -> None:
        if state.have_research_note_box or state.have_nav_box or state.have_project_box or state.have_biography:
            state.defects.add(StyleDefect.CATEGORY_NOT_AT_START)
        state.has_categories = True
        if state.first_category == NOT_FOUND:
            state.first_category = index
        if UNSOURCED in line:
            state.is_marked_unsourced = True

    def _evaluate_template(self, state: _ParseState, index: int) -> int:
        """Classify a template that may run over several lines. Returns lines consumed past ``index``."""
        lines = state.lines
        combined = lines[index].strip()
        skip = 0
        while TEMPLATE_END not in combined and index + skip + 1 < len(lines):
            skip += 1
            combined += lines[index + skip].strip()

        display_name = template_name(combined)
        name = display_name.lower()
        kind = self.rules.classify_template(name)

        if name == UNCERTAIN_EXISTENCE:
            state.is_uncertain_existence = True

        if kind is TemplateKind.RESEARCH_NOTE_BOX:
            if state.have_project_box or state.have_biography:
                where = "Project" if state.have_project_box else "Biography"
                state.style_messages.append(f"Research Note Box: {display_name} should be before {where}")
                state.defects.add(StyleDefect.RESEARCH_NOTE_BOX_OUT_OF_ORDER)
            state.have_research_note_box = True
            state.research_note_boxes.append(name)
            status = self.rules.research_notes_box_status(name)
            if status and status != "approved":
                state.style_messages.append(f"Research Note Box: {display_name} is {status} status")
                state.defects.add(StyleDefect.RESEARCH_NOTE_BOX_STATUS)
        elif kind is TemplateKind.PROJECT_BOX:
            state.have_project_box = True
            if state.have_biography:
                state.style_messages.append(f"Project: {display_name} should be before Biography")
                state.defects.add(StyleDefect.PROJECT_BOX_OUT_OF_ORDER)
        elif kind is TemplateKind.NAV_BOX:
            state.have_nav_box = True
            if state.have_biography:
                state.style_messages.append(f"Navigation box: {display_name} should be before Biography")
                state.defects.add(StyleDefect.NAV_BOX_OUT_OF_ORDER)
        elif kind is TemplateKind.STICKER:
            if not state.have_biography:
                state.style_messages.append(f"Sticker: {display_name} should be after Biography")
                state.defects.add(StyleDefect.STICKER_OUT_OF_ORDER)
        return skip

    # --------------------------------------------------------------------------
    # After the scan
    # --------------------------------------------------------------------------

    def _check_placement(self, state: _ParseState) -> None:
        if state.wrong_level_headings:
            state.defects.add(StyleDefect.UNKNOWN_SECTION_HEADING)

        expected = max(state.first_non_blank, 0)
        if state.notoc_index != NOT_FOUND:
            expected = state.notoc_index + 1
        if state.first_category != NOT_FOUND and state.first_category != expected:
            state.defects.add(StyleDefect.CATEGORY_NOT_AT_START)

        if self._missing_research_note_boxes(state):
            state.defects.add(StyleDefect.MISSING_RESEARCH_NOTE_BOX)

    def _missing_research_note_boxes(self, state: _ParseState) -> list[str]:
        """Headings named after a research note box that never appears as a template."""
        return [
            line.heading.text
            for line in state.heading_lines
            if self.rules.is_research_notes_box(line.heading.text)
            and line.heading.text.lower() not in state.research_note_boxes
        ]

    def _biography_span(self, state: _ParseState) -> tuple[int, int]:
        start = max(state.biography_index, 0)
        end = len(state.lines)
        for boundary in (
            state.research_notes_index,
            state.sources_index,
            state.references_index,
            state.acknowledgements_index,
        ):
            if start < boundary < end:
                end = boundary
        return start, end

    def _extract_inline_refs(self, state: _ParseState) -> tuple[list[str], list[str]]:
        start, end = self._biography_span(state)
        if state.have_biography and all(is_blank(line) for line in state.lines[start + 1:end]):
            state.defects.add(StyleDefect.EMPTY_BIOGRAPHY_SECTION)
        text = "\n".join(state.lines[start:end])

        refs: list[str] = []
        pos = 0
        while match := _REF_START.search(text, pos):
            close = _REF_END.search(text, match.end())
            if close is None:
                state.defects.add(StyleDefect.UNTERMINATED_REF)
                break
            refs.append(_flatten(text[match.end():close.start()]))
            pos = close.end()

        named: list[str] = []
        pos = 0
        while match := _NAMED_REF_START.search(text, pos):
            close = _REF_END.search(text, match.end())
            close_at = close.start() if close else len(text)
            self_close = text.find("/>", match.end())
            end_at = min(close_at, self_close if self_close >= 0 else len(text))
            segment = text[match.end():end_at]
            bracket = segment.find(">")
            if bracket >= 0:
                named.append(_flatten(segment[bracket + 1:]))
            pos = close.end() if close and end_at == close_at else end_at + 1
        return refs, named

    @staticmethod
    def _possible_sources_line_count(state: _ParseState) -> int:
        # From the acknowledgements heading (or the end) back to the references tag
        count = state.acknowledgements_index - 1
        if count < 0:
            count = len(state.lines)
        count = count - state.references_index + 1
        return max(count, 0)

    def _build_messages(self, state: _ParseState, is_undated: bool) -> None:
        section = state.section_messages
        style = state.style_messages
        defects = state.defects

        if state.is_marked_unsourced:
            section.append("Profile is marked unsourced")
        if is_undated:
            section.append("Profile has no dates")
            defects.add(StyleDefect.UNDATED)
        if StyleDefect.CATEGORY_NOT_AT_START in defects:
            style.append("Category not at start of biography")

        if not state.have_biography:
            defects.add(StyleDefect.MISSING_BIOGRAPHY_HEADING)
            section.append("Missing Biography heading")
        elif state.unexpected_lines:
            defects.add(StyleDefect.UNEXPECTED_CONTENT_BEFORE_BIOGRAPHY)
            for line in state.unexpected_lines[:MAX_UNEXPECTED_LINES]:
                style.append(f"Unexpected line before Biography {line}")
            if len(state.unexpected_lines) > MAX_UNEXPECTED_LINES:
                style.append("Unexpected line ... more lines follow ...")

        if state.sources_index == NOT_FOUND:
            defects.add(StyleDefect.MISSING_SOURCES_HEADING)
            section.append("Missing Sources heading")
        if state.references_index == NOT_FOUND:
            defects.add(StyleDefect.MISSING_REFERENCES_TAG)
            section.append("Missing <references /> tag")

        checks = (
            (StyleDefect.MULTIPLE_REFERENCES_TAGS, "Multiple <references /> tag"),
            (StyleDefect.UNTERMINATED_REF, "Inline <ref> tag with no ending </ref> tag"),
            (StyleDefect.MULTIPLE_BIOGRAPHY_HEADINGS, "Multiple Biography headings"),
            (StyleDefect.EMPTY_BIOGRAPHY_SECTION, "Empty Biography section"),
            (StyleDefect.MULTIPLE_SOURCES_HEADINGS, "Multiple Sources headings"),
            (StyleDefect.SOURCES_HEADING_EXTRA_EQUALS, "Sources subsection instead of section"),
            (StyleDefect.ACKNOWLEDGEMENTS_HEADING_EXTRA_EQUALS, "Acknowledgements subsection instead of section"),
            (StyleDefect.ACKNOWLEDGEMENTS_BEFORE_SOURCES, "Acknowledgements before Sources"),
        )
        for defect, message in checks:
            if defect in defects:
                section.append(message)

        for text in state.wrong_level_headings:
            style.append(f"Wrong level heading == {text} ==")
        for text in self._missing_research_note_boxes(state):
            style.append(f"Missing Research Note box for: {text}")
        if StyleDefect.MIGHT_HAVE_EMAIL in defects:
            style.append("Biography may contain email address")

    @staticmethod
    def _blank_notes_and_acknowledgements(state: _ParseState) -> None:
        """Blank Research Notes and Acknowledgements so they are never read as sources.

        A span runs to the next known section heading or the next heading at
        the same or a higher level.
        """
        headings = state.heading_lines
        for position, start in enumerate(headings):
            if start.kind not in ("research_notes", "acknowledgements"):
                continue
            end = len(state.lines)
            for later in headings[position + 1:]:
                if later.kind != "other" or later.heading.level <= start.heading.level:
                    end = later.index
                    break
            for index in range(start.index, end):
                state.lines[index] = ""


def _flatten(text: str) -> str:
    return " ".join(text.split())
