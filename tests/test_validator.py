"""Tests for source validation."""
from __future__ import annotations

import pytest

from biocheck.biography import BiographyParser, SourceValidator
from biocheck.models.results import StyleDefect
from biocheck.rules import SourceContext

from conftest import SOURCED_BIO, UNSOURCED_BIO

TOO_OLD = SourceContext(too_old_to_remember=True)


@pytest.fixture
def check(rules):
    parser = BiographyParser(rules)
    validator = SourceValidator(rules)

    def run(text, context=TOO_OLD, **kwargs):
        return validator.validate(parser.parse(text, context, **kwargs))

    return run


def bio(*lines: str) -> str:
    return "\n".join(lines)


class TestSourcesSection:
    """Tests for lines under the Sources heading."""

    def test_well_formed_biography(self, check):
        judgment = check(SOURCED_BIO)
        assert judgment.has_sources
        assert judgment.style_defects == []
        assert judgment.valid_sources == ["Smith, John. Birth certificate, county archive, 1850."]
        assert judgment.invalid_sources == []

    def test_no_sources(self, check):
        judgment = check(UNSOURCED_BIO)
        assert not judgment.has_sources
        assert judgment.is_possibly_unsourced
        assert judgment.style_defects == []

    def test_invalid_line_is_recorded(self, check):
        judgment = check(bio("== Biography ==", "Hello", "== Sources ==", "* Family research", "<references />"))
        assert not judgment.has_sources
        assert judgment.invalid_sources == ["* Family research"]

    def test_continuation_lines_are_joined(self, check):
        text = bio(
            "== Biography ==", "Hello", "== Sources ==", "<references />",
            "* Smith, John.", "Parish register of St Mary, Boston", "", "* Family research",
        )
        judgment = check(text)
        assert judgment.valid_sources == ["* Smith, John. Parish register of St Mary, Boston"]
        assert judgment.invalid_sources == ["* Family research"]

    def test_see_also_is_skipped(self, check):
        text = bio("== Biography ==", "Hello", "== Sources ==", "<references />", "See also the Jones family tree")
        judgment = check(text)
        assert judgment.valid_sources == []
        assert not judgment.has_sources

    def test_misplaced_lines_are_counted(self, check):
        judgment = check(SOURCED_BIO)
        assert judgment.misplaced_line_count == 1

    def test_sources_read_from_references_without_heading(self, check):
        text = bio("== Biography ==", "Hello", "<references />", "Parish register of St Mary, Boston, 1850")
        judgment = check(text)
        assert judgment.has_sources
        assert judgment.has_defect(StyleDefect.MISSING_SOURCES_HEADING)

    def test_ref_after_references(self, check):
        text = bio(
            "== Biography ==", "Hello", "== Sources ==", "<references />",
            "<ref>Parish register of St Mary, Boston</ref>",
        )
        judgment = check(text)
        assert judgment.has_defect(StyleDefect.REF_AFTER_REFERENCES)
        assert "Inline <ref> tag after <references >" in judgment.messages

    def test_research_notes_are_not_sources(self, check):
        text = bio(
            "== Biography ==", "Hello", "== Sources ==", "<references />",
            "== Research Notes ==", "Parish register of St Mary, Boston, 1850",
        )
        assert not check(text).has_sources

    def test_pre1700_context_rejects_certificates(self, check):
        pre1700 = SourceContext(too_old_to_remember=True, is_pre1700=True)
        text = bio("== Biography ==", "Hello", "== Sources ==", "* Birth certificate", "<references />")
        assert check(text, TOO_OLD).has_sources
        assert not check(text, pre1700).has_sources


class TestInlineRefs:
    """Tests for citations inside the biography."""

    def test_inline_ref_is_enough(self, check):
        text = bio(
            "== Biography ==", "Born 1850.<ref>Parish register of St Mary, Boston, 1850</ref>",
            "== Sources ==", "<references />",
        )
        judgment = check(text)
        assert judgment.has_sources
        assert judgment.valid_sources == ["Parish register of St Mary, Boston, 1850"]

    def test_named_ref(self, check):
        text = bio(
            "== Biography ==", 'Born 1850.<ref name="b">Parish register of St Mary, 1850</ref>',
            "== Sources ==", "<references />",
        )
        assert check(text).has_sources

    def test_invalid_inline_ref(self, check):
        text = bio("== Biography ==", "Born.<ref>Family research</ref>", "== Sources ==", "<references />")
        judgment = check(text)
        assert not judgment.has_sources
        assert judgment.invalid_sources == ["Family research"]


class TestSpanTargets:
    """Tests for ``<span id=...>`` targets and ``[[#id]]`` references."""

    def test_valid_span_target(self, check):
        text = bio(
            "== Biography ==", "Born 1850.<ref>[[#S1]]</ref>",
            "== Sources ==",
            "<span id='S1'></span>Parish register of St Mary, Boston 1850",
            "<references />",
        )
        judgment = check(text)
        assert judgment.has_sources
        assert judgment.invalid_span_targets == []

    def test_invalid_span_target_invalidates_reference(self, check):
        text = bio(
            "== Biography ==", "Born 1850.<ref>[[#S2]]</ref>",
            "== Sources ==",
            "<span id='S2'></span>Family research",
            "<references />",
        )
        judgment = check(text)
        assert not judgment.has_sources
        assert judgment.invalid_span_targets == ["S2"]

    def test_unterminated_span(self, check):
        text = bio(
            "== Biography ==", "Hello", "== Sources ==",
            "<span id='S3'>Parish register of St Mary", "<references />",
        )
        judgment = check(text)
        assert judgment.has_defect(StyleDefect.UNTERMINATED_SPAN)
        assert "Span with no ending span" in judgment.messages


class TestShortCircuits:
    """Profiles that are never searched for sources."""

    def test_marked_unsourced(self, check):
        judgment = check("[[Category:Unsourced]]\n== Biography ==\nHello")
        assert judgment.is_marked_unsourced
        assert not judgment.has_sources
        assert not judgment.is_possibly_unsourced
        assert judgment.has_defect(StyleDefect.MISSING_SOURCES_HEADING)

    def test_empty(self, check):
        judgment = check("")
        assert judgment.is_empty
        assert judgment.messages == ["Biography is empty"]

    def test_undated_is_not_searched(self, check):
        judgment = check(SOURCED_BIO, is_undated=True)
        assert not judgment.has_sources
        assert judgment.valid_sources == []
        assert judgment.has_defect(StyleDefect.UNDATED)

    def test_hidden_sources_marker(self, check):
        text = bio("== Biography ==", "Hello", "== Sources ==", "Sources hidden to protect the living", "<references />")
        judgment = check(text)
        assert judgment.has_sources
        assert judgment.valid_sources == []

    def test_defects_in_declaration_order(self, check):
        judgment = check(bio("Intro", "== Biography ==", "Hello"))
        order = list(StyleDefect)
        assert judgment.style_defects == sorted(judgment.style_defects, key=order.index)
        assert StyleDefect.MISSING_SOURCES_HEADING in judgment.style_defects
