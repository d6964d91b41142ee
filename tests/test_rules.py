"""Tests for the rule set: template catalog, headings and source classification."""
from __future__ import annotations

import logging

import pytest

from biocheck.rules import (
    RuleSet,
    SourceContext,
    SourceVerdict,
    TemplateKind,
    normalize_source_line,
)

TOO_OLD = SourceContext(too_old_to_remember=True)
PRE1700 = SourceContext(too_old_to_remember=True, is_pre1700=True)


class TestTemplateCatalog:
    """Tests for merging the WikiTree+ template catalog."""

    def test_research_note_box_with_status(self, rules):
        assert rules.is_research_notes_box("Estimated Date")
        assert rules.research_notes_box_status("estimated date") == "approved"
        assert rules.research_notes_box_status("Uncertain Parentage") == "beta"
        assert rules.research_notes_box_status("Not A Box") == ""

    def test_box_kinds(self, rules):
        assert rules.classify_template("US Civil War") is TemplateKind.PROJECT_BOX
        assert rules.classify_template("mayflower navbox") is TemplateKind.NAV_BOX
        assert rules.classify_template("Unknown Parents") is TemplateKind.RESEARCH_NOTE_BOX
        assert rules.classify_template("Cite web") is None

    def test_sticker_matches_by_prefix(self, rules):
        assert rules.is_sticker("Died Young")
        assert rules.is_sticker("died young child")
        assert not rules.is_sticker("Young")

    def test_malformed_entries_are_skipped(self, rules):
        assert rules.is_loaded
        assert rules.classify_template("Sticker Without Type") is None

    def test_load_logs_counts(self, caplog):
        caplog.set_level(logging.INFO, logger="biocheck.rules.ruleset")
        RuleSet().load([{"name": "Estimated Date", "type": "profile box", "group": "research note box"}, "bad"])
        messages = [r.getMessage() for r in caplog.records]
        assert "Skipped 1 malformed template catalog entries" in messages
        assert any(m.startswith("Loaded template catalog: 1 research note boxes, 0 project boxes") for m in messages)

    def test_only_first_load_counts(self, rules):
        rules.load([{"name": "Other Box", "type": "project box"}])
        assert not rules.is_project_box("Other Box")
        assert rules.is_project_box("US Civil War")

    def test_load_without_catalog(self, bare_rules):
        assert bare_rules.is_loaded
        assert bare_rules.classify_template("Estimated Date") is None
        assert not bare_rules.is_research_notes_box("Estimated Date")

    def test_not_loaded_until_load(self):
        assert not RuleSet().is_loaded


class TestHeadings:
    """Tests for heading synonyms."""

    @pytest.mark.parametrize("text", ["Biography", " biography ", "Biographie", "Biografía"])
    def test_biography_headings(self, bare_rules, text):
        assert bare_rules.is_biography_heading(text)

    def test_other_sections(self, bare_rules):
        assert bare_rules.is_sources_heading("Quellen")
        assert bare_rules.is_research_notes_heading("Research Notes")
        assert bare_rules.is_acknowledgements_heading("Acknowledgments")
        assert not bare_rules.is_sources_heading("Notes")


class TestNormalizeSourceLine:
    """Tests for ``normalize_source_line``."""

    def test_strips_bullet_prefix_and_period(self):
        assert normalize_source_line("* Source: Parish register of St Mary.") == "parish register of st mary"

    def test_plain_line_is_lower_cased(self):
        assert normalize_source_line("  Parish Register  ") == "parish register"


class TestClassifySourceLine:
    """Tests for the source elimination pipeline."""

    def verdict(self, rules, line, context=None):
        return rules.classify_source_line(line, context).reason

    def test_short_line(self, bare_rules):
        result = bare_rules.classify_source_line("Too short")
        assert not result.valid
        assert result.reason is SourceVerdict.TOO_SHORT

    def test_short_after_normalizing(self, bare_rules):
        line = "* Source: 12345678901234."
        assert len(line) >= 15
        assert self.verdict(bare_rules, line) is SourceVerdict.TOO_SHORT

    def test_whole_line_invalid(self, bare_rules):
        assert self.verdict(bare_rules, "* Family research.") is SourceVerdict.INVALID_STANDALONE

    def test_personal_knowledge_depends_on_age(self, bare_rules):
        assert self.verdict(bare_rules, "Personal knowledge") is SourceVerdict.VALID
        assert self.verdict(bare_rules, "Personal knowledge", TOO_OLD) is SourceVerdict.INVALID_STANDALONE

    def test_certificate_only_invalid_before_1700(self, bare_rules):
        assert self.verdict(bare_rules, "Birth certificate", TOO_OLD) is SourceVerdict.VALID
        assert self.verdict(bare_rules, "Birth certificate", PRE1700) is SourceVerdict.INVALID_STANDALONE

    def test_partial_too_old_phrase(self, bare_rules):
        line = "As remembered by his grandson in 1990"
        assert self.verdict(bare_rules, line) is SourceVerdict.VALID
        assert self.verdict(bare_rules, line, TOO_OLD) is SourceVerdict.INVALID_PARTIAL

    def test_family_tree_before_1700(self, bare_rules):
        line = "Smith family tree on a private website"
        assert self.verdict(bare_rules, line, TOO_OLD) is SourceVerdict.VALID
        assert self.verdict(bare_rules, line, PRE1700) is SourceVerdict.INVALID_PARTIAL

    def test_findagrave_citation_beats_created_by(self, bare_rules):
        result = bare_rules.classify_source_line("Findagrave memorial 1234, created by Jane Doe")
        assert result.valid
        assert result.reason is SourceVerdict.FINDAGRAVE_CITATION

    def test_created_by_is_invalid(self, bare_rules):
        assert self.verdict(bare_rules, "Profile created by John Smith") is SourceVerdict.INVALID_PARTIAL

    def test_gedcom_import_text(self, bare_rules):
        line = "This profile came through the import of Smith.ged"
        assert self.verdict(bare_rules, line) is SourceVerdict.INVALID_PARTIAL

    def test_invalid_start(self, bare_rules):
        assert self.verdict(bare_rules, "Entered by John Smith on 1 May 2010") is SourceVerdict.INVALID_START

    @pytest.mark.parametrize(
        "line",
        ["1850 United States Federal Census", "1850 US Census at 12"],
    )
    def test_census_only(self, bare_rules, line):
        assert self.verdict(bare_rules, line) is SourceVerdict.CENSUS_ONLY

    def test_census_with_detail_is_valid(self, bare_rules):
        line = "1880 United States Federal Census, Suffolk, Massachusetts, roll 123, page 45"
        assert self.verdict(bare_rules, line) is SourceVerdict.VALID

    def test_census_term_prefers_longest(self, bare_rules):
        assert bare_rules.census_term("1880 united states federal census") == "united states federal census"
        assert bare_rules.census_term("no term here") == ""

    def test_family_tree_needs_tree_id(self, bare_rules):
        assert self.verdict(bare_rules, "Ancestry Family Tree for the Smiths") is SourceVerdict.FAMILY_TREE_WITHOUT_ID
        assert self.verdict(bare_rules, "Ancestry Family Tree 123456789") is SourceVerdict.VALID

    def test_repository_boilerplate(self, bare_rules):
        assert self.verdict(bare_rules, "Repository: Ancestry.com, Provo, UT") is SourceVerdict.REPOSITORY_ONLY

    @pytest.mark.parametrize("line", ["User ID: 12345678 from the file", ": Submitter record 42 here"])
    def test_gedcom_artifacts(self, bare_rules, line):
        assert self.verdict(bare_rules, line) is SourceVerdict.GEDCOM_ARTIFACT

    def test_real_citation_is_valid(self, bare_rules):
        line = "* Smith, John. Birth certificate, county archive, 1850."
        assert bare_rules.classify_source_line(line, TOO_OLD).valid

    def test_hidden_sources_marker(self, bare_rules):
        assert bare_rules.contains_valid_partial_source("Sources hidden to protect the living")
        assert not bare_rules.contains_valid_partial_source("Sources to follow")
