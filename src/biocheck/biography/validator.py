"""Source validation for parsed biographies."""
from __future__ import annotations

import re
from dataclasses import dataclass, field

from ..models.results import NOT_FOUND, Judgment, ParseResult, StyleDefect
from ..rules import RuleSet, SourceContext
from .parser import HEADING_START, REFERENCES_TAG, is_blank

SEE_ALSO = "see also"
SPAN_TARGET_END = "</span>"
SOURCE_BREAKS = ("*", "--", "#", REFERENCES_TAG, HEADING_START)

_SPAN_TARGET = re.compile(r"<span\s+id\s*=\s*[\"']?([^\"'>\s]*)[\"']?[^>]*>", re.IGNORECASE)
_SPAN_REFERENCE = re.compile(r"\[\[#([^|\]]+)")


@dataclass
class _Findings:
    valid: list[str] = field(default_factory=list)
    invalid: list[str] = field(default_factory=list)
    invalid_span_targets: list[str] = field(default_factory=list)
    defects: set[StyleDefect] = field(default_factory=set)
    messages: list[str] = field(default_factory=list)
    misplaced_lines: int = 0


class SourceValidator:
    """Decides whether a parsed biography cites at least one real source.

    ``validate`` depends only on its inputs and the rule set; the list of
    invalid span targets built while reading the Sources section lives only
    for one call.
    """

    def __init__(self, rules: RuleSet):
        self.rules = rules

    def validate(self, parsed: ParseResult, context: SourceContext | None = None) -> Judgment:
        context = context or parsed.context
        findings = _Findings()
        has_sources = False

        if not (parsed.is_empty or parsed.is_marked_unsourced or parsed.is_undated):
            if self.rules.contains_valid_partial_source(parsed.normalized_text):
                has_sources = True
            else:
                # All three passes run so every line gets classified for reporting
                in_sources = self._validate_sources_section(parsed, context, findings)
                in_refs = self._validate_refs(parsed.ref_strings, context, findings)
                in_named = self._validate_refs(parsed.named_ref_strings, context, findings)
                has_sources = in_sources or in_refs or in_named

        defects = set(parsed.style_defects) | findings.defects
        return Judgment(
            has_sources=has_sources,
            is_marked_unsourced=parsed.is_marked_unsourced,
            is_empty=parsed.is_empty,
            is_undated=parsed.is_undated,
            valid_sources=findings.valid,
            invalid_sources=findings.invalid,
            invalid_span_targets=findings.invalid_span_targets,
            style_defects=sorted(defects, key=list(StyleDefect).index),
            messages=list(parsed.messages) + findings.messages,
            misplaced_line_count=findings.misplaced_lines,
        )

    def _is_valid_source(self, line: str, context: SourceContext, findings: _Findings) -> bool:
        result = self.rules.classify_source_line(line, context)
        (findings.valid if result.valid else findings.invalid).append(line.strip())
        return result.valid

    # --------------------------------------------------------------------------
    # Sources section
    # --------------------------------------------------------------------------

    def _validate_sources_section(self, parsed: ParseResult, context: SourceContext, findings: _Findings) -> bool:
        """Read from the Sources heading (or the references tag) to the end.

        Consecutive lines are joined into one source until a blank line or a
        line that starts a new entry.
        """
        lines = parsed.lines
        references = parsed.references_index
        if parsed.sources_index != NOT_FOUND:
            index = parsed.sources_index + 1
        elif references != NOT_FOUND:
            index = references + 1
        else:
            return False

        is_valid = False
        while index < len(lines):
            line = lines[index]
            lower = line.lower().strip()
            next_index = index + 1
            if is_blank(lower) or lower.startswith(REFERENCES_TAG) or lower.startswith(HEADING_START) or SEE_ALSO in lower:
                index = next_index
                continue

            combined = line
            while next_index < len(lines):
                following = lines[next_index]
                if not following.strip() or following.lower().startswith(SOURCE_BREAKS):
                    break
                combined = f"{combined} {following}"
                next_index += 1

            if "<ref" in lower and references != NOT_FOUND and index > references:
                findings.defects.add(StyleDefect.REF_AFTER_REFERENCES)
            if references != NOT_FOUND and index < references:
                findings.misplaced_lines += 1

            if _SPAN_TARGET.search(combined):
                valid = self._validate_span_target(combined, context, findings)
            else:
                valid = self._is_valid_source(combined, context, findings)
            is_valid = is_valid or valid
            index = next_index

        if StyleDefect.REF_AFTER_REFERENCES in findings.defects:
            findings.messages.append("Inline <ref> tag after <references >")
        if StyleDefect.UNTERMINATED_SPAN in findings.defects:
            findings.messages.append("Span with no ending span")
        return is_valid

    def _validate_span_target(self, line: str, context: SourceContext, findings: _Findings) -> bool:
        """Validate the text around ``<span id=...></span>``; remember the id if it is not a source."""
        match = _SPAN_TARGET.search(line)
        span_id = match.group(1)
        before = line[: match.start()].strip()

        close = line.find(SPAN_TARGET_END, match.end())
        if close < 0:
            findings.defects.add(StyleDefect.UNTERMINATED_SPAN)
            after = ""
        else:
            after = line[close + len(SPAN_TARGET_END):].strip()

        valid = False
        if after:
            valid = self._is_valid_source(f"{before} {after}".strip(), context, findings)
        if not valid:
            findings.invalid_span_targets.append(span_id)
        return valid

    # --------------------------------------------------------------------------
    # Inline citations
    # --------------------------------------------------------------------------

    def _validate_refs(self, refs: tuple[str, ...], context: SourceContext, findings: _Findings) -> bool:
        is_valid = False
        for ref in refs:
            if not ref:
                continue
            reference = _SPAN_REFERENCE.search(ref)
            if reference:
                valid = reference.group(1).strip() not in findings.invalid_span_targets
            else:
                valid = self._is_valid_source(ref, context, findings)
            is_valid = is_valid or valid
        return is_valid
