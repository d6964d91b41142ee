"""Heading, template and source phrase rules."""
from .ruleset import (
    MIN_SOURCE_LENGTH,
    RuleSet,
    SourceClassification,
    SourceContext,
    SourceVerdict,
    TemplateKind,
    normalize_source_line,
)

__all__ = [
    "MIN_SOURCE_LENGTH",
    "RuleSet",
    "SourceClassification",
    "SourceContext",
    "SourceVerdict",
    "TemplateKind",
    "normalize_source_line",
]
