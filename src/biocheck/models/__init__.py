"""Data models."""

from .config import CheckConfig, EngineSettings, ReportMode
from .person import (
    DatePrecision,
    Eligibility,
    PersonRecord,
    PrivacyLevel,
    ProfileDate,
    check_eligibility,
    is_pre1500,
    is_pre1700,
    is_too_old_to_remember,
    is_undated,
    source_context,
)
from .results import NOT_FOUND, Heading, Judgment, ParseResult, StyleDefect

__all__ = [
    "CheckConfig",
    "EngineSettings",
    "ReportMode",
    "DatePrecision",
    "Eligibility",
    "PersonRecord",
    "PrivacyLevel",
    "ProfileDate",
    "check_eligibility",
    "is_pre1500",
    "is_pre1700",
    "is_too_old_to_remember",
    "is_undated",
    "source_context",
    "NOT_FOUND",
    "Heading",
    "Judgment",
    "ParseResult",
    "StyleDefect",
]
