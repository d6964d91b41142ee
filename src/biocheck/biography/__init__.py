"""Biography parsing and source validation."""

from .parser import BiographyParser
from .validator import SourceValidator

__all__ = ["BiographyParser", "SourceValidator"]
