"""Profile discovery and the traversal engine."""

from .engine import CancellationToken, TraversalEngine
from .strategies import ByProfile, ByQuery, ByWatchlist, CheckStrategy, RandomSample

__all__ = [
    "CancellationToken",
    "TraversalEngine",
    "ByProfile",
    "ByQuery",
    "ByWatchlist",
    "CheckStrategy",
    "RandomSample",
]
