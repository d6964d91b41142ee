"""BioCheck - WikiTree biography source and style checker.

Parses WikiTree biographies, decides whether they cite real sources, and
walks the family tree through the WikiTree API to find profiles that need
attention.
"""

__version__ = "0.1.0"

# Lazy imports so the rules and parser load without the network stack
def __getattr__(name: str):
    if name == "crawl":
        from biocheck import crawl
        return crawl
    if name == "sources":
        from biocheck import sources
        return sources
    if name == "models":
        from biocheck import models
        return models
    if name == "rules":
        from biocheck import rules
        return rules
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
