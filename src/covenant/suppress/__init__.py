"""
covenant.suppress - Suppression Engine

@ignore directive resolution and the frozen Ignore Index.
"""

from covenant.suppress.directives import IgnoreDirective, collect_directives, parse_ignore
from covenant.suppress.index import IgnoreIndex

__all__ = [
    "IgnoreDirective",
    "IgnoreIndex",
    "collect_directives",
    "parse_ignore",
]
