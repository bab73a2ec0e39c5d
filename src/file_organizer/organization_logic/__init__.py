"""
Organization logic module for pattern-based file organization.
"""

from .matcher import Matcher, matches
from .rules import Config, OrganizeRule
from .conflict_resolver import ConflictResolver, ConflictResolution
from .organizer import Organizer

__all__ = [
    "Matcher",
    "matches",
    "Config",
    "OrganizeRule",
    "ConflictResolver",
    "ConflictResolution",
    "Organizer",
]
