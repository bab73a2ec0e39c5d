"""
Rule definitions for pattern-based organization.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from file_organizer.utils.errors import ConfigError, PatternError
from .matcher import Matcher

logger = logging.getLogger(__name__)

RULE_FIELDS = ("name", "source_folder", "pattern", "destination_folder")


@dataclass(frozen=True)
class OrganizeRule:
    """A named association of one source folder, one pattern and one destination."""

    name: str
    source_folder: Path
    pattern: str
    destination_folder: Path

    @classmethod
    def from_dict(cls, rule_dict: Dict[str, Any]) -> "OrganizeRule":
        """Build a rule from an already validated dictionary."""
        return cls(
            name=rule_dict["name"],
            source_folder=Path(rule_dict["source_folder"]).expanduser(),
            pattern=rule_dict["pattern"],
            destination_folder=Path(rule_dict["destination_folder"]).expanduser(),
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "name": self.name,
            "source_folder": str(self.source_folder),
            "pattern": self.pattern,
            "destination_folder": str(self.destination_folder),
        }

    def describe(self) -> str:
        return (
            f"{self.name}: {self.source_folder} -> {self.destination_folder} "
            f"(pattern: {self.pattern})"
        )


@dataclass(frozen=True)
class Config:
    """Ordered, immutable set of rules consumed by one organizing pass.

    Rule order is the evaluation order and therefore the tie-break
    priority for destination name collisions.
    """

    rules: Tuple[OrganizeRule, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: Any, matcher: Optional[Matcher] = None) -> "Config":
        """Validate raw deserialized data and build a Config.

        Args:
            data: Result of parsing a rule file
            matcher: Matcher used to compile patterns

        Returns:
            Validated Config

        Raises:
            ConfigError: If the data does not have the Config shape
            PatternError: If any rule pattern is invalid
        """
        errors = validate_config_data(data)
        if errors:
            raise ConfigError(f"Configuration validation failed: {'; '.join(errors)}")

        matcher = matcher or Matcher()
        rules = []
        for rule_dict in data["rules"]:
            extra = set(rule_dict) - set(RULE_FIELDS)
            if extra:
                logger.debug(
                    f"Ignoring unknown keys in rule '{rule_dict['name']}': {sorted(extra)}"
                )

            try:
                matcher.validate(rule_dict["pattern"])
            except PatternError as e:
                raise PatternError(
                    rule_dict["pattern"], e.reason, rule_dict["name"]
                ) from e

            rules.append(OrganizeRule.from_dict(rule_dict))

        return cls(rules=tuple(rules))

    def __len__(self) -> int:
        return len(self.rules)

    def __iter__(self):
        return iter(self.rules)


def validate_config_data(data: Any) -> List[str]:
    """Validate the shape of a deserialized rule file.

    Returns:
        List of validation errors (empty if valid)
    """
    if not isinstance(data, dict):
        return ["top level must be a mapping with a 'rules' list"]

    if "rules" not in data:
        return ["missing required key 'rules'"]

    rules = data["rules"]
    if not isinstance(rules, list):
        return ["'rules' must be a list"]

    errors = []
    for index, rule in enumerate(rules):
        if not isinstance(rule, dict):
            errors.append(f"rules[{index}]: must be a mapping")
            continue

        for key in RULE_FIELDS:
            if key not in rule:
                errors.append(f"rules[{index}]: missing required field '{key}'")
            elif not isinstance(rule[key], str) or not rule[key].strip():
                errors.append(f"rules[{index}].{key}: must be a non-empty string")

    return errors
