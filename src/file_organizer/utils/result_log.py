"""
Ordered record of what happened to each file during an organizing pass.
"""

import json
import logging
from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)


class Outcome(Enum):
    """Outcome of one file-level (or rule-level) decision."""

    MOVED = "moved"
    RENAMED = "renamed"
    SKIPPED = "skipped"
    FAILED = "failed"
    COPIED_NOT_REMOVED = "copied_not_removed"


FAILURE_OUTCOMES = (Outcome.FAILED, Outcome.COPIED_NOT_REMOVED)


@dataclass(frozen=True)
class ResultRecord:
    """One logged outcome for one file, or for a rule that could not run."""

    rule_name: str
    source: Path
    outcome: Outcome
    destination: Optional[Path] = None
    reason: Optional[str] = None

    @property
    def is_failure(self) -> bool:
        return self.outcome in FAILURE_OUTCOMES

    def describe(self) -> str:
        """Render the record as a single line."""
        rule = f"[{self.rule_name}]"

        if self.outcome == Outcome.MOVED:
            return f"{rule} Moved: {self.source} -> {self.destination}"

        if self.outcome == Outcome.RENAMED:
            return (
                f"{rule} Moved (renamed due to conflict): "
                f"{self.source} -> {self.destination}"
            )

        if self.outcome == Outcome.SKIPPED:
            return f"{rule} Skipped {self.source}: {self.reason}"

        if self.outcome == Outcome.COPIED_NOT_REMOVED:
            return (
                f"{rule} Copied but original not removed: {self.source} -> "
                f"{self.destination} ({self.reason})"
            )

        return f"{rule} Failed {self.source}: {self.reason}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule": self.rule_name,
            "source": str(self.source),
            "destination": str(self.destination) if self.destination else None,
            "outcome": self.outcome.value,
            "reason": self.reason,
        }


@dataclass
class RuleSummary:
    """Per-rule tally of outcomes."""

    rule_name: str
    moved: int = 0
    renamed: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def relocated(self) -> int:
        return self.moved + self.renamed

    def describe(self) -> str:
        line = f"Rule '{self.rule_name}': moved {self.relocated} file(s)"
        details = []
        if self.renamed:
            details.append(f"{self.renamed} renamed")
        if self.skipped:
            details.append(f"{self.skipped} skipped")
        if self.failed:
            details.append(f"{self.failed} failed")
        if details:
            line += f" ({', '.join(details)})"
        return line


class ResultLog:
    """Append-only, ordered sequence of ResultRecords for one pass."""

    def __init__(self):
        self._records: List[ResultRecord] = []

    def append(self, record: ResultRecord) -> ResultRecord:
        self._records.append(record)
        return record

    @property
    def records(self) -> List[ResultRecord]:
        return list(self._records)

    def __iter__(self) -> Iterator[ResultRecord]:
        return iter(list(self._records))

    def __len__(self) -> int:
        return len(self._records)

    def __getitem__(self, index: int) -> ResultRecord:
        return self._records[index]

    def describe(self) -> List[str]:
        """One descriptive line per record, in processing order."""
        return [record.describe() for record in self._records]

    def failures(self) -> List[ResultRecord]:
        return [record for record in self._records if record.is_failure]

    def counts(self) -> Dict[str, int]:
        """Number of records per outcome."""
        counts = {outcome.value: 0 for outcome in Outcome}
        for record in self._records:
            counts[record.outcome.value] += 1
        return counts

    def rule_summaries(
        self, rule_names: Optional[List[str]] = None
    ) -> List[RuleSummary]:
        """Tally outcomes per rule name.

        Args:
            rule_names: Rule names in declaration order; rules without any
                record still get a (zero) summary when listed here

        Returns:
            Summaries in rule order. Rules sharing a name are tallied together.
        """
        summaries: "OrderedDict[str, RuleSummary]" = OrderedDict()
        for name in rule_names or []:
            summaries.setdefault(name, RuleSummary(rule_name=name))

        for record in self._records:
            summary = summaries.setdefault(
                record.rule_name, RuleSummary(rule_name=record.rule_name)
            )
            if record.outcome == Outcome.MOVED:
                summary.moved += 1
            elif record.outcome == Outcome.RENAMED:
                summary.renamed += 1
            elif record.outcome == Outcome.SKIPPED:
                summary.skipped += 1
            else:
                summary.failed += 1

        return list(summaries.values())

    def export(self, output_path: str):
        """Export the log to a JSON file.

        Args:
            output_path: Path for output file
        """
        data = {
            "counts": self.counts(),
            "records": [record.to_dict() for record in self._records],
        }

        with open(output_path, "w") as f:
            json.dump(data, f, indent=2)

        logger.info(f"Result log exported to {output_path}")
