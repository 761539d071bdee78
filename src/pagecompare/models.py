"""Pydantic models for snapshots, accessibility scans and comparison results.

The scan models accept the JSON produced by axe-core's ``axe.run`` directly
(camelCase keys via aliases, unknown keys ignored), so results written to
disk by the capturer can be reloaded and compared later.
"""

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Impact(str, Enum):
    """axe-core impact levels, ordered from least to most severe."""

    MINOR = "minor"
    MODERATE = "moderate"
    SERIOUS = "serious"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Position in the severity order (0 = minor)."""
        return list(Impact).index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Impact):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Impact):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Impact):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Impact):
            return NotImplemented
        return self.rank >= other.rank


class AffectedNode(BaseModel):
    """A page element reported by a rule."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    html: str = Field(default="", description="Outer HTML snippet of the element")
    # axe nests selectors in lists for shadow DOM and iframes
    target: list[Any] = Field(default_factory=list, description="Selector path to the element")
    failure_summary: str | None = Field(default=None, alias="failureSummary")


class ViolationRecord(BaseModel):
    """One accessibility rule that failed, with the elements it failed on."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: str = Field(description="axe rule identifier, unique within a scan")
    description: str = Field(default="", description="What the rule checks")
    impact: Impact | None = Field(default=None, description="Severity reported by axe")
    help: str = Field(default="", description="Short help text")
    help_url: str = Field(default="", alias="helpUrl", description="Link to rule documentation")
    tags: list[str] = Field(default_factory=list)
    nodes: list[AffectedNode] = Field(default_factory=list)

    @property
    def node_count(self) -> int:
        """Number of affected elements."""
        return len(self.nodes)


class ScanResult(BaseModel):
    """Violations found by one accessibility scan of one page."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    violations: list[ViolationRecord] = Field(default_factory=list)
    url: str | None = Field(default=None, description="Page URL reported by axe")
    timestamp: str | None = Field(default=None, description="Scan time reported by axe")

    @model_validator(mode="after")
    def _unique_rule_ids(self) -> "ScanResult":
        seen: set[str] = set()
        for violation in self.violations:
            if violation.id in seen:
                raise ValueError(f"duplicate rule id in scan: {violation.id}")
            seen.add(violation.id)
        return self

    def by_rule(self) -> dict[str, ViolationRecord]:
        """Map rule id to violation."""
        return {v.id: v for v in self.violations}

    @property
    def rule_ids(self) -> set[str]:
        return {v.id for v in self.violations}

    @property
    def total_nodes(self) -> int:
        """Affected elements summed across all rules."""
        return sum(v.node_count for v in self.violations)


class Snapshot(BaseModel):
    """An artifact captured from one URL under one configuration."""

    model_config = ConfigDict(frozen=True)

    url: str
    config_key: str = Field(description="Viewport key, or 'accessibility' for scans")
    path: Path = Field(description="Where the artifact was written")
    captured_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ChangedViolation(BaseModel):
    """A rule present in both scans whose affected-element count moved."""

    model_config = ConfigDict(frozen=True)

    id: str
    before: int = Field(ge=0)
    after: int = Field(ge=0)
    change: int
    rule: ViolationRecord = Field(description="The rule as reported by the after scan")

    @model_validator(mode="after")
    def _consistent_change(self) -> "ChangedViolation":
        if self.change != self.after - self.before:
            raise ValueError("change must equal after - before")
        if self.change == 0:
            raise ValueError("unchanged counts are not a changed violation")
        return self


class ScanTotals(BaseModel):
    """Aggregate counts for one side of a comparison."""

    model_config = ConfigDict(frozen=True)

    total: int = Field(ge=0, description="Distinct violated rules")
    total_nodes: int = Field(ge=0, description="Affected elements across all rules")

    @classmethod
    def from_scan(cls, scan: ScanResult) -> "ScanTotals":
        return cls(total=len(scan.violations), total_nodes=scan.total_nodes)


class ComparisonSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    before: ScanTotals
    after: ScanTotals


class ViolationComparison(BaseModel):
    """Set difference between two accessibility scans.

    Every rule id from either scan lands in exactly one of ``new_violations``,
    ``fixed_violations``, ``changed_violations`` or ``unchanged_ids``. All
    lists are sorted by rule id.
    """

    model_config = ConfigDict(frozen=True)

    summary: ComparisonSummary
    new_violations: list[ViolationRecord] = Field(default_factory=list)
    fixed_violations: list[ViolationRecord] = Field(default_factory=list)
    changed_violations: list[ChangedViolation] = Field(default_factory=list)
    unchanged_ids: list[str] = Field(default_factory=list)

    @property
    def net_change(self) -> int:
        """Change in total affected elements (positive = worse)."""
        return self.summary.after.total_nodes - self.summary.before.total_nodes

    @property
    def type_change(self) -> int:
        """Change in the number of distinct violated rules."""
        return self.summary.after.total - self.summary.before.total

    @property
    def has_new_violations(self) -> bool:
        return bool(self.new_violations)

    @property
    def worsened(self) -> list[ChangedViolation]:
        """Changed rules that now affect more elements."""
        return [c for c in self.changed_violations if c.change > 0]

    @property
    def highest_new_impact(self) -> Impact | None:
        impacts = [v.impact for v in self.new_violations if v.impact is not None]
        return max(impacts) if impacts else None

    @property
    def exit_code(self) -> int:
        """1 when new rules are violated, 0 otherwise."""
        return 1 if self.new_violations else 0


class Report(BaseModel):
    """A rendered comparison report and the exit signal that goes with it."""

    model_config = ConfigDict(frozen=True)

    text: str
    exit_code: int = 0
    has_changes: bool = False
    format: Literal["markdown", "text"] = "markdown"
