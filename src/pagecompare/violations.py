"""Accessibility violation diffing between two axe-core scans."""

from pathlib import Path

from .logging import log_extra, timed
from .models import (
    ChangedViolation,
    ComparisonSummary,
    ScanResult,
    ScanTotals,
    ViolationComparison,
    ViolationRecord,
)


def load_scan(path: Path) -> ScanResult:
    """Load an axe-core result file written by ``axe.run``.

    Raises:
        FileNotFoundError: If the file does not exist
        pydantic.ValidationError: If the JSON does not look like an axe result
    """
    return ScanResult.model_validate_json(Path(path).read_text(encoding="utf-8"))


@timed
def compare_scans(before: ScanResult, after: ScanResult) -> ViolationComparison:
    """Compare two scans rule by rule.

    Args:
        before: Scan of the "before" page
        after: Scan of the "after" page

    Returns:
        ViolationComparison with new, fixed, changed and unchanged rules
    """
    before_rules = before.by_rule()
    after_rules = after.by_rule()

    new: list[ViolationRecord] = []
    fixed: list[ViolationRecord] = []
    changed: list[ChangedViolation] = []
    unchanged: list[str] = []

    for rule_id in sorted(before_rules.keys() | after_rules.keys()):
        old = before_rules.get(rule_id)
        current = after_rules.get(rule_id)

        if old is None and current is not None:
            new.append(current)
        elif current is None and old is not None:
            fixed.append(old)
        elif old is not None and current is not None:
            if old.node_count == current.node_count:
                unchanged.append(rule_id)
            else:
                changed.append(
                    ChangedViolation(
                        id=rule_id,
                        before=old.node_count,
                        after=current.node_count,
                        change=current.node_count - old.node_count,
                        rule=current,
                    )
                )

    comparison = ViolationComparison(
        summary=ComparisonSummary(
            before=ScanTotals.from_scan(before),
            after=ScanTotals.from_scan(after),
        ),
        new_violations=new,
        fixed_violations=fixed,
        changed_violations=changed,
        unchanged_ids=unchanged,
    )

    log_extra(
        "Scans compared",
        new=len(new),
        fixed=len(fixed),
        changed=len(changed),
        unchanged=len(unchanged),
        net_change=comparison.net_change,
    )
    return comparison
