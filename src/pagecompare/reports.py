"""Report generation for visual and accessibility comparisons.

Reports are Markdown meant to be posted as a pull request comment or job
summary. The accessibility comparison can also be rendered as plain text for
the console.
"""

from dataclasses import dataclass
from pathlib import Path

from .config import settings
from .diff import ViewportOutcome, ViewportStatus, classify
from .models import Report, ViolationComparison

STATUS_LABELS = {
    ViewportStatus.IDENTICAL: "✅ No Changes",
    ViewportStatus.MINOR: "🟡 Minor Differences",
    ViewportStatus.SIGNIFICANT: "🔴 Changes Detected",
    ViewportStatus.SIZE_MISMATCH: "⚠️ Size Mismatch",
    ViewportStatus.FAILED: "❌ Capture Failed",
}


@dataclass
class ReportConfig:
    """Configuration for report generation."""

    diff_threshold: float = 0.1  # percent of pixels
    artifact_base_url: str = "../artifacts/visual-comparison"
    max_examples: int = 3  # HTML snippets per new violation
    standards: str = "WCAG 2.1 Level A & AA"
    tool: str = "axe-core via Playwright"

    @classmethod
    def from_settings(cls) -> "ReportConfig":
        return cls(
            diff_threshold=settings.diff_threshold,
            artifact_base_url=settings.artifact_base_url,
            max_examples=settings.max_examples,
        )


def _signed(value: int) -> str:
    return f"+{value}" if value > 0 else str(value)


# =============================================================================
# Visual comparison
# =============================================================================


def render_visual_report(
    outcomes: dict[str, ViewportOutcome],
    before_url: str,
    after_url: str,
    config: ReportConfig | None = None,
) -> Report:
    """Render the Markdown report for a screenshot comparison.

    Args:
        outcomes: Per-viewport outcomes keyed by viewport key, in run order
        before_url: URL of the "before" page
        after_url: URL of the "after" page
        config: Report configuration

    Returns:
        Report whose exit code is always 0; ``has_changes`` is set when any
        viewport is not identical.
    """
    cfg = config or ReportConfig.from_settings()
    statuses = {key: classify(outcome, cfg.diff_threshold) for key, outcome in outcomes.items()}
    has_changes = any(status != ViewportStatus.IDENTICAL for status in statuses.values())

    md = [
        "## 📸 Visual Comparison Report",
        "",
        f"**Before:** {before_url}",
        f"**After:** {after_url}",
        "",
    ]
    md.extend(_visual_summary_table(outcomes, statuses))

    if has_changes:
        md.extend(
            [
                "### ⚠️ Visual Changes Detected",
                "",
                "Please review the screenshots below to ensure changes are intentional.",
                "",
            ]
        )
    else:
        md.extend(
            [
                "### 🎉 No Visual Changes Detected",
                "",
                "All viewports show identical rendering between before and after versions.",
                "",
            ]
        )

    md.extend(["### Detailed Comparisons", ""])
    for key, outcome in outcomes.items():
        md.extend(_viewport_details(key, outcome, statuses[key], cfg))

    md.extend(
        [
            "### 📦 Download All Screenshots",
            "",
            'All screenshots are available as workflow artifacts. Click on "Summary" at the '
            'top of this workflow run, then download the "visual-comparison" artifact.',
            "",
            "---",
            "",
            f"<sub>Visual comparison threshold: {cfg.diff_threshold}% pixel difference</sub>",
            "",
        ]
    )

    return Report(text="\n".join(md), exit_code=0, has_changes=has_changes)


def _visual_summary_table(
    outcomes: dict[str, ViewportOutcome],
    statuses: dict[str, ViewportStatus],
) -> list[str]:
    md = [
        "### Summary",
        "",
        "| Viewport | Status | Difference | Details |",
        "|----------|--------|------------|---------|",
    ]
    for key, outcome in outcomes.items():
        status = statuses[key]
        viewport = outcome.viewport
        md.append(
            f"| {viewport.name}<br>{viewport.dimensions} | {STATUS_LABELS[status]} "
            f"| {_difference_cell(outcome, status)} | [Screenshots](#{key}) |"
        )
    md.append("")
    return md


def _difference_cell(outcome: ViewportOutcome, status: ViewportStatus) -> str:
    result = outcome.result
    if result is None:
        return "Capture failed"
    if status == ViewportStatus.SIZE_MISMATCH:
        return "Pages have different dimensions"
    if status == ViewportStatus.IDENTICAL:
        return "Identical"
    return f"{result.diff_pixels:,} pixels ({result.formatted_percentage}%)"


def _viewport_details(
    key: str,
    outcome: ViewportOutcome,
    status: ViewportStatus,
    cfg: ReportConfig,
) -> list[str]:
    viewport = outcome.viewport
    md = [
        f'<details id="{key}">',
        f"<summary><strong>{viewport.name} ({viewport.dimensions})</strong></summary>",
        "",
    ]

    result = outcome.result
    if result is None:
        md.extend([f"❌ **Capture failed:** {outcome.error}", ""])
    elif result.size_mismatch:
        bw, bh = result.before_size
        aw, ah = result.after_size
        md.extend(
            [
                "⚠️ **Size Mismatch:** The before and after pages have different dimensions "
                f"({bw}×{bh} vs {aw}×{ah}) and cannot be compared.",
                "",
            ]
        )
    else:
        md.extend(
            [
                f"**Difference:** {result.formatted_percentage}% "
                f"({result.diff_pixels:,} of {result.total_pixels:,} pixels)",
                "",
            ]
        )
        if status == ViewportStatus.SIGNIFICANT:
            md.append("🔴 **Significant changes detected** - Please review carefully.")
        elif status == ViewportStatus.MINOR:
            md.append("🟡 **Minor differences detected** - Likely due to rendering variations.")
        else:
            md.append("✅ **No differences detected**")
        md.append("")

    base = cfg.artifact_base_url.rstrip("/")
    md.extend(
        [
            "**Screenshots:**",
            f"- [Before]({base}/before-{key}.png)",
            f"- [After]({base}/after-{key}.png)",
        ]
    )
    if result is not None and not result.size_mismatch:
        md.append(f"- [Difference Highlight]({base}/diff-{key}.png)")
    md.extend(["", "</details>", ""])
    return md


# =============================================================================
# Accessibility comparison
# =============================================================================


def render_accessibility_report(
    comparison: ViolationComparison,
    before_url: str,
    after_url: str,
    config: ReportConfig | None = None,
) -> Report:
    """Render the Markdown report for an accessibility comparison.

    The exit code is 1 if and only if the after page violates rules the
    before page did not.
    """
    cfg = config or ReportConfig.from_settings()
    net = comparison.net_change
    if net > 0:
        glyph = "❌"
    elif net < 0:
        glyph = "✅"
    else:
        glyph = "➖"

    before = comparison.summary.before
    after = comparison.summary.after
    md = [
        f"## {glyph} Accessibility Check Results",
        "",
        "### Summary",
        "",
        "| Version | Violation Types | Total Issues |",
        "|---------|-----------------|--------------|",
        f"| Before | {before.total} | {before.total_nodes} |",
        f"| After | {after.total} | {after.total_nodes} |",
        f"| **Net Change** | **{comparison.type_change}** | **{_signed(net)}** |",
        "",
    ]

    md.extend(_new_violations_section(comparison, cfg.max_examples))
    md.extend(_fixed_violations_section(comparison))
    md.extend(_changed_violations_section(comparison))

    if not comparison.new_violations and not comparison.worsened:
        md.extend(["### 🎉 No new accessibility issues introduced!", ""])

    md.extend(
        [
            "<details>",
            "<summary>Test Details</summary>",
            "",
            f"- **Before URL**: {before_url}",
            f"- **After URL**: {after_url}",
            f"- **Standards**: {cfg.standards}",
            f"- **Tool**: {cfg.tool}",
            "",
            "</details>",
            "",
        ]
    )

    return Report(
        text="\n".join(md),
        exit_code=comparison.exit_code,
        has_changes=bool(
            comparison.new_violations
            or comparison.fixed_violations
            or comparison.changed_violations
        ),
    )


def _new_violations_section(comparison: ViolationComparison, max_examples: int) -> list[str]:
    if not comparison.new_violations:
        return []

    md = [f"### 🔴 New Violations Introduced ({len(comparison.new_violations)})", ""]
    for violation in comparison.new_violations:
        impact = violation.impact.value if violation.impact else "unknown"
        md.extend(
            [
                f"#### `{violation.id}` - {impact} impact",
                f"**{violation.description}**",
                "",
                f"- Instances: {violation.node_count}",
                f"- [Learn more]({violation.help_url})",
                "",
                "<details>",
                "<summary>Affected Elements</summary>",
                "",
                "```html",
            ]
        )
        md.extend(node.html for node in violation.nodes[:max_examples])
        overflow = violation.node_count - max_examples
        if overflow > 0:
            md.append(f"... and {overflow} more")
        md.extend(["```", "", "</details>", ""])
    return md


def _fixed_violations_section(comparison: ViolationComparison) -> list[str]:
    if not comparison.fixed_violations:
        return []

    md = [f"### ✅ Violations Fixed ({len(comparison.fixed_violations)})", ""]
    for violation in comparison.fixed_violations:
        md.append(
            f"- `{violation.id}`: {violation.description} ({violation.node_count} instances)"
        )
    md.append("")
    return md


def _changed_violations_section(comparison: ViolationComparison) -> list[str]:
    if not comparison.changed_violations:
        return []

    md = [
        f"### ⚠️ Changed Violations ({len(comparison.changed_violations)})",
        "",
        "| Rule | Before | After | Change |",
        "|------|--------|-------|--------|",
    ]
    for changed in comparison.changed_violations:
        arrow = "📈" if changed.change > 0 else "📉"
        md.append(
            f"| `{changed.id}` | {changed.before} | {changed.after} "
            f"| {arrow} {_signed(changed.change)} |"
        )
    md.append("")
    return md


def render_accessibility_summary(comparison: ViolationComparison) -> Report:
    """Render an accessibility comparison as plain text for the console."""
    before = comparison.summary.before
    after = comparison.summary.after
    lines = [
        "=== ACCESSIBILITY COMPARISON REPORT ===",
        "",
        "Summary:",
        f"  Before: {before.total} violation types, {before.total_nodes} total issues",
        f"  After:  {after.total} violation types, {after.total_nodes} total issues",
        f"  Net change: {_signed(comparison.net_change)} issues",
        "",
    ]

    if comparison.new_violations:
        lines.append("🔴 NEW VIOLATIONS:")
        for v in comparison.new_violations:
            impact = v.impact.value if v.impact else "unknown"
            lines.append(
                f"  - {v.id}: {v.description} ({v.node_count} instances, impact: {impact})"
            )
        highest = comparison.highest_new_impact
        if highest is not None:
            lines.append(f"  Highest impact: {highest.value}")
        lines.append("")

    if comparison.fixed_violations:
        lines.append("✅ FIXED VIOLATIONS:")
        for v in comparison.fixed_violations:
            lines.append(f"  - {v.id}: {v.description} ({v.node_count} instances fixed)")
        lines.append("")

    if comparison.changed_violations:
        lines.append("⚠️  CHANGED VIOLATIONS:")
        for c in comparison.changed_violations:
            direction = "📈" if c.change > 0 else "📉"
            lines.append(f"  {direction} {c.id}: {c.before} → {c.after} ({_signed(c.change)})")
        lines.append("")

    return Report(
        text="\n".join(lines),
        exit_code=comparison.exit_code,
        has_changes=bool(
            comparison.new_violations
            or comparison.fixed_violations
            or comparison.changed_violations
        ),
        format="text",
    )


def save_report(report: Report, output_path: Path) -> Path:
    """Write a rendered report to disk.

    Args:
        report: Rendered report
        output_path: Destination file; parent directories are created

    Returns:
        Path to the saved report
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(report.text, encoding="utf-8")
    return output_path
