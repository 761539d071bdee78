"""pagecompare - before/after comparison of web pages for pull request review.

Captures screenshots and axe-core accessibility scans of two versions of a
page with Playwright, diffs them and renders a Markdown report.

Features:
- Pixel diffs per viewport with size-mismatch detection
- New / fixed / changed accessibility violations
- Markdown reports and CI-friendly exit codes
"""

__version__ = "0.1.0"
__all__ = ["browser", "cli", "config", "diff", "logging", "models", "reports", "runner", "violations"]
