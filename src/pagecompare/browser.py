"""Page capture using Playwright for pagecompare.

Features:
- One browser per snapshot, fully torn down before the next capture
- Full-page screenshots at a named viewport
- axe-core accessibility scans injected into the page
- Bounded navigation with timeouts reported as CaptureError
"""

import json
from collections.abc import AsyncGenerator, Iterator
from contextlib import asynccontextmanager, contextmanager
from pathlib import Path
from typing import Any

from playwright.async_api import (
    Browser,
    Page,
    Playwright,
    async_playwright,
)
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .config import settings
from .errors import CaptureError, CaptureFailure
from .logging import log_extra, timed_operation
from .models import ScanResult, Snapshot
from .viewports import ViewportProfile

ACCESSIBILITY_KEY = "accessibility"

_AXE_READY = "typeof window.axe !== 'undefined'"
_AXE_RUN = """async (tags) => {
    return await axe.run(document, {
        runOnly: { type: 'tag', values: tags }
    });
}"""


@contextmanager
def _capture_errors(url: str) -> Iterator[None]:
    """Translate Playwright failures into CaptureError for ``url``."""
    try:
        yield
    except PlaywrightTimeoutError as e:
        raise CaptureError(url, e, CaptureFailure.TIMEOUT) from e
    except PlaywrightError as e:
        raise CaptureError(url, e, CaptureFailure.NAVIGATION) from e


class PageCapturer:
    """Captures screenshots and accessibility scans of web pages.

    Every capture launches its own Chromium instance and closes it before
    returning, so captures never share browser state.
    """

    def __init__(
        self,
        headless: bool | None = None,
        timeout: int | None = None,
        settle_time: float | None = None,
        full_page: bool | None = None,
        axe_script_url: str | None = None,
    ) -> None:
        self.headless = settings.browser_headless if headless is None else headless
        self.timeout = settings.navigation_timeout if timeout is None else timeout
        self.settle_time = settings.settle_time if settle_time is None else settle_time
        self.full_page = settings.full_page if full_page is None else full_page
        self.axe_script_url = axe_script_url or settings.axe_script_url
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None

    @property
    def timeout_ms(self) -> int:
        return self.timeout * 1000

    async def start(self) -> None:
        """Start Playwright and launch the browser."""
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=self.headless)
        log_extra("Browser started", headless=self.headless)

    async def stop(self) -> None:
        """Close the browser and stop Playwright."""
        if self._browser:
            await self._browser.close()
            self._browser = None
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None
        log_extra("Browser stopped")

    @asynccontextmanager
    async def session(
        self,
        viewport: ViewportProfile | None = None,
    ) -> AsyncGenerator[Page, None]:
        """Open a fresh browser, context and page; tear all of them down on exit.

        Args:
            viewport: Viewport to size the context to (Playwright default if None)
        """
        try:
            await self.start()
            if self._browser is None:
                raise RuntimeError("Browser not initialized")

            context_options: dict[str, Any] = {}
            if viewport is not None:
                context_options["viewport"] = viewport.viewport

            context = await self._browser.new_context(**context_options)
            try:
                page = await context.new_page()
                yield page
            finally:
                await context.close()
        finally:
            await self.stop()

    async def _navigate(self, page: Page, url: str) -> None:
        await page.goto(url, wait_until="networkidle", timeout=self.timeout_ms)

    async def capture_screenshot(
        self,
        url: str,
        viewport: ViewportProfile,
        output_path: Path,
    ) -> Snapshot:
        """Take a screenshot of a page at a viewport.

        Args:
            url: URL to capture
            viewport: Viewport profile to render at
            output_path: Where to write the PNG

        Raises:
            CaptureError: On navigation failure or timeout
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)

        async with timed_operation("capture_screenshot", url=url, viewport=viewport.key):
            with _capture_errors(url):
                async with self.session(viewport) as page:
                    await self._navigate(page, url)
                    # Let animations and late layout settle
                    if self.settle_time > 0:
                        await page.wait_for_timeout(self.settle_time * 1000)
                    await page.screenshot(path=str(output_path), full_page=self.full_page)

        return Snapshot(url=url, config_key=viewport.key, path=output_path)

    async def run_accessibility_scan(
        self,
        url: str,
        output_path: Path,
        tags: list[str] | None = None,
    ) -> tuple[Snapshot, ScanResult]:
        """Run axe-core against a page and save the raw results as JSON.

        Args:
            url: URL to scan
            output_path: Where to write the axe result JSON
            tags: axe rule tags to run (defaults to settings.axe_tags)

        Raises:
            CaptureError: On navigation failure, timeout or axe injection failure
        """
        rule_tags = list(tags) if tags else list(settings.axe_tags)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        async with timed_operation("accessibility_scan", url=url, tags=",".join(rule_tags)) as ctx:
            with _capture_errors(url):
                async with self.session() as page:
                    await self._navigate(page, url)
                    await page.add_script_tag(url=self.axe_script_url)
                    await page.wait_for_function(_AXE_READY, timeout=self.timeout_ms)
                    raw: dict[str, Any] = await page.evaluate(_AXE_RUN, rule_tags)
            ctx["violations"] = len(raw.get("violations", []))

        output_path.write_text(json.dumps(raw, indent=2), encoding="utf-8")
        scan = ScanResult.model_validate(raw)
        snapshot = Snapshot(url=url, config_key=ACCESSIBILITY_KEY, path=output_path)
        return snapshot, scan
