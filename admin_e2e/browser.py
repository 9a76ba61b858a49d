"""Thin wrapper around Playwright owning the single browser session."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from playwright.sync_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    sync_playwright,
)

from .page_utils import safe_goto, safe_reload, wait_for_page_ready


@dataclass(slots=True)
class BrowserConfig:
    headless: bool = True
    slow_mo: float = 0
    navigation_timeout_ms: int = 30000
    viewport_width: int = 1440
    viewport_height: int = 900
    launch_args: List[str] = field(
        default_factory=lambda: ["--disable-notifications", "--start-maximized"]
    )


class BrowserSession:
    """Context manager that owns a Playwright browser/page pair."""

    def __init__(self, config: Optional[BrowserConfig] = None) -> None:
        self.config = config or BrowserConfig()
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    def __enter__(self) -> "BrowserSession":
        self._playwright = sync_playwright().start()
        self._browser = self._playwright.chromium.launch(
            headless=self.config.headless,
            slow_mo=self.config.slow_mo,
            args=list(self.config.launch_args),
        )
        self._context = self._browser.new_context(
            viewport={
                "width": self.config.viewport_width,
                "height": self.config.viewport_height,
            }
        )
        self._page = self._context.new_page()
        self._page.set_default_timeout(self.config.navigation_timeout_ms)
        self._page.set_default_navigation_timeout(self.config.navigation_timeout_ms)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def page(self) -> Page:
        if not self._page:
            raise RuntimeError("BrowserSession is not started")
        return self._page

    def goto(self, url: str, *, timeout_ms: Optional[int] = None, logger=None):
        return safe_goto(
            self.page,
            url,
            timeout_ms=timeout_ms or self.config.navigation_timeout_ms,
            logger=logger,
        )

    def reload(self, *, timeout_ms: Optional[int] = None, logger=None):
        return safe_reload(
            self.page,
            timeout_ms=timeout_ms or self.config.navigation_timeout_ms,
            logger=logger,
        )

    def wait_until_ready(self, *, timeout_ms: Optional[int] = None, logger=None):
        return wait_for_page_ready(
            self.page,
            timeout_ms=timeout_ms or self.config.navigation_timeout_ms,
            logger=logger,
        )

    def page_source(self) -> str:
        return self.page.content()

    def screenshot(self, path: Path, *, full_page: bool = True) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        self.page.screenshot(path=str(path), full_page=full_page)
        return path

    def close(self) -> None:
        if self._context:
            self._context.close()
            self._context = None
        if self._browser:
            self._browser.close()
            self._browser = None
        if self._playwright:
            self._playwright.stop()
            self._playwright = None
        self._page = None
