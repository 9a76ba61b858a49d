from __future__ import annotations

import logging
from typing import List, Optional

from playwright.sync_api import ElementHandle
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from .locators import Locator

HIGHLIGHT_SCRIPT = "(el, colour) => { el.style.border = `3px solid ${colour}`; }"


def _log_fallback(logger) -> None:
    if logger:
        logger.debug("load state timed out, retrying with domcontentloaded")


def safe_goto(
    page,
    url: str,
    *,
    wait_until: str = "load",
    timeout_ms: int = 20000,
    logger=None,
):
    try:
        return page.goto(url, wait_until=wait_until, timeout=timeout_ms)
    except PlaywrightTimeoutError:
        if wait_until != "load":
            raise
        _log_fallback(logger)
        return page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)


def safe_reload(
    page,
    *,
    wait_until: str = "load",
    timeout_ms: int = 20000,
    logger=None,
):
    try:
        return page.reload(wait_until=wait_until, timeout=timeout_ms)
    except PlaywrightTimeoutError:
        if wait_until != "load":
            raise
        _log_fallback(logger)
        return page.reload(wait_until="domcontentloaded", timeout=timeout_ms)


def wait_for_page_ready(
    page,
    *,
    wait_until: str = "load",
    timeout_ms: int = 20000,
    logger=None,
):
    try:
        return page.wait_for_load_state(wait_until, timeout=timeout_ms)
    except PlaywrightTimeoutError:
        if wait_until != "load":
            raise
        _log_fallback(logger)
        return page.wait_for_load_state("domcontentloaded", timeout=timeout_ms)


def idle_wait(page, duration_ms: int, *, reason: str, logger=None) -> None:
    """Bounded wait for client-side work that exposes no readiness signal."""
    if duration_ms <= 0:
        return
    if logger:
        logger.debug("Idle wait %dms: %s", duration_ms, reason)
    page.wait_for_timeout(duration_ms)


def highlight(
    handle: ElementHandle,
    colour: str = "red",
    *,
    logger: Optional[logging.Logger] = None,
) -> bool:
    try:
        handle.evaluate(HIGHLIGHT_SCRIPT, colour)
        return True
    except PlaywrightError as exc:
        if logger:
            logger.debug("Highlight failed: %s", exc)
        return False


def visible_texts(page, locator: Locator, *, logger=None) -> List[str]:
    texts: List[str] = []
    try:
        handles = page.query_selector_all(locator.selector())
    except PlaywrightError as exc:
        if logger:
            logger.debug("Message probe %s failed: %s", locator.describe(), exc)
        return texts
    for handle in handles:
        try:
            if not handle.is_visible():
                continue
            text = (handle.inner_text() or "").strip()
        except PlaywrightError:
            continue
        if text:
            texts.append(text)
    return texts
