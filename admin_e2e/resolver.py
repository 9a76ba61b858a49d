"""Locate elements through ranked locator candidates."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Union

from playwright.sync_api import ElementHandle, Page
from playwright.sync_api import Error as PlaywrightError

from .fallback import Attempt, first_success
from .locators import CandidateList, Locator, as_candidates, by_tag

DEFAULT_TIMEOUT_MS = 10000
DEFAULT_POLL_INTERVAL_MS = 250
CLICK_SCRIPT = "el => el.click()"

LOGGER = logging.getLogger(__name__)


class ResolutionError(Exception):
    """Base class for element lookup failures."""


class ElementNotFound(ResolutionError):
    def __init__(self, candidates: Sequence[Locator], timeout_ms: int) -> None:
        self.candidates = list(candidates)
        self.timeout_ms = timeout_ms
        described = ", ".join(loc.describe() for loc in self.candidates) or "<none>"
        super().__init__(f"Element not found within {timeout_ms}ms: {described}")


class ActionUnavailable(ResolutionError):
    def __init__(self, label: str) -> None:
        self.label = label
        super().__init__(f"Could not find any control for {label}")


class ActionRole(str, Enum):
    """Position used when falling back to a broad generic query."""

    OPEN = "open"
    SUBMIT = "submit"

    def pick(self, count: int) -> int:
        return count - 1 if self is ActionRole.SUBMIT else 0


@dataclass(slots=True)
class ResolvedElement:
    handle: ElementHandle
    locator: Locator
    visible: bool
    index: int = 0


class ElementResolver:
    """Polls the current document for the first visible candidate match."""

    def __init__(
        self,
        page: Page,
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.page = page
        self.timeout_ms = timeout_ms
        self.poll_interval_ms = poll_interval_ms
        self._clock = clock
        self._sleep = sleep
        self.logger = logger or LOGGER

    def find_all(self, locator: Locator) -> List[ElementHandle]:
        try:
            return list(self.page.query_selector_all(locator.selector()))
        except PlaywrightError as exc:
            self.logger.debug("Lookup %s failed transiently: %s", locator.describe(), exc)
            return []

    def resolve(
        self,
        candidates: Union[Locator, CandidateList],
        timeout_ms: Optional[int] = None,
    ) -> ResolvedElement:
        """Return the first visible match of the first locator that matches.

        Locators are tried in declared order on every poll round. The first
        locator with any match decides the round: a visible handle among its
        matches is returned, otherwise the round ends and polling continues.
        Raises ElementNotFound once the timeout elapses.
        """
        locators = as_candidates(candidates)
        budget_ms = self.timeout_ms if timeout_ms is None else timeout_ms
        deadline = self._clock() + budget_ms / 1000
        rounds = 0
        while True:
            rounds += 1
            resolved = self._poll_once(locators)
            if resolved is not None:
                self.logger.debug(
                    "Resolved %s after %d poll(s)", resolved.locator.describe(), rounds
                )
                return resolved
            remaining = deadline - self._clock()
            if remaining <= 0:
                break
            self._sleep(min(self.poll_interval_ms / 1000, remaining))
        error = ElementNotFound(locators, budget_ms)
        self.logger.info("%s", error)
        raise error

    def wait_visible(
        self, locator: Locator, timeout_ms: Optional[int] = None
    ) -> ResolvedElement:
        return self.resolve(locator, timeout_ms)

    def first_present(
        self, candidates: Union[Locator, CandidateList]
    ) -> Optional[ResolvedElement]:
        """Single pass without waiting or visibility filtering."""
        for locator in as_candidates(candidates):
            handles = self.find_all(locator)
            if handles:
                return ResolvedElement(
                    handle=handles[0],
                    locator=locator,
                    visible=self.is_visible(handles[0]),
                )
        return None

    def nth_present(self, locator: Locator, index: int) -> Optional[ResolvedElement]:
        handles = self.find_all(locator)
        if len(handles) <= index:
            return None
        handle = handles[index]
        return ResolvedElement(
            handle=handle,
            locator=locator,
            visible=self.is_visible(handle),
            index=index,
        )

    def _poll_once(self, locators: Sequence[Locator]) -> Optional[ResolvedElement]:
        for locator in locators:
            handles = self.find_all(locator)
            if not handles:
                continue
            for index, handle in enumerate(handles):
                if self.is_visible(handle):
                    return ResolvedElement(
                        handle=handle, locator=locator, visible=True, index=index
                    )
            return None
        return None

    def is_visible(self, handle: ElementHandle) -> bool:
        try:
            return bool(handle.is_visible())
        except PlaywrightError:
            # detached by a re-render
            return False


def programmatic_click(handle: ElementHandle) -> None:
    handle.evaluate(CLICK_SCRIPT)


def click_first_match(
    resolver: ElementResolver,
    candidates: CandidateList,
    *,
    role: ActionRole,
    label: str,
    generic: Locator = by_tag("button"),
) -> ResolvedElement:
    """Click the first element found across the candidates and a generic query.

    The generic query is only consulted when no specific candidate matches;
    its first element is used for OPEN actions and its last for SUBMIT ones.
    """
    log = resolver.logger
    attempts = [
        Attempt(name=locator.describe(), action=_present(resolver, locator))
        for locator in candidates
    ]
    attempts.append(
        Attempt(
            name=f"{role.value} fallback {generic.describe()}",
            action=lambda: _generic_pick(resolver, generic, role),
        )
    )
    outcome = first_success(attempts, label=label, logger=log)
    if outcome is None:
        log.error("No control found for %s", label)
        raise ActionUnavailable(label)

    target = outcome.value
    if len(outcome.tried) > len(candidates):
        log.info(
            "Trying %s element of %s as %s",
            "last" if role is ActionRole.SUBMIT else "first",
            generic.describe(),
            label,
        )
    else:
        log.info("Found %s using selector: %s", label, target.locator.describe())
    programmatic_click(target.handle)
    return target


def _present(
    resolver: ElementResolver, locator: Locator
) -> Callable[[], Optional[ResolvedElement]]:
    return lambda: resolver.first_present(locator)


def _generic_pick(
    resolver: ElementResolver, generic: Locator, role: ActionRole
) -> Optional[ResolvedElement]:
    handles = resolver.find_all(generic)
    if not handles:
        return None
    index = role.pick(len(handles))
    return ResolvedElement(
        handle=handles[index],
        locator=generic,
        visible=resolver.is_visible(handles[index]),
        index=index,
    )


__all__ = [
    "ResolutionError",
    "ElementNotFound",
    "ActionUnavailable",
    "ActionRole",
    "ResolvedElement",
    "ElementResolver",
    "programmatic_click",
    "click_first_match",
]
