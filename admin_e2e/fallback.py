"""Ordered fallback chains: try each attempt until one yields a result."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Generic, Iterable, List, Optional, TypeVar

T = TypeVar("T")

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class Attempt(Generic[T]):
    """A named step whose action returns a result, or None to continue."""

    name: str
    action: Callable[[], Optional[T]]


@dataclass(slots=True)
class AttemptOutcome(Generic[T]):
    name: str
    value: T
    tried: List[str] = field(default_factory=list)


def first_success(
    attempts: Iterable[Attempt[T]],
    *,
    label: str = "fallback chain",
    logger: Optional[logging.Logger] = None,
) -> Optional[AttemptOutcome[T]]:
    log = logger or LOGGER
    tried: List[str] = []
    for attempt in attempts:
        tried.append(attempt.name)
        result = attempt.action()
        if result is not None:
            log.debug("%s: '%s' succeeded", label, attempt.name)
            return AttemptOutcome(name=attempt.name, value=result, tried=tried)
        log.debug("%s: '%s' yielded nothing; continuing", label, attempt.name)
    log.debug("%s exhausted after %d attempts", label, len(tried))
    return None


__all__ = ["Attempt", "AttemptOutcome", "first_success"]
