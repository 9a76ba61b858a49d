"""Impose values on form controls past framework change detection."""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from playwright.sync_api import ElementHandle
from playwright.sync_api import Error as PlaywrightError

from .fallback import Attempt, first_success

DEFAULT_SETTLE_MS = 300
DEFAULT_DATE_INPUT_FORMATS = ("%m/%d/%Y",)
ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

SCROLL_SCRIPT = "el => el.scrollIntoView(true)"
ASSIGN_VALUE_SCRIPT = """
(el, value) => {
    el.value = value;
    el.dispatchEvent(new Event('change', { bubbles: true }));
    el.dispatchEvent(new Event('input', { bubbles: true }));
}
"""
ASSIGN_SELECT_SCRIPT = """
(el, value) => {
    el.value = value;
    el.dispatchEvent(new Event('change', { bubbles: true }));
}
"""

LOGGER = logging.getLogger(__name__)


def leading_token(target: str) -> str:
    return target.split("-")[0]


def value_applied(current: str, target: str, significant: Optional[str] = None) -> bool:
    """Read-back check: exact match, or the current value contains the
    significant part of the target (its leading token unless given)."""
    marker = leading_token(target) if significant is None else significant
    return current == target or marker in current


def is_iso_date(value: str) -> bool:
    return bool(ISO_DATE_PATTERN.match(value))


def date_format_variants(
    value: str, formats: Sequence[str] = DEFAULT_DATE_INPUT_FORMATS
) -> List[str]:
    if not is_iso_date(value):
        return []
    try:
        parsed = datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return []
    variants: List[str] = []
    for fmt in formats:
        rendered = parsed.strftime(fmt)
        if rendered != value and rendered not in variants:
            variants.append(rendered)
    return variants


@dataclass(slots=True)
class FieldAssignment:
    element: ElementHandle
    value: str
    variants: List[str] = field(default_factory=list)
    significant: Optional[str] = None


class FieldWriter:
    def __init__(
        self,
        *,
        settle_ms: int = DEFAULT_SETTLE_MS,
        sleep: Callable[[float], None] = time.sleep,
        date_formats: Sequence[str] = DEFAULT_DATE_INPUT_FORMATS,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.settle_ms = settle_ms
        self._sleep = sleep
        self.date_formats = tuple(date_formats)
        self.logger = logger or LOGGER

    def assignment_for(
        self,
        element: ElementHandle,
        value: str,
        significant: Optional[str] = None,
    ) -> FieldAssignment:
        return FieldAssignment(
            element=element,
            value=value,
            variants=date_format_variants(value, self.date_formats),
            significant=significant,
        )

    def set_value(
        self,
        element: ElementHandle,
        value: str,
        *,
        significant: Optional[str] = None,
    ) -> bool:
        return self.apply(self.assignment_for(element, value, significant))

    def apply(self, assignment: FieldAssignment) -> bool:
        """Run the write strategies in order until a read-back confirms."""
        element = assignment.element
        self.logger.debug("Setting field to: %s", assignment.value)
        self._scroll_into_view(element)

        attempts = [
            Attempt(
                name="script_assign",
                action=lambda: self._confirmed(
                    assignment, lambda: self._script_assign(element, assignment.value)
                ),
            ),
            Attempt(
                name="keystrokes",
                action=lambda: self._confirmed(
                    assignment, lambda: self._keystrokes(element, assignment.value)
                ),
            ),
        ]
        for variant in assignment.variants:
            attempts.append(
                Attempt(
                    name=f"keystrokes[{variant}]",
                    action=self._variant_action(assignment, variant),
                )
            )

        outcome = first_success(attempts, label="field write", logger=self.logger)
        if outcome is None:
            self.logger.warning(
                "All approaches to set value %r failed", assignment.value
            )
            return False
        self.logger.debug("Value %r confirmed via %s", assignment.value, outcome.name)
        return True

    def select_value(
        self,
        element: ElementHandle,
        value: str,
        *,
        significant: Optional[str] = None,
    ) -> bool:
        assignment = FieldAssignment(
            element=element, value=value, significant=significant
        )
        attempts = [
            Attempt(
                name="select_option",
                action=lambda: self._confirmed(
                    assignment, lambda: element.select_option(value=value)
                ),
            ),
            Attempt(
                name="script_select",
                action=lambda: self._confirmed(
                    assignment,
                    lambda: element.evaluate(ASSIGN_SELECT_SCRIPT, value),
                ),
            ),
        ]
        outcome = first_success(attempts, label="option select", logger=self.logger)
        if outcome is None:
            self.logger.warning("Status selection %r failed", value)
            return False
        return True

    def _confirmed(
        self, assignment: FieldAssignment, write: Callable[[], object]
    ) -> Optional[bool]:
        try:
            write()
        except PlaywrightError as exc:
            self.logger.debug("Write strategy raised: %s", exc)
            return None
        self._settle()
        current = self._read_value(assignment.element)
        if current is not None and value_applied(
            current, assignment.value, assignment.significant
        ):
            return True
        self.logger.debug(
            "Read-back %r does not confirm %r", current, assignment.value
        )
        return None

    def _script_assign(self, element: ElementHandle, value: str) -> None:
        element.evaluate(ASSIGN_VALUE_SCRIPT, value)

    def _keystrokes(self, element: ElementHandle, text: str) -> None:
        element.fill("")
        element.type(text)
        element.press("Tab")

    def _scroll_into_view(self, element: ElementHandle) -> None:
        try:
            element.evaluate(SCROLL_SCRIPT)
        except PlaywrightError as exc:
            self.logger.debug("scrollIntoView failed: %s", exc)
            return
        self._settle()

    def _read_value(self, element: ElementHandle) -> Optional[str]:
        try:
            return element.input_value()
        except PlaywrightError as exc:
            self.logger.debug("Could not read value back: %s", exc)
            return None

    def _variant_action(
        self, assignment: FieldAssignment, variant: str
    ) -> Callable[[], Optional[bool]]:
        return lambda: self._confirmed(
            assignment, lambda: self._keystrokes(assignment.element, variant)
        )

    def _settle(self) -> None:
        if self.settle_ms > 0:
            self._sleep(self.settle_ms / 1000)


__all__ = [
    "FieldAssignment",
    "FieldWriter",
    "value_applied",
    "leading_token",
    "is_iso_date",
    "date_format_variants",
]
