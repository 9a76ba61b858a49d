"""Locator variants understood by the resolver."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Union


class LocatorKind(str, Enum):
    ID = "id"
    CSS = "css"
    XPATH = "xpath"
    CLASS = "class"
    TAG = "tag"
    TEXT = "text"


@dataclass(frozen=True, slots=True)
class Locator:
    kind: LocatorKind
    value: str

    def selector(self) -> str:
        """Render the Playwright selector string for this locator."""
        if self.kind is LocatorKind.ID:
            return f"[id={_css_string(self.value)}]"
        if self.kind is LocatorKind.CSS:
            return self.value
        if self.kind is LocatorKind.XPATH:
            return f"xpath={self.value}"
        if self.kind is LocatorKind.CLASS:
            return f"[class~={_css_string(self.value)}]"
        if self.kind is LocatorKind.TAG:
            return self.value
        return f"text={self.value}"

    def describe(self) -> str:
        return f"By.{self.kind.name.title()}({self.value!r})"


CandidateList = Sequence[Locator]


def by_id(value: str) -> Locator:
    return Locator(LocatorKind.ID, value)


def by_css(value: str) -> Locator:
    return Locator(LocatorKind.CSS, value)


def by_xpath(value: str) -> Locator:
    return Locator(LocatorKind.XPATH, value)


def by_class(value: str) -> Locator:
    return Locator(LocatorKind.CLASS, value)


def by_tag(value: str) -> Locator:
    return Locator(LocatorKind.TAG, value)


def by_text(value: str) -> Locator:
    return Locator(LocatorKind.TEXT, value)


def as_candidates(candidates: Union[Locator, CandidateList]) -> List[Locator]:
    if isinstance(candidates, Locator):
        return [candidates]
    return list(candidates)


def xpath_literal(text: str) -> str:
    """Quote text for use inside an XPath expression."""
    if "'" not in text:
        return f"'{text}'"
    if '"' not in text:
        return f'"{text}"'
    parts = text.split("'")
    joined = ", \"'\", ".join(f"'{part}'" for part in parts)
    return f"concat({joined})"


def text_contains(text: str) -> Locator:
    return by_xpath(f"//*[contains(text(), {xpath_literal(text)})]")


def button_text_contains(text: str) -> Locator:
    return by_xpath(f"//button[contains(text(), {xpath_literal(text)})]")


def _css_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


__all__ = [
    "LocatorKind",
    "Locator",
    "CandidateList",
    "by_id",
    "by_css",
    "by_xpath",
    "by_class",
    "by_tag",
    "by_text",
    "as_candidates",
    "xpath_literal",
    "text_contains",
    "button_text_contains",
]
