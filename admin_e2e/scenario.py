"""Admin event-creation workflow: login, create an event, verify it is listed."""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import urljoin

from playwright.sync_api import Error as PlaywrightError

from .browser import BrowserConfig, BrowserSession
from .fallback import Attempt, first_success
from .field_writer import FieldWriter
from .io_utils import RunPaths, relative_artifact_path
from .locators import (
    Locator,
    button_text_contains,
    by_class,
    by_css,
    by_id,
    by_tag,
    by_xpath,
    text_contains,
)
from .page_utils import highlight, idle_wait, visible_texts
from .resolver import (
    ActionRole,
    ElementNotFound,
    ElementResolver,
    ResolutionError,
    ResolvedElement,
    click_first_match,
    programmatic_click,
)

DEFAULT_BASE_URL = "https://focistak.netlify.app"
DEFAULT_ADMIN_PATH = "/admin"
DEFAULT_LISTING_PATH = "/competetion"
DEFAULT_LIGA_NAME = "esemény"

EMAIL_INPUT = by_id("email")
PASSWORD_INPUT = by_id("password")
LOGIN_SUBMIT = by_css("button[type='submit']")

EVENTS_MENU_TEXT = by_xpath(
    "//*[contains(translate(text(), 'ESEMÉNYEK', 'események'), 'események')]"
)
MENU_BUTTONS = by_class("menu-button")
EVENTS_MENU_INDEX = 2
EVENTS_PAGE_MARKERS = ("Események", "esemény")

ADD_BUTTON_CANDIDATES = (
    by_class("action-button"),
    button_text_contains("Add"),
    button_text_contains("New"),
    button_text_contains("Create"),
    by_xpath("//button[contains(@class, 'add')]"),
)
SUBMIT_BUTTON_CANDIDATES = (
    by_css(".form-button.submit"),
    by_css("button[type='submit']"),
    button_text_contains("Submit"),
    button_text_contains("Save"),
    button_text_contains("Create"),
)
SUCCESS_MESSAGES = by_xpath(
    "//*[contains(text(), 'success') or contains(text(), 'Success')"
    " or contains(text(), 'created')]"
)
ERROR_MESSAGES = by_xpath(
    "//*[contains(text(), 'fail') or contains(text(), 'error')"
    " or contains(text(), 'hiba')]"
)
VIEW_EVENTS_LINK = by_xpath("//*[contains(text(), 'View') and contains(text(), 'Event')]")


class FieldKind(str, Enum):
    TEXT = "text"
    DATE = "date"
    SELECT = "select"


class VerificationOutcome(str, Enum):
    FOUND = "found"
    FOUND_AFTER_REFRESH = "found_after_refresh"
    PARTIAL = "partial"
    MISSING = "missing"


class ScenarioFailed(RuntimeError):
    """Raised when a mandatory step failed; carries the partial summary."""

    def __init__(self, summary: Dict[str, object]) -> None:
        self.summary = summary
        super().__init__(summary.get("error") or "scenario failed")


@dataclass(slots=True)
class Credentials:
    email: str
    password: str


@dataclass(slots=True)
class Timeouts:
    element_ms: int = 10000
    poll_interval_ms: int = 250
    settle_ms: int = 300
    navigation_ms: int = 20000
    post_login_redirect_ms: int = 2000
    post_menu_click_ms: int = 500
    post_open_form_ms: int = 1500
    post_submit_ms: int = 1500
    listing_render_ms: int = 2000


@dataclass(slots=True)
class EventDraft:
    liga: str
    round: str
    starting_date: str
    ending_date: str
    status: str

    @classmethod
    def for_today(
        cls,
        liga: str = DEFAULT_LIGA_NAME,
        *,
        round: str = "1",
        status: str = "1",
        today: Optional[date] = None,
    ) -> "EventDraft":
        start = today or date.today()
        end = add_months(start, 1)
        return cls(
            liga=liga,
            round=round,
            starting_date=start.isoformat(),
            ending_date=end.isoformat(),
            status=status,
        )


@dataclass(slots=True)
class ScenarioConfig:
    credentials: Credentials
    draft: EventDraft
    base_url: str = DEFAULT_BASE_URL
    admin_path: str = DEFAULT_ADMIN_PATH
    listing_path: str = DEFAULT_LISTING_PATH
    timeouts: Timeouts = field(default_factory=Timeouts)
    screenshots: bool = True

    @property
    def admin_url(self) -> str:
        return urljoin(self.base_url.rstrip("/") + "/", self.admin_path.lstrip("/"))

    @property
    def listing_url(self) -> str:
        return urljoin(self.base_url.rstrip("/") + "/", self.listing_path.lstrip("/"))


@dataclass(frozen=True, slots=True)
class FieldPlan:
    name: str
    locator: Locator
    value: str
    kind: FieldKind
    generic: Locator
    generic_index: int


@dataclass(slots=True)
class FieldReport:
    name: str
    value: str
    confirmed: bool
    source: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "field": self.name,
            "value": self.value,
            "confirmed": self.confirmed,
            "source": self.source,
        }


def add_months(start: date, months: int) -> date:
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def build_field_plans(draft: EventDraft) -> List[FieldPlan]:
    generic_input = by_tag("input")
    date_input = by_css("input[type='date']")
    return [
        FieldPlan("liga", by_id("liga"), draft.liga, FieldKind.TEXT, generic_input, 0),
        FieldPlan("round", by_id("round"), draft.round, FieldKind.TEXT, generic_input, 1),
        FieldPlan(
            "starting_date",
            by_id("starting_date"),
            draft.starting_date,
            FieldKind.DATE,
            date_input,
            0,
        ),
        FieldPlan(
            "ending_date",
            by_id("ending_date"),
            draft.ending_date,
            FieldKind.DATE,
            date_input,
            1,
        ),
        FieldPlan(
            "status",
            by_id("esemenyStatus"),
            draft.status,
            FieldKind.SELECT,
            by_tag("select"),
            0,
        ),
    ]


class EventScenario:
    """Runs the admin event workflow against one explicitly owned session."""

    def __init__(
        self,
        session,
        config: ScenarioConfig,
        *,
        logger: logging.Logger,
        run_paths: Optional[RunPaths] = None,
        resolver: Optional[ElementResolver] = None,
        writer: Optional[FieldWriter] = None,
    ) -> None:
        self.session = session
        self.config = config
        self.logger = logger
        self.run_paths = run_paths
        timeouts = config.timeouts
        self.resolver = resolver or ElementResolver(
            session.page,
            timeout_ms=timeouts.element_ms,
            poll_interval_ms=timeouts.poll_interval_ms,
            logger=logger,
        )
        self.writer = writer or FieldWriter(settle_ms=timeouts.settle_ms, logger=logger)
        self.artifacts: List[str] = []
        self.fields: List[FieldReport] = []
        self._step_no = 0

    @property
    def page(self):
        return self.session.page

    def run(self) -> Dict[str, object]:
        self.login()
        self.open_events_section()
        self.open_create_form()
        self.fill_event_form()
        self.submit_event_form()
        successes, errors = self.report_feedback()
        self.open_listing_page()
        outcome = self.verify_event(self.config.draft.liga)
        self.logger.info("Test completed!")
        return {
            "status": _status_for(outcome),
            "verification": outcome.value,
            "fields": [report.to_dict() for report in self.fields],
            "success_messages": successes,
            "error_messages": errors,
        }

    def login(self) -> None:
        self._step("LOGIN TO ADMIN PANEL")
        credentials = self.config.credentials
        self._goto(self.config.admin_url)
        self.resolver.wait_visible(EMAIL_INPUT).handle.fill(credentials.email)
        self.resolver.wait_visible(PASSWORD_INPUT).handle.fill(credentials.password)
        self.resolver.wait_visible(LOGIN_SUBMIT).handle.click()
        idle_wait(
            self.page,
            self.config.timeouts.post_login_redirect_ms,
            reason="post-login redirect",
            logger=self.logger,
        )
        self._capture("login")

    def open_events_section(self) -> Optional[str]:
        """Optional step: failures are logged and the workflow continues."""
        self._step("NAVIGATE TO EVENTS SECTION")
        attempts = [
            Attempt(name="events menu text", action=self._click_events_text),
            Attempt(name="third menu button", action=self._click_events_menu_button),
            Attempt(name="page text probe", action=self._events_already_visible),
        ]
        try:
            outcome = first_success(attempts, label="events navigation", logger=self.logger)
        except (ResolutionError, PlaywrightError) as exc:
            self.logger.warning("Error finding/clicking Események button: %s", exc)
            return None
        if outcome is None:
            self.logger.warning("Could not find Események button; continuing")
            return None
        self.logger.info("Events section reached via %s", outcome.name)
        idle_wait(
            self.page,
            self.config.timeouts.post_menu_click_ms,
            reason="events section render",
            logger=self.logger,
        )
        return outcome.name

    def open_create_form(self) -> ResolvedElement:
        self._step("CREATE A NEW EVENT")
        self.logger.info("Creating event with liga name: %s", self.config.draft.liga)
        clicked = click_first_match(
            self.resolver, ADD_BUTTON_CANDIDATES, role=ActionRole.OPEN, label="add button"
        )
        idle_wait(
            self.page,
            self.config.timeouts.post_open_form_ms,
            reason="creation form render",
            logger=self.logger,
        )
        return clicked

    def fill_event_form(self) -> List[FieldReport]:
        draft = self.config.draft
        self.logger.info(
            "Using start date: %s, end date: %s", draft.starting_date, draft.ending_date
        )
        self.fields = []
        for plan in build_field_plans(draft):
            self.fields.append(self.fill_field(plan))
        self._capture("form_filled")
        return list(self.fields)

    def fill_field(self, plan: FieldPlan) -> FieldReport:
        attempts = [
            Attempt(
                name=plan.locator.describe(),
                action=lambda: self._write_specific(plan),
            ),
            Attempt(
                name=f"{plan.generic.describe()}[{plan.generic_index}]",
                action=lambda: self._write_generic(plan),
            ),
        ]
        outcome = first_success(attempts, label=f"field {plan.name}", logger=self.logger)
        report = outcome.value if outcome else None
        if report is None or not report.confirmed:
            self.logger.warning(
                "Could not confirm %s = %r; continuing with unconfirmed field",
                plan.name,
                plan.value,
            )
            return report or FieldReport(name=plan.name, value=plan.value, confirmed=False)
        self.logger.info("Set %s = %r via %s", plan.name, plan.value, report.source)
        return report

    def submit_event_form(self) -> ResolvedElement:
        clicked = click_first_match(
            self.resolver,
            SUBMIT_BUTTON_CANDIDATES,
            role=ActionRole.SUBMIT,
            label="submit button",
        )
        idle_wait(
            self.page,
            self.config.timeouts.post_submit_ms,
            reason="form submission",
            logger=self.logger,
        )
        self._capture("submitted")
        return clicked

    def report_feedback(self) -> Tuple[List[str], List[str]]:
        successes = visible_texts(self.page, SUCCESS_MESSAGES, logger=self.logger)
        errors = visible_texts(self.page, ERROR_MESSAGES, logger=self.logger)
        for message in successes:
            self.logger.info("Success message: %s", message)
        for message in errors:
            self.logger.warning("Error message: %s", message)
        return successes, errors

    def open_listing_page(self) -> None:
        self._step("EXITING ADMIN PANEL AND GOING TO COMPETITION PAGE")
        link = self.resolver.first_present(VIEW_EVENTS_LINK)
        clicked = False
        if link is not None:
            try:
                programmatic_click(link.handle)
                self.session.wait_until_ready(
                    timeout_ms=self.config.timeouts.navigation_ms, logger=self.logger
                )
                clicked = True
            except PlaywrightError as exc:
                self.logger.debug("View events click failed: %s", exc)
        if not clicked:
            self._goto(self.config.listing_url)
        idle_wait(
            self.page,
            self.config.timeouts.listing_render_ms,
            reason="listing render",
            logger=self.logger,
        )

    def verify_event(self, name: str) -> VerificationOutcome:
        self._step("CHECKING IF EVENT IS DISPLAYED")
        partial_name = name.split("_")[0]
        attempts = [
            Attempt(
                name="exact",
                action=lambda: self._probe_text(name, "red", VerificationOutcome.FOUND),
            ),
            Attempt(name="refresh", action=lambda: self._probe_after_refresh(name)),
            Attempt(
                name="partial",
                action=lambda: self._probe_text(
                    partial_name, "orange", VerificationOutcome.PARTIAL
                ),
            ),
        ]
        try:
            outcome = first_success(attempts, label="event verification", logger=self.logger)
        except PlaywrightError as exc:
            self.logger.error("Error checking for event: %s", exc)
            return VerificationOutcome.MISSING
        finally:
            self._capture("verification")

        if outcome is None:
            self.logger.error(
                "FAILURE: No events matching '%s' or '%s' found after refresh",
                name,
                partial_name,
            )
            return VerificationOutcome.MISSING
        result = outcome.value
        if result is VerificationOutcome.FOUND:
            self.logger.info("SUCCESS: Event with liga name '%s' found on the page!", name)
        elif result is VerificationOutcome.FOUND_AFTER_REFRESH:
            self.logger.info(
                "SUCCESS after refresh: Event with liga name '%s' found on the page!",
                name,
            )
        else:
            self.logger.warning("Found partial match for '%s' on the page", partial_name)
        return result

    def _click_events_text(self) -> Optional[str]:
        found = self.resolver.first_present(EVENTS_MENU_TEXT)
        if found is None:
            return None
        programmatic_click(found.handle)
        return found.locator.describe()

    def _click_events_menu_button(self) -> Optional[str]:
        found = self.resolver.nth_present(MENU_BUTTONS, EVENTS_MENU_INDEX)
        if found is None:
            return None
        programmatic_click(found.handle)
        return f"{found.locator.describe()}[{found.index}]"

    def _events_already_visible(self) -> Optional[str]:
        try:
            source = self.session.page_source()
        except PlaywrightError:
            return None
        if any(marker in source for marker in EVENTS_PAGE_MARKERS):
            return "page text"
        return None

    def _write_specific(self, plan: FieldPlan) -> Optional[FieldReport]:
        try:
            resolved = self.resolver.wait_visible(plan.locator)
        except ElementNotFound:
            self.logger.info("%s not found; falling back to generic lookup", plan.name)
            return None
        report = self._write(plan, resolved)
        if report.confirmed or plan.kind is not FieldKind.DATE:
            return report
        self.logger.info("%s not confirmed; retrying on the generic date input", plan.name)
        return None

    def _write_generic(self, plan: FieldPlan) -> Optional[FieldReport]:
        resolved = self.resolver.nth_present(plan.generic, plan.generic_index)
        if resolved is None:
            return None
        return self._write(plan, resolved)

    def _write(self, plan: FieldPlan, resolved: ResolvedElement) -> FieldReport:
        if plan.kind is FieldKind.SELECT:
            confirmed = self.writer.select_value(resolved.handle, plan.value)
        else:
            confirmed = self.writer.set_value(resolved.handle, plan.value)
        return FieldReport(
            name=plan.name,
            value=plan.value,
            confirmed=confirmed,
            source=f"{resolved.locator.describe()}[{resolved.index}]",
        )

    def _probe_text(
        self, text: str, colour: str, result: VerificationOutcome
    ) -> Optional[VerificationOutcome]:
        found = self.resolver.first_present(text_contains(text))
        if found is None:
            return None
        highlight(found.handle, colour, logger=self.logger)
        return result

    def _probe_after_refresh(self, name: str) -> Optional[VerificationOutcome]:
        self.logger.info("Refreshing the competition page and checking again...")
        self.session.reload(
            timeout_ms=self.config.timeouts.navigation_ms, logger=self.logger
        )
        idle_wait(
            self.page,
            self.config.timeouts.listing_render_ms,
            reason="listing render after refresh",
            logger=self.logger,
        )
        return self._probe_text(name, "red", VerificationOutcome.FOUND_AFTER_REFRESH)

    def _goto(self, url: str) -> None:
        self.logger.debug("Navigating to %s", url)
        self.session.goto(
            url, timeout_ms=self.config.timeouts.navigation_ms, logger=self.logger
        )

    def _step(self, title: str) -> None:
        self._step_no += 1
        self.logger.info("STEP %d: %s", self._step_no, title)

    def _capture(self, label: str) -> None:
        if not (self.config.screenshots and self.run_paths):
            return
        path = self.run_paths.screenshot_path(len(self.artifacts), label)
        try:
            self.session.screenshot(path)
        except PlaywrightError as exc:
            self.logger.debug("Screenshot '%s' failed: %s", label, exc)
            return
        self.artifacts.append(relative_artifact_path(path))


def _status_for(outcome: VerificationOutcome) -> str:
    if outcome in (VerificationOutcome.FOUND, VerificationOutcome.FOUND_AFTER_REFRESH):
        return "verified"
    if outcome is VerificationOutcome.PARTIAL:
        return "partial_match"
    return "not_listed"


def run_event_scenario(
    config: ScenarioConfig,
    *,
    logger: logging.Logger,
    run_paths: Optional[RunPaths] = None,
    browser_config: Optional[BrowserConfig] = None,
    session_factory: Callable[[BrowserConfig], BrowserSession] = BrowserSession,
) -> Dict[str, object]:
    """Run the workflow in a fresh session and return a JSON-able summary.

    Mandatory step failures are logged with their stack once the session is
    closed, then re-raised as ScenarioFailed carrying the partial summary.
    """
    summary: Dict[str, object] = {
        "run_id": run_paths.run_id if run_paths else None,
        "admin_url": config.admin_url,
        "listing_url": config.listing_url,
        "liga": config.draft.liga,
        "status": "failed",
        "verification": None,
        "fields": [],
        "artifacts": [],
        "final_url": None,
        "error": None,
    }
    try:
        with session_factory(browser_config or BrowserConfig()) as session:
            scenario = EventScenario(session, config, logger=logger, run_paths=run_paths)
            try:
                summary.update(scenario.run())
            finally:
                summary["artifacts"] = list(scenario.artifacts)
                summary["fields"] = [report.to_dict() for report in scenario.fields]
                summary["final_url"] = _current_url(session)
    except (ResolutionError, PlaywrightError) as exc:
        logger.exception("Test failed: %s", exc)
        summary["status"] = "error"
        summary["error"] = str(exc)
        raise ScenarioFailed(summary) from exc
    return summary


def _current_url(session) -> Optional[str]:
    try:
        return session.page.url
    except (PlaywrightError, RuntimeError):
        return None


__all__ = [
    "Credentials",
    "Timeouts",
    "EventDraft",
    "ScenarioConfig",
    "FieldKind",
    "FieldPlan",
    "FieldReport",
    "VerificationOutcome",
    "ScenarioFailed",
    "EventScenario",
    "add_months",
    "build_field_plans",
    "run_event_scenario",
]
