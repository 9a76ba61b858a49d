from datetime import date

import pytest
from playwright.sync_api import Error as PlaywrightError

from admin_e2e.io_utils import prepare_run_directories
from admin_e2e.locators import by_class, by_css, by_id, by_tag
from admin_e2e.resolver import ActionUnavailable, ElementNotFound
from admin_e2e.scenario import (
    EMAIL_INPUT,
    EVENTS_MENU_TEXT,
    LOGIN_SUBMIT,
    PASSWORD_INPUT,
    VIEW_EVENTS_LINK,
    Credentials,
    EventDraft,
    EventScenario,
    ScenarioConfig,
    ScenarioFailed,
    Timeouts,
    VerificationOutcome,
    add_months,
    build_field_plans,
    run_event_scenario,
)

from tests.fakes import FakeElement, FakePage, FakeSession, slash_dates_only

TODAY = date(2025, 6, 15)


class FakeAdminSite:
    """Single-document admin panel: login form, events menu, creation form."""

    def __init__(
        self,
        page: FakePage,
        *,
        liga_has_id: bool = True,
        events_menu: bool = True,
        add_button: bool = True,
        listed_on_reload: bool = False,
        listed_text=None,
    ) -> None:
        self.page = page
        self.liga_has_id = liga_has_id
        self.listed_on_reload = listed_on_reload
        self.listed_text = listed_text
        self.listing = None

        self.email = FakeElement()
        self.password = FakeElement()
        self.login_button = FakeElement("button")
        page.add(EMAIL_INPUT, self.email)
        page.add(PASSWORD_INPUT, self.password)
        page.add(LOGIN_SUBMIT, self.login_button)

        if events_menu:
            self.events_menu = FakeElement("button", text="Események")
            page.add(EVENTS_MENU_TEXT, self.events_menu)
        if add_button:
            self.add_button = FakeElement("button", on_click=self.open_form)
            page.add(by_class("action-button"), self.add_button)

        self.liga = FakeElement()
        self.round = FakeElement()
        self.starting_date = FakeElement(accepts=slash_dates_only)
        self.ending_date = FakeElement(accepts=slash_dates_only)
        self.status = FakeElement("select", options=["0", "1"])
        self.submit_button = FakeElement("button", on_click=self.submit)

    def open_form(self) -> None:
        page = self.page
        if self.liga_has_id:
            page.add(by_id("liga"), self.liga)
        page.add(by_id("round"), self.round)
        page.add(by_id("starting_date"), self.starting_date)
        page.add(by_id("ending_date"), self.ending_date)
        page.add(by_id("esemenyStatus"), self.status)
        page.add(
            by_tag("input"), self.liga, self.round, self.starting_date, self.ending_date
        )
        page.add(by_css("input[type='date']"), self.starting_date, self.ending_date)
        page.add(by_css(".form-button.submit"), self.submit_button)

    def submit(self) -> None:
        text = self.listed_text or self.liga.value
        if self.listed_on_reload:
            self.page.on_reload = lambda page: self._publish(text)
        else:
            self._publish(text)

    def _publish(self, text: str) -> None:
        self.listing = self.page.add_text(text)


def make_config(liga: str = "esemény", **overrides) -> ScenarioConfig:
    return ScenarioConfig(
        credentials=Credentials(email="admin@example.hu", password="Admin123$"),
        draft=EventDraft.for_today(liga, today=TODAY),
        timeouts=Timeouts(element_ms=0, settle_ms=0),
        **overrides,
    )


def run(page, config=None, **kwargs):
    session = FakeSession(page)
    summary = run_event_scenario(
        config or make_config(),
        logger=kwargs.pop("logger"),
        session_factory=lambda browser_config: session,
        **kwargs,
    )
    return summary, session


def test_add_months_clamps_to_month_end():
    assert add_months(date(2025, 6, 15), 1) == date(2025, 7, 15)
    assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2025, 12, 10), 1) == date(2026, 1, 10)


def test_event_draft_for_today():
    draft = EventDraft.for_today("esemény", today=TODAY)
    assert draft.starting_date == "2025-06-15"
    assert draft.ending_date == "2025-07-15"
    assert (draft.round, draft.status) == ("1", "1")


def test_field_plans_cover_the_form_in_order():
    plans = build_field_plans(EventDraft.for_today(today=TODAY))
    assert [plan.name for plan in plans] == [
        "liga",
        "round",
        "starting_date",
        "ending_date",
        "status",
    ]
    assert [plan.generic_index for plan in plans] == [0, 1, 0, 1, 0]


def test_config_urls():
    config = make_config(base_url="https://focistak.netlify.app/")
    assert config.admin_url == "https://focistak.netlify.app/admin"
    assert config.listing_url == "https://focistak.netlify.app/competetion"


def test_end_to_end_event_is_created_and_listed(page, logger, tmp_path):
    site = FakeAdminSite(page)
    run_paths = prepare_run_directories("run-1", "event_scenario", root=tmp_path)

    summary, session = run(page, logger=logger, run_paths=run_paths)

    assert summary["status"] == "verified"
    assert summary["verification"] == VerificationOutcome.FOUND.value
    assert summary["run_id"] == "run-1"
    assert site.email.value == "admin@example.hu"
    assert site.password.value == "Admin123$"
    assert site.login_button.clicks == 1
    assert site.events_menu.events == ["script_click"]
    assert site.liga.value == "esemény"
    assert site.round.value == "1"
    assert "2025" in site.starting_date.value
    assert site.ending_date.value == "07/15/2025"
    assert site.status.value == "1"
    assert all(field["confirmed"] for field in summary["fields"])
    assert site.submit_button.events == ["script_click"]
    assert page.visits == [
        "https://focistak.netlify.app/admin",
        "https://focistak.netlify.app/competetion",
    ]
    assert "esemény" in page.content()
    assert site.listing.border == "red"
    assert page.reloads == 0
    assert 2000 in page.waits
    assert session.closed
    assert len(summary["artifacts"]) == len(session.screenshots) == 4


def test_liga_falls_back_to_first_generic_input(page, logger):
    site = FakeAdminSite(page, liga_has_id=False)

    summary, _ = run(page, logger=logger)

    liga_report = summary["fields"][0]
    assert liga_report["field"] == "liga"
    assert liga_report["confirmed"] is True
    assert liga_report["source"] == "By.Tag('input')[0]"
    assert site.liga.value == "esemény"
    assert summary["status"] == "verified"


def test_listing_found_after_refresh(page, logger):
    FakeAdminSite(page, listed_on_reload=True)

    summary, _ = run(page, logger=logger)

    assert summary["verification"] == VerificationOutcome.FOUND_AFTER_REFRESH.value
    assert summary["status"] == "verified"
    assert page.reloads == 1


def test_partial_name_match(page, logger):
    site = FakeAdminSite(page, listed_text="esemény")

    summary, _ = run(page, make_config("esemény_2025"), logger=logger)

    assert summary["verification"] == VerificationOutcome.PARTIAL.value
    assert summary["status"] == "partial_match"
    assert site.listing.border == "orange"


def test_missing_event_is_reported_not_raised(page, logger):
    site = FakeAdminSite(page, listed_text="másik")

    summary, session = run(page, logger=logger)

    assert summary["verification"] == VerificationOutcome.MISSING.value
    assert summary["status"] == "not_listed"
    assert page.reloads == 1
    assert site.listing.border is None
    assert session.closed


def test_view_events_link_replaces_direct_navigation(page, logger):
    FakeAdminSite(page)
    link = FakeElement("a", text="View Events")
    page.add(VIEW_EVENTS_LINK, link)

    run(page, logger=logger)

    assert link.clicks == 1
    assert page.visits == ["https://focistak.netlify.app/admin"]
    assert page.load_states == ["load", "load"]


def test_events_menu_falls_back_to_third_menu_button(page, logger):
    FakeAdminSite(page, events_menu=False)
    buttons = [FakeElement("button") for _ in range(3)]
    page.add(by_class("menu-button"), *buttons)

    summary, _ = run(page, logger=logger)

    assert [button.clicks for button in buttons] == [0, 0, 1]
    assert summary["status"] == "verified"


def test_missing_events_menu_is_not_fatal(page, logger, caplog):
    FakeAdminSite(page, events_menu=False)

    with caplog.at_level("WARNING"):
        summary, _ = run(page, logger=logger)

    assert summary["status"] == "verified"
    assert "Could not find Események button" in caplog.text


def test_unconfirmed_date_field_does_not_abort(page, logger):
    site = FakeAdminSite(page)
    site.starting_date.accepts = lambda value: False

    summary, _ = run(page, logger=logger)

    reports = {field["field"]: field for field in summary["fields"]}
    assert reports["starting_date"]["confirmed"] is False
    assert reports["ending_date"]["confirmed"] is True
    assert summary["status"] == "verified"


def test_unconfirmed_field_is_reported_without_touching_other_inputs(page, logger):
    liga = FakeElement(accepts=lambda value: False)
    search = FakeElement()
    page.add(by_id("liga"), liga)
    page.add(by_tag("input"), search, liga)
    scenario = EventScenario(FakeSession(page), make_config(), logger=logger)

    report = scenario.fill_field(build_field_plans(scenario.config.draft)[0])

    assert report.confirmed is False
    assert report.source == "By.Id('liga')[0]"
    assert search.value == ""
    assert search.events == []


def test_unconfirmed_date_is_retried_on_generic_date_input(page, logger):
    date_input = by_css("input[type='date']")
    rejecting = FakeElement(accepts=lambda value: False)
    picker = FakeElement(accepts=slash_dates_only)
    page.add(by_id("starting_date"), rejecting)
    page.add(date_input, picker)
    scenario = EventScenario(FakeSession(page), make_config(), logger=logger)

    report = scenario.fill_field(build_field_plans(scenario.config.draft)[2])

    assert report.confirmed is True
    assert report.source == f"{date_input.describe()}[0]"
    assert picker.value == "06/15/2025"


def test_missing_login_field_is_fatal_and_releases_session(logger):
    page = FakePage()
    session = FakeSession(page)

    with pytest.raises(ScenarioFailed) as excinfo:
        run_event_scenario(
            make_config(), logger=logger, session_factory=lambda config: session
        )

    assert isinstance(excinfo.value.__cause__, ElementNotFound)
    assert excinfo.value.summary["status"] == "error"
    assert "By.Id('email')" in excinfo.value.summary["error"]
    assert session.closed


def test_missing_add_control_is_fatal(page, logger):
    FakeAdminSite(page, add_button=False)
    session = FakeSession(page)

    with pytest.raises(ScenarioFailed) as excinfo:
        run_event_scenario(
            make_config(), logger=logger, session_factory=lambda config: session
        )

    assert isinstance(excinfo.value.__cause__, ActionUnavailable)
    assert session.closed


def test_scenario_steps_can_run_individually(page, logger):
    site = FakeAdminSite(page)
    scenario = EventScenario(FakeSession(page), make_config(), logger=logger)

    scenario.login()
    assert scenario.open_events_section() == "events menu text"
    scenario.open_create_form()
    reports = scenario.fill_event_form()

    assert [report.confirmed for report in reports] == [True] * 5
    assert site.add_button.clicks == 1


def test_failed_submit_keeps_filled_field_reports(page, logger):
    site = FakeAdminSite(page)
    site.submit_button.stale = True
    session = FakeSession(page)

    with pytest.raises(ScenarioFailed) as excinfo:
        run_event_scenario(
            make_config(), logger=logger, session_factory=lambda config: session
        )

    summary = excinfo.value.summary
    assert isinstance(excinfo.value.__cause__, PlaywrightError)
    assert [field["field"] for field in summary["fields"]] == [
        "liga",
        "round",
        "starting_date",
        "ending_date",
        "status",
    ]
    assert all(field["confirmed"] for field in summary["fields"])
