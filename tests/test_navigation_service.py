from __future__ import annotations

import asyncio

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from browser_doubles import FakeBrowser, TrialPlan
from factories import make_settings, make_target
from routerbench.services.navigation_service import measure_navigation


def test_navigation_is_timed_after_click():
    target = make_target()
    browser = FakeBrowser([TrialPlan()])

    elapsed = asyncio.run(measure_navigation(browser, target, make_settings()))

    assert elapsed is not None
    assert elapsed >= 0
    page = browser.contexts[0].page
    assert page.visited == [target.base_url]
    assert page.clicks == 1
    assert browser.contexts[0].closed


def test_missing_nav_link_returns_none():
    target = make_target()
    browser = FakeBrowser([TrialPlan(hidden_selectors={target.nav_link_selector})])

    elapsed = asyncio.run(measure_navigation(browser, target, make_settings()))

    assert elapsed is None
    assert browser.contexts[0].page.clicks == 0
    assert browser.contexts[0].closed


def test_navigation_timeout_returns_none():
    browser = FakeBrowser([TrialPlan(goto_error=PlaywrightTimeoutError("Timeout 30000ms exceeded"))])

    assert asyncio.run(measure_navigation(browser, make_target(), make_settings())) is None
