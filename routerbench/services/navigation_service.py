# routerbench/services/navigation_service.py
import logging
import time
from typing import Optional

from playwright.async_api import Browser
from playwright.async_api import Error as PlaywrightError

from routerbench.core.config import Settings
from routerbench.models import AppTarget
from routerbench.services.page_load_service import VIEWPORT

logger = logging.getLogger(__name__)


async def measure_navigation(browser: Browser, target: AppTarget, config: Settings) -> Optional[float]:
    """
    Times one client-side route transition triggered by clicking the nav link.

    Args:
        browser: The target's browser session.
        target: The application under test.
        config: Timeouts for the page load, the link and the settle wait.

    Returns:
        The elapsed time in milliseconds, or None if the link or the resulting
        page never showed up.
    """
    logger.info("Measuring navigation performance for %s", target.name)

    context = None
    try:
        context = await browser.new_context(viewport=VIEWPORT)
        page = await context.new_page()
        await page.goto(target.base_url, wait_until="load", timeout=config.navigation_timeout_ms)

        link = await page.wait_for_selector(
            target.nav_link_selector, state="visible", timeout=config.nav_settle_timeout_ms
        )

        started = time.perf_counter()
        await link.click()
        await page.wait_for_selector(
            target.content_ready_selector, state="visible", timeout=config.nav_settle_timeout_ms
        )
        await page.wait_for_load_state("networkidle", timeout=config.nav_settle_timeout_ms)
        elapsed_ms = (time.perf_counter() - started) * 1000

        logger.info("  %s navigation completed: %.0fms", target.name, elapsed_ms)
        return elapsed_ms
    except PlaywrightError as e:
        logger.warning("Navigation test failed for %s: %s", target.name, e)
        return None
    finally:
        if context is not None:
            await context.close()
