# routerbench/services/benchmark_service.py
import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Optional, Sequence, Tuple

from playwright.async_api import Playwright, async_playwright

from routerbench.core.config import Settings
from routerbench.models import AggregatedMetrics, AppTarget, PersistedReport
from routerbench.services import stats_service
from routerbench.services.navigation_service import measure_navigation
from routerbench.services.page_load_service import browser_session, measure_page_load
from routerbench.services.readiness_service import wait_for_servers
from routerbench.services.report_repository import ReportRepository

logger = logging.getLogger(__name__)


async def measure_target(
    playwright: Playwright, target: AppTarget, config: Settings
) -> Tuple[Optional[AggregatedMetrics], Optional[float]]:
    """Page-load trials then the navigation trial, in one browser owned by this target."""
    async with browser_session(playwright, config) as browser:
        page_load = await measure_page_load(browser, target, config)
        navigation = await measure_navigation(browser, target, config)
    return page_load, navigation


def build_report(
    targets: Sequence[AppTarget],
    measurements: Sequence[Tuple[Optional[AggregatedMetrics], Optional[float]]],
    started_at: datetime,
    duration_ms: float,
) -> PersistedReport:
    per_app = {target.name: page_load for target, (page_load, _) in zip(targets, measurements)}
    navigation = {target.name: nav for target, (_, nav) in zip(targets, measurements)}

    return PersistedReport(
        timestamp=started_at,
        test_duration_ms=duration_ms,
        targets={target.name: target.page_url for target in targets},
        per_app_results=per_app,
        navigation_ms=navigation,
        comparison=stats_service.compare(per_app, navigation),
    )


async def run_benchmark(
    config: Settings, targets: Sequence[AppTarget], repository: ReportRepository
) -> PersistedReport:
    """
    Runs the whole pipeline: probe, measure every target concurrently,
    aggregate, compare and persist.

    Raises:
        ServerNotReadyError: If any target server never answers.
    """
    started_at = datetime.now(timezone.utc)
    started = time.perf_counter()

    logger.info("Checking if %d servers are running...", len(targets))
    await wait_for_servers(targets, config)

    async with async_playwright() as playwright:
        measurements = await asyncio.gather(
            *(measure_target(playwright, target, config) for target in targets)
        )

    report = build_report(targets, measurements, started_at, (time.perf_counter() - started) * 1000)
    repository.save(report)
    return report
