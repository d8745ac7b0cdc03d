# routerbench/services/page_load_service.py
import asyncio
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from playwright.async_api import Browser, Playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from routerbench.core.config import Settings
from routerbench.core.exceptions import TrialError
from routerbench.models import AggregatedMetrics, AppTarget, RunMetrics
from routerbench.services import stats_service

logger = logging.getLogger(__name__)

CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-features=VizDisplayCompositor",
]
VIEWPORT = {"width": 1350, "height": 940}

# Installed before navigation so buffered paint entries are never missed.
PAINT_OBSERVER_SCRIPT = """
(() => {
  const state = { fcp: null, lcp: null, cls: 0 };
  state.done = new Promise((resolve) => {
    const settle = () => {
      if (state.fcp !== null && state.lcp !== null) {
        resolve();
      }
    };
    new PerformanceObserver((list) => {
      for (const entry of list.getEntries()) {
        if (entry.name === "first-contentful-paint") {
          state.fcp = entry.startTime;
        }
      }
      settle();
    }).observe({ type: "paint", buffered: true });
    new PerformanceObserver((list) => {
      const entries = list.getEntries();
      if (entries.length > 0) {
        state.lcp = entries[entries.length - 1].startTime;
      }
      settle();
    }).observe({ type: "largest-contentful-paint", buffered: true });
  });
  new PerformanceObserver((list) => {
    for (const entry of list.getEntries()) {
      if (!entry.hadRecentInput) {
        state.cls += entry.value;
      }
    }
  }).observe({ type: "layout-shift", buffered: true });
  window.__routerbenchPaint = state;
})();
"""

# Races "both paint metrics observed" against a timer and returns what was captured.
PAINT_METRICS_SCRIPT = """
(timeoutMs) => {
  const state = window.__routerbenchPaint;
  if (!state) {
    return { fcp: null, lcp: null, cls: null, timedOut: false };
  }
  const snapshot = (timedOut) => ({ fcp: state.fcp, lcp: state.lcp, cls: state.cls, timedOut });
  return Promise.race([
    state.done.then(() => snapshot(false)),
    new Promise((resolve) => setTimeout(() => resolve(snapshot(true)), timeoutMs)),
  ]);
}
"""

NAVIGATION_TIMING_SCRIPT = """
() => {
  const entry = performance.getEntriesByType("navigation")[0];
  return entry ? entry.toJSON() : null;
}
"""


@dataclass
class NetworkTally:
    """Network totals of a single trial. A new tally is created for every trial."""
    request_count: int = 0
    total_bytes: int = 0
    js_bytes: int = 0
    css_bytes: int = 0
    mime_types: Dict[str, str] = field(default_factory=dict)

    def on_response_received(self, params: Dict[str, Any]) -> None:
        response = params.get("response", {})
        self.request_count += 1
        self.mime_types[params.get("requestId", "")] = response.get("mimeType") or ""

    def on_loading_finished(self, params: Dict[str, Any]) -> None:
        size = int(params.get("encodedDataLength") or 0)
        mime_type = self.mime_types.get(params.get("requestId", ""), "")
        self.total_bytes += size
        if "javascript" in mime_type:
            self.js_bytes += size
        elif "css" in mime_type:
            self.css_bytes += size


def _positive(value: Optional[float]) -> Optional[float]:
    if value is None or value <= 0:
        return None
    return float(value)


def resolve_timings(
    entry: Optional[Dict[str, Any]], stopwatch_ms: float
) -> Tuple[Dict[str, float], List[str]]:
    """
    Derives the load durations from a navigation-timing entry.

    Each duration is measured from the entry's start time. A missing or
    non-positive duration is replaced by the first valid fallback among the
    total entry duration, loadEventEnd, domContentLoadedEventEnd and finally
    the harness stopwatch.

    Returns:
        (durations keyed by RunMetrics field name, names of replaced fields)
    """
    entry = entry or {}
    start = entry.get("startTime") or 0

    def since_start(key: str) -> Optional[float]:
        value = entry.get(key)
        if value is None:
            return None
        return _positive(value - start)

    fallbacks = [
        _positive(entry.get("duration")),
        since_start("loadEventEnd"),
        since_start("domContentLoadedEventEnd"),
        float(stopwatch_ms),
    ]
    fallback = next(value for value in fallbacks if value is not None)

    primary = {
        "dom_content_loaded_ms": since_start("domContentLoadedEventEnd"),
        "dom_interactive_ms": since_start("domInteractive"),
        "total_load_time_ms": since_start("loadEventEnd"),
    }

    durations = {}
    degraded = []
    for name, value in primary.items():
        if value is None:
            degraded.append(name)
            value = fallback
        durations[name] = value
    return durations, degraded


def resolve_paint(snapshot: Optional[Dict[str, Any]]) -> Tuple[float, float, List[str]]:
    """
    Reads FCP and LCP from a paint snapshot; missing values become 0.

    Returns:
        (fcp, lcp, names of the metrics that were not observed)
    """
    snapshot = snapshot or {}
    fcp = snapshot.get("fcp")
    lcp = snapshot.get("lcp")

    missing = []
    if fcp is None:
        missing.append("first_contentful_paint_ms")
    if lcp is None:
        missing.append("largest_contentful_paint_ms")
    return float(fcp or 0), float(lcp or 0), missing


def resolve_first_byte(entry: Optional[Dict[str, Any]]) -> Optional[float]:
    """Time to first byte (responseStart since the entry start), or None when unusable."""
    if not entry or entry.get("responseStart") is None:
        return None
    return _positive(entry["responseStart"] - (entry.get("startTime") or 0))


def resolve_layout_shift(snapshot: Optional[Dict[str, Any]]) -> float:
    """Cumulative layout shift; no observed shift is a real 0."""
    return float((snapshot or {}).get("cls") or 0)


async def _wait_for_load_event(page, target: AppTarget, config: Settings) -> None:
    try:
        await page.wait_for_load_state("load", timeout=config.load_event_timeout_ms)
    except PlaywrightTimeoutError:
        logger.warning(
            "%s: load event not fired after %dms, reading timing as is",
            target.name,
            config.load_event_timeout_ms,
        )


async def _wait_for_content(page, target: AppTarget, config: Settings) -> None:
    try:
        await page.wait_for_selector(
            target.content_ready_selector,
            state="visible",
            timeout=config.content_ready_timeout_ms,
        )
    except PlaywrightTimeoutError:
        logger.warning(
            "%s: content selector %r not visible after %dms, waiting %dms instead",
            target.name,
            target.content_ready_selector,
            config.content_ready_timeout_ms,
            config.content_grace_ms,
        )
        await asyncio.sleep(config.content_grace_ms / 1000)


async def _read_paint(page, target: AppTarget, config: Settings) -> Optional[Dict[str, Any]]:
    guard_s = config.paint_timeout_ms / 1000 + 5
    snapshot = await asyncio.wait_for(
        page.evaluate(PAINT_METRICS_SCRIPT, config.paint_timeout_ms), timeout=guard_s
    )
    if snapshot and snapshot.get("timedOut"):
        logger.warning(
            "%s: paint metrics still incomplete after %dms", target.name, config.paint_timeout_ms
        )
    return snapshot


async def run_trial(browser: Browser, target: AppTarget, config: Settings) -> Optional[RunMetrics]:
    """
    Loads the target page once in a fresh, cache-less browser context.

    Returns:
        The trial's metrics, or None if the trial failed.
    """
    tally = NetworkTally()
    context = None
    try:
        context = await browser.new_context(viewport=VIEWPORT)
        page = await context.new_page()
        cdp = await context.new_cdp_session(page)
        cdp.on("Network.responseReceived", tally.on_response_received)
        cdp.on("Network.loadingFinished", tally.on_loading_finished)
        await cdp.send("Network.enable")
        await cdp.send("Network.setCacheDisabled", {"cacheDisabled": True})
        await page.add_init_script(PAINT_OBSERVER_SCRIPT)

        started = time.perf_counter()
        response = await page.goto(
            target.page_url,
            wait_until="domcontentloaded",
            timeout=config.navigation_timeout_ms,
        )
        stopwatch_ms = (time.perf_counter() - started) * 1000
        if response is None:
            raise TrialError(f"No response for {target.page_url}")

        await _wait_for_content(page, target, config)
        # loadEventEnd stays 0 until the load event has finished
        await _wait_for_load_event(page, target, config)

        entry = await page.evaluate(NAVIGATION_TIMING_SCRIPT)
        durations, degraded = resolve_timings(entry, stopwatch_ms)
        if degraded:
            logger.warning(
                "%s: navigation timing unusable for %s, using fallback values",
                target.name,
                ", ".join(degraded),
            )

        first_byte = resolve_first_byte(entry)
        if first_byte is None:
            degraded.append("time_to_first_byte_ms")

        snapshot = await _read_paint(page, target, config)
        fcp, lcp, missing_paint = resolve_paint(snapshot)
        if missing_paint:
            logger.warning("%s: %s not captured, recorded as 0", target.name, ", ".join(missing_paint))

        return RunMetrics(
            **durations,
            first_contentful_paint_ms=fcp,
            largest_contentful_paint_ms=lcp,
            network_request_count=tally.request_count,
            total_transfer_bytes=tally.total_bytes,
            js_bytes=tally.js_bytes,
            css_bytes=tally.css_bytes,
            time_to_first_byte_ms=first_byte or 0.0,
            cumulative_layout_shift=resolve_layout_shift(snapshot),
            degraded=degraded + missing_paint,
        )
    except (PlaywrightError, asyncio.TimeoutError, TrialError) as e:
        logger.error("Error measuring %s: %s", target.name, e)
        return None
    finally:
        if context is not None:
            await context.close()


async def measure_page_load(
    browser: Browser, target: AppTarget, config: Settings
) -> Optional[AggregatedMetrics]:
    """
    Runs the warm-up and measured trials for one target, one after another.

    Returns:
        The averaged metrics of the successful trials, or None if all failed.
    """
    logger.info("Measuring performance for %s (%s)", target.name, target.page_url)

    for i in range(config.warmup_runs):
        logger.info("  %s warm-up %d/%d...", target.name, i + 1, config.warmup_runs)
        await run_trial(browser, target, config)

    results = []
    for i in range(config.iterations):
        logger.info("  %s run %d/%d...", target.name, i + 1, config.iterations)
        metrics = await run_trial(browser, target, config)
        if metrics is not None:
            logger.info(
                "  %s run %d completed: %.0fms", target.name, i + 1, metrics.total_load_time_ms
            )
        results.append(metrics)

    runs = stats_service.successful(results)
    if not runs:
        logger.error("All %d trials failed for %s", config.iterations, target.name)
    return stats_service.aggregate(runs)


@asynccontextmanager
async def browser_session(playwright: Playwright, config: Settings) -> AsyncIterator[Browser]:
    """Launches one Chromium for a target's whole measurement session."""
    browser = await playwright.chromium.launch(headless=config.headless, args=CHROMIUM_ARGS)
    try:
        yield browser
    finally:
        await browser.close()
