# routerbench/services/summary_service.py
import math
from typing import Optional

from routerbench.models import AggregatedMetrics, PersistedReport


def format_bytes(size: Optional[float]) -> str:
    """Human readable byte size, e.g. 1536 -> '1.5 KB'."""
    if size is None:
        return "N/A"
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    exponent = min(int(math.log(size, 1024)), len(units) - 1)
    value = round(size / 1024 ** exponent, 2)
    return f"{value:g} {units[exponent]}"


def format_ms(value: Optional[float]) -> str:
    return "N/A" if value is None else f"{round(value)}ms"


def format_percent(value: Optional[float]) -> str:
    return "N/A" if value is None else f"{value:.1f}%"


def _graded(metrics: AggregatedMetrics, field: str, text: str) -> str:
    rating = metrics.grades.get(field)
    return f"{text} ({rating})" if rating else text


def _metric_lines(metrics: AggregatedMetrics) -> list:
    lines = [
        f"    Total Load Time: {format_ms(metrics.total_load_time_ms)}",
        f"    DOM Content Loaded: {format_ms(metrics.dom_content_loaded_ms)}",
        f"    DOM Interactive: {format_ms(metrics.dom_interactive_ms)}",
        "    Time to First Byte: "
        + _graded(metrics, "time_to_first_byte_ms", format_ms(metrics.time_to_first_byte_ms)),
        "    First Contentful Paint: "
        + _graded(metrics, "first_contentful_paint_ms", format_ms(metrics.first_contentful_paint_ms)),
        "    Largest Contentful Paint: "
        + _graded(metrics, "largest_contentful_paint_ms", format_ms(metrics.largest_contentful_paint_ms)),
        "    Cumulative Layout Shift: "
        + _graded(metrics, "cumulative_layout_shift", f"{metrics.cumulative_layout_shift:.3f}"),
        f"    Network Requests: {metrics.network_request_count:g}",
        f"    Total Transfer: {format_bytes(metrics.total_transfer_bytes)}",
        f"    JavaScript: {format_bytes(metrics.js_bytes)}",
        f"    CSS: {format_bytes(metrics.css_bytes)}",
        f"    Successful Runs: {metrics.iterations}",
    ]
    stats = metrics.load_time_stats
    if stats is not None and stats.count > 1:
        lines.append(
            f"    Load Time Spread: min {format_ms(stats.min)}, max {format_ms(stats.max)}, "
            f"std dev {format_ms(stats.std_dev)}"
        )
    return lines


def format_summary(report: PersistedReport) -> str:
    """
    Formats a report into the console comparison summary.
    """
    lines = ["Browser Performance Comparison Results", "=" * 60]

    lines.append("\n--- Page Load Performance (average) ---")
    for name, metrics in report.per_app_results.items():
        lines.append(f"\n  {name} ({report.targets.get(name, '')}):")
        if metrics is None:
            lines.append("    No successful runs.")
        else:
            lines.extend(_metric_lines(metrics))

    lines.append("\n--- Navigation Performance ---")
    for name, elapsed in report.navigation_ms.items():
        lines.append(f"  {name}: {format_ms(elapsed)}")

    comparison = report.comparison
    lines.append("\n--- Performance Winner Analysis ---")
    if comparison.load_time_winner is not None:
        lines.append(
            f"  Total Load Time: {comparison.load_time_winner} is "
            f"{comparison.load_time_ratio or 1:.2f}x faster "
            f"(difference: {format_ms(comparison.load_time_difference_ms)}, "
            f"{format_percent(comparison.load_time_improvement_percent)} less)"
        )
    if comparison.lcp_winner is not None:
        lines.append(
            f"  Largest Contentful Paint: {comparison.lcp_winner} is better by "
            f"{format_ms(comparison.lcp_difference_ms)} "
            f"({format_percent(comparison.lcp_improvement_percent)})"
        )
    if comparison.transfer_size_winner is not None:
        lines.append(
            f"  Data Transfer: {comparison.transfer_size_winner} transfers "
            f"{format_bytes(comparison.transfer_size_difference_bytes)} less"
        )
    if comparison.navigation_winner is not None:
        lines.append(
            f"  Navigation: {comparison.navigation_winner} is faster by "
            f"{format_ms(comparison.navigation_difference_ms)}"
        )
    if all(
        winner is None
        for winner in (
            comparison.load_time_winner,
            comparison.lcp_winner,
            comparison.transfer_size_winner,
            comparison.navigation_winner,
        )
    ):
        lines.append("  Not enough successful measurements to compare.")

    lines.append(f"\nTest duration: {report.test_duration_ms / 1000:.1f}s")
    return "\n".join(lines)
