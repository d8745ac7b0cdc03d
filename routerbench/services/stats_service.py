# routerbench/services/stats_service.py
import math
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from routerbench.models import AggregatedMetrics, ComparisonResult, MetricStats, RunMetrics

AVERAGED_FIELDS = [
    "dom_content_loaded_ms",
    "dom_interactive_ms",
    "total_load_time_ms",
    "first_contentful_paint_ms",
    "largest_contentful_paint_ms",
    "network_request_count",
    "total_transfer_bytes",
    "js_bytes",
    "css_bytes",
    "time_to_first_byte_ms",
    "cumulative_layout_shift",
]

# (good upper bound, needs-improvement upper bound); anything above is poor
WEB_VITALS_THRESHOLDS = {
    "first_contentful_paint_ms": (1800, 3000),
    "largest_contentful_paint_ms": (2500, 4000),
    "cumulative_layout_shift": (0.1, 0.25),
    "time_to_first_byte_ms": (800, 1800),
}


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def describe(values: Sequence[float]) -> Optional[MetricStats]:
    """
    Computes descriptive statistics for one metric.

    Args:
        values: The per-trial values; None and NaN entries are ignored.

    Returns:
        A MetricStats object, or None if no valid value remains.
    """
    valid = [v for v in values if v is not None and not math.isnan(v)]
    if not valid:
        return None

    ordered = sorted(valid)
    mean = _mean(valid)
    std_dev = math.sqrt(sum((v - mean) ** 2 for v in valid) / len(valid))

    return MetricStats(
        count=len(valid),
        min=ordered[0],
        max=ordered[-1],
        mean=mean,
        median=ordered[len(ordered) // 2],
        p95=ordered[int(len(ordered) * 0.95)],
        std_dev=std_dev,
        coefficient_of_variation=std_dev / mean if mean else None,
    )


def aggregate(runs: Sequence[RunMetrics]) -> Optional[AggregatedMetrics]:
    """
    Averages the successful trials of one target.

    Every numeric field is the unweighted arithmetic mean of that field across
    the given runs. Failed trials must already be filtered out by the caller.

    Returns:
        The aggregated metrics, or None when there is no successful trial.
    """
    if not runs:
        return None

    averages = {
        field: _mean([getattr(run, field) for run in runs]) for field in AVERAGED_FIELDS
    }
    return AggregatedMetrics(
        **averages,
        iterations=len(runs),
        raw_results=list(runs),
        load_time_stats=describe([run.total_load_time_ms for run in runs]),
        grades={metric: grade(metric, averages[metric]) for metric in WEB_VITALS_THRESHOLDS},
    )


def grade(metric: str, value: Optional[float]) -> Optional[str]:
    """
    Rates a Web Vitals value as "good", "needs-improvement" or "poor".

    Returns:
        The rating, or None for an unknown metric or a missing value.
    """
    thresholds = WEB_VITALS_THRESHOLDS.get(metric)
    if thresholds is None or value is None:
        return None
    good, poor = thresholds
    if value <= good:
        return "good"
    if value <= poor:
        return "needs-improvement"
    return "poor"


def improvement_percent(baseline: Optional[float], candidate: Optional[float]) -> Optional[float]:
    """
    How much lower `candidate` is than `baseline`, in percent of the baseline.

    Positive means the candidate is better; None when the baseline is missing or 0.
    """
    if not baseline or candidate is None:
        return None
    return (baseline - candidate) / baseline * 100


def pick_winner(values: Mapping[str, Optional[float]]) -> Tuple[Optional[str], Optional[float]]:
    """
    Picks the target with the lowest value; lower is always better.

    Entries without a value never win. Equal values go to the target that
    comes first in `values` order.

    Returns:
        (winner, runner-up value minus winner value), or (None, None) when
        fewer than two targets have a value.
    """
    ranked = [(name, value) for name, value in values.items() if value is not None]
    if len(ranked) < 2:
        return None, None

    # sorted() is stable, so ties keep configuration order
    ranked = sorted(ranked, key=lambda item: item[1])
    (winner, best), (_, runner_up) = ranked[0], ranked[1]
    return winner, runner_up - best


def _field_values(
    per_app: Mapping[str, Optional[AggregatedMetrics]], field: str
) -> Dict[str, Optional[float]]:
    return {
        name: getattr(metrics, field) if metrics is not None else None
        for name, metrics in per_app.items()
    }


def compare(
    per_app: Mapping[str, Optional[AggregatedMetrics]],
    navigation: Mapping[str, Optional[float]],
) -> ComparisonResult:
    """
    Derives the winner verdicts between targets. Never raises.
    """
    load_times = _field_values(per_app, "total_load_time_ms")
    load_winner, load_diff = pick_winner(load_times)
    lcp_values = _field_values(per_app, "largest_contentful_paint_ms")
    lcp_winner, lcp_diff = pick_winner(lcp_values)
    transfer_winner, transfer_diff = pick_winner(_field_values(per_app, "total_transfer_bytes"))
    nav_winner, nav_diff = pick_winner(navigation)

    load_ratio = None
    load_improvement = None
    if load_winner is not None:
        best = load_times[load_winner]
        if best > 0:
            load_ratio = (best + load_diff) / best
        load_improvement = improvement_percent(best + load_diff, best)

    lcp_improvement = None
    if lcp_winner is not None:
        best = lcp_values[lcp_winner]
        lcp_improvement = improvement_percent(best + lcp_diff, best)

    return ComparisonResult(
        load_time_winner=load_winner,
        load_time_difference_ms=load_diff,
        load_time_ratio=load_ratio,
        load_time_improvement_percent=load_improvement,
        lcp_winner=lcp_winner,
        lcp_difference_ms=lcp_diff,
        lcp_improvement_percent=lcp_improvement,
        transfer_size_winner=transfer_winner,
        transfer_size_difference_bytes=transfer_diff,
        navigation_winner=nav_winner,
        navigation_difference_ms=nav_diff,
    )


def successful(results: List[Optional[RunMetrics]]) -> List[RunMetrics]:
    """Drops the failed (None) trials."""
    return [r for r in results if r is not None]
