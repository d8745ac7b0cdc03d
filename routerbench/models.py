# routerbench/models.py
from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

Grade = Literal["good", "needs-improvement", "poor"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AppTarget(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    name: str
    base_url: str
    page_url: str
    nav_link_selector: str
    content_ready_selector: str
    description: str = ""


class RunMetrics(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    dom_content_loaded_ms: float
    dom_interactive_ms: float
    total_load_time_ms: float
    first_contentful_paint_ms: float
    largest_contentful_paint_ms: float
    network_request_count: int
    total_transfer_bytes: int
    js_bytes: int
    css_bytes: int
    time_to_first_byte_ms: float = 0.0
    cumulative_layout_shift: float = 0.0
    # Metric names whose value is a fallback approximation
    degraded: List[str] = []


class MetricStats(CamelModel):
    count: int
    min: float
    max: float
    mean: float
    median: float
    p95: float
    std_dev: float
    coefficient_of_variation: Optional[float] = None


class AggregatedMetrics(CamelModel):
    dom_content_loaded_ms: float
    dom_interactive_ms: float
    total_load_time_ms: float
    first_contentful_paint_ms: float
    largest_contentful_paint_ms: float
    network_request_count: float
    total_transfer_bytes: float
    js_bytes: float
    css_bytes: float
    time_to_first_byte_ms: float = 0.0
    cumulative_layout_shift: float = 0.0
    iterations: int
    raw_results: List[RunMetrics]
    load_time_stats: Optional[MetricStats] = None
    # Web Vitals rating per metric: "good", "needs-improvement" or "poor"
    grades: Dict[str, Grade] = {}


class ComparisonResult(CamelModel):
    load_time_winner: Optional[str] = None
    load_time_difference_ms: Optional[float] = None
    load_time_ratio: Optional[float] = None
    load_time_improvement_percent: Optional[float] = None
    lcp_winner: Optional[str] = None
    lcp_difference_ms: Optional[float] = None
    lcp_improvement_percent: Optional[float] = None
    transfer_size_winner: Optional[str] = None
    transfer_size_difference_bytes: Optional[float] = None
    navigation_winner: Optional[str] = None
    navigation_difference_ms: Optional[float] = None


class PersistedReport(CamelModel):
    timestamp: datetime
    test_duration_ms: float
    test_type: Literal["browser-based"] = "browser-based"
    targets: Dict[str, str]
    per_app_results: Dict[str, Optional[AggregatedMetrics]]
    navigation_ms: Dict[str, Optional[float]]
    comparison: ComparisonResult
