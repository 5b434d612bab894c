"""Prometheus metrics for the planning pipeline."""

from prometheus_client import Counter, Histogram

llm_latency_ms = Histogram(
    "llm_latency_ms",
    "Language-model call latency in milliseconds",
    ["provider", "outcome"],
    buckets=[100, 250, 500, 1000, 2000, 4000, 8000, 16000, 32000, 64000],
)

llm_errors_total = Counter(
    "llm_errors_total",
    "Total language-model call errors",
    ["provider", "reason"],
)

parse_tier_total = Counter(
    "itinerary_parse_tier_total",
    "Itinerary responses by the parser tier that produced them",
    ["tier"],
)

pruned_entities_total = Counter(
    "itinerary_pruned_entities_total",
    "Activities and meals dropped by the normalizer",
    ["kind", "reason"],
)

event_edit_attempts_total = Counter(
    "event_edit_attempts_total",
    "Event modification attempts by outcome",
    ["outcome"],
)

fact_check_total = Counter(
    "fact_check_total",
    "Fact-check lookups by check type and outcome",
    ["check", "outcome"],
)


class PrometheusLLMMetrics:
    """Prometheus-based LLM call metrics."""

    def record_latency(self, provider: str, outcome: str, latency_ms: float) -> None:
        """Record call latency."""
        llm_latency_ms.labels(provider=provider, outcome=outcome).observe(latency_ms)

    def inc_error(self, provider: str, reason: str) -> None:
        """Increment error counter."""
        llm_errors_total.labels(provider=provider, reason=reason).inc()
