"""Prometheus instruments for fetch cycles, kept on a private registry."""

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

METRICS_REGISTRY = CollectorRegistry()

PAGES_FETCHED = Counter(
    "moviesync_pages_fetched_total",
    "Listing pages fetched from the remote catalog.",
    ["category"],
    registry=METRICS_REGISTRY,
)
CYCLES = Counter(
    "moviesync_fetch_cycles_total",
    "Fetch cycles by final outcome (loaded, error, cancelled).",
    ["category", "outcome"],
    registry=METRICS_REGISTRY,
)
MOVIES_PERSISTED = Counter(
    "moviesync_movies_persisted_total",
    "Movies written to the local cache after date filtering.",
    ["category"],
    registry=METRICS_REGISTRY,
)
CYCLE_SECONDS = Histogram(
    "moviesync_fetch_cycle_seconds",
    "Wall time of a fetch cycle from first request to commit.",
    ["category"],
    registry=METRICS_REGISTRY,
    buckets=(0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30, 60, float("inf")),
)


def render() -> bytes:
    """Text exposition of every instrument, for scraping or debugging."""
    return generate_latest(METRICS_REGISTRY)
