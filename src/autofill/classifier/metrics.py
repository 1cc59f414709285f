"""Prometheus metrics for form classification.

Uses the `autofill_*` prefix for all metrics.
"""

import logging

from prometheus_client import Counter, Histogram

logger = logging.getLogger("autofill.classifier.metrics")

__all__ = [
    "cache_lookups_total",
    "classifier_confidence",
    "classifier_resolutions_total",
    "fallbacks_total",
    "inference_latency_seconds",
    "inference_requests_total",
    "rate_limit_denials_total",
    "record_cache_lookup",
    "record_fallback",
    "record_inference",
    "record_rate_limit_denial",
    "record_resolution",
]

# =============================================================================
# PROMETHEUS METRICS
# =============================================================================

# Which stage resolved each field or question
classifier_resolutions_total = Counter(
    "autofill_classifier_resolutions_total",
    "Fields and questions resolved, by stage",
    ["target", "method"],  # target: field/question
)

# Remote calls
inference_requests_total = Counter(
    "autofill_inference_requests_total",
    "Remote inference calls issued",
    ["provider", "target", "status"],
)

inference_latency_seconds = Histogram(
    "autofill_inference_latency_seconds",
    "Remote inference latency",
    ["provider", "target"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
)

# Degraded results
fallbacks_total = Counter(
    "autofill_fallbacks_total",
    "Inference fallbacks",
    ["target", "reason"],  # reason: rate_limited, transport, provider, parse
)

rate_limit_denials_total = Counter(
    "autofill_rate_limit_denials_total",
    "Remote calls refused by the local rate limiter",
)

cache_lookups_total = Counter(
    "autofill_cache_lookups_total",
    "Response cache lookups",
    ["cache", "result"],  # result: hit/miss
)

classifier_confidence = Histogram(
    "autofill_classifier_confidence",
    "Confidence of resolved classifications",
    ["method"],
    buckets=[0.1, 0.3, 0.5, 0.7, 0.8, 0.9, 1.0],
)

# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def record_resolution(target: str, method: str, confidence: float = 0.0):
    """Record a resolved field or question.

    Args:
        target: "field" or "question"
        method: Stage or source that produced the result
        confidence: Reported confidence (observed only when > 0)

    Example:
        >>> record_resolution("field", "heuristic", 0.4)
    """
    classifier_resolutions_total.labels(target=target, method=method).inc()
    if confidence > 0:
        classifier_confidence.labels(method=method).observe(confidence)


def record_inference(provider: str, target: str, success: bool, latency_seconds: float):
    """Record one remote call.

    Example:
        >>> record_inference("gemini", "field", success=True, latency_seconds=1.2)
    """
    status = "success" if success else "error"
    inference_requests_total.labels(provider=provider, target=target, status=status).inc()
    inference_latency_seconds.labels(provider=provider, target=target).observe(
        latency_seconds
    )

    logger.debug(
        "inference_recorded",
        extra={
            "provider": provider,
            "target": target,
            "success": success,
            "latency_seconds": latency_seconds,
        },
    )


def record_fallback(target: str, reason: str):
    """Record a degraded inference result.

    Example:
        >>> record_fallback("question", "rate_limited")
    """
    fallbacks_total.labels(target=target, reason=reason).inc()

    logger.info("inference_fallback", extra={"target": target, "reason": reason})


def record_rate_limit_denial():
    rate_limit_denials_total.inc()


def record_cache_lookup(cache: str, hit: bool):
    cache_lookups_total.labels(cache=cache, result="hit" if hit else "miss").inc()
