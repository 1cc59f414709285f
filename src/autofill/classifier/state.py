"""Shared pipeline state.

One PipelineState is built per process (or per test) and handed to every
orchestrator and inference client that should share caches and quota.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..config import AutofillConfig, get_config
from .cache import ResponseCache
from .rate_limiter import RateLimiter

logger = logging.getLogger("autofill.classifier.state")

__all__ = ["PipelineState"]


@dataclass
class PipelineState:
    """Caches and rate limiter shared across classification requests.

    Attributes:
        field_cache: Results of field-batch inference
        question_cache: Results of question inference
        rate_limiter: Admission control for remote calls
        admission_lock: Held from the limiter check until its commit, so two
            concurrent requests cannot both pass the check
    """

    field_cache: ResponseCache
    question_cache: ResponseCache
    rate_limiter: RateLimiter
    admission_lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @classmethod
    def from_config(
        cls,
        config: Optional[AutofillConfig] = None,
        clock: Callable[[], float] = time.time,
    ) -> "PipelineState":
        """Build fresh state sized from configuration.

        Args:
            config: Configuration (default: global singleton)
            clock: Time source shared by the caches and the limiter
        """
        config = config or get_config()
        return cls(
            field_cache=ResponseCache(
                max_size=config.cache_max_size,
                ttl=config.cache_ttl_seconds,
                clock=clock,
                name="fields",
            ),
            question_cache=ResponseCache(
                max_size=config.cache_max_size,
                ttl=config.cache_ttl_seconds,
                clock=clock,
                name="questions",
            ),
            rate_limiter=RateLimiter(
                requests_per_minute=config.requests_per_minute,
                requests_per_day=config.requests_per_day,
                clock=clock,
            ),
        )

    def usage_stats(self) -> dict:
        return {
            "rate_limit": self.rate_limiter.usage_stats(),
            "field_cache": self.field_cache.stats(),
            "question_cache": self.question_cache.stats(),
        }

    def clear_caches(self) -> None:
        self.field_cache.clear()
        self.question_cache.clear()
        logger.info("caches_cleared")
