"""
Cache Metrics

Counters for the read-path cache, exposed through the admin API.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class CacheMetrics:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    sets: int = 0
    invalidations: int = 0
    revalidations: int = 0
    errors: int = 0
    total_hit_latency_ms: float = 0.0
    total_miss_latency_ms: float = 0.0

    def record_hit(self, latency_ms: float = 0.0) -> None:
        self.hits += 1
        self.total_hit_latency_ms += latency_ms

    def record_miss(self, latency_ms: float = 0.0) -> None:
        self.misses += 1
        self.total_miss_latency_ms += latency_ms

    def record_set(self) -> None:
        self.sets += 1

    def record_invalidation(self) -> None:
        self.invalidations += 1

    def record_revalidation(self) -> None:
        self.revalidations += 1

    def record_error(self) -> None:
        self.errors += 1

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def reset(self) -> None:
        """Zero every counter."""
        self.hits = self.misses = self.sets = 0
        self.invalidations = self.revalidations = self.errors = 0
        self.total_hit_latency_ms = self.total_miss_latency_ms = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "sets": self.sets,
            "invalidations": self.invalidations,
            "revalidations": self.revalidations,
            "errors": self.errors,
            "hit_rate": round(self.hit_rate, 4),
            "avg_hit_latency_ms": round(self.total_hit_latency_ms / self.hits, 3) if self.hits else 0.0,
            "avg_miss_latency_ms": round(self.total_miss_latency_ms / self.misses, 3) if self.misses else 0.0,
        }
