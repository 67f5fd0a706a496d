from medibook.core.cache.keys import CacheKeys, CacheTTL
from medibook.core.cache.metrics import CacheMetrics
from medibook.core.cache.read_cache import ReadPathCache

__all__ = ["CacheKeys", "CacheMetrics", "CacheTTL", "ReadPathCache"]
