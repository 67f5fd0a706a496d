"""
Cache key and TTL conventions.
"""


class CacheTTL:
    """Cache TTL constants (in seconds)"""

    SHORT = 60
    MEDIUM = 300
    LONG = 600
    VERY_LONG = 1800
    HOUR = 3600
    DAY = 86400


class CacheKeys:
    """Builds namespaced cache keys, e.g. `medibook:provider:42`."""

    def __init__(self, prefix: str = "medibook"):
        self.prefix = prefix

    def build(self, *parts: str | int) -> str:
        return ":".join([self.prefix, *(str(p) for p in parts)])

    def provider(self, provider_id: str) -> str:
        return self.build("provider", provider_id)

    def provider_slots(self, provider_id: str, date: str, duration: int | None) -> str:
        return self.build("slots", provider_id, date, duration or "default")

    def provider_slots_pattern(self, provider_id: str) -> str:
        return self.build("slots", provider_id, "*")

    def commission(self) -> str:
        return self.build("settings", "commission")

    def all(self) -> str:
        return self.build("*")
