# ABOUTME: Infrastructure services used by the harvest engine
# ABOUTME: HTTP page fetching and the TTL cache with in-flight deduplication

from paldex_harvest.services.cache import CacheEntry, TTLCache
from paldex_harvest.services.http import HttpPageFetcher

__all__ = ["CacheEntry", "HttpPageFetcher", "TTLCache"]
