"""
Cache package for the Auth Service.

Provides the validation cache that remembers signature-verified tokens,
plus the transactional key-value stores it can run on: an in-process
dictionary (default) and Redis for deployments with several replicas.
"""

from .store import (
    CacheKeyNotFound,
    InMemoryKeyValueStore,
    KeyValueStore,
    RedisKeyValueStore,
    Transaction,
)
from .validation_cache import ValidationCache, token_fingerprint

__all__ = [
    "CacheKeyNotFound",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "RedisKeyValueStore",
    "Transaction",
    "ValidationCache",
    "token_fingerprint",
]
