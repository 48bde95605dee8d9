"""
Tests for environment-driven defaults.
"""
import logging
import math

from config.settings import Settings, configure_logging
from tiercache.adapters.lru import LRUCacheAdapter
from tiercache.client import CachedClient
from tiercache.core import CacheConfig


def test_defaults(monkeypatch):
    for name in ("TIERCACHE_LRU_MAX_SIZE", "TIERCACHE_DEFAULT_STALE_TIME_MS", "TIERCACHE_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    fresh = Settings(_env_file=None)
    assert fresh.default_stale_time_ms is None
    assert fresh.lru_max_size == 100
    assert fresh.log_level == "INFO"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("TIERCACHE_LRU_MAX_SIZE", "7")
    monkeypatch.setenv("TIERCACHE_DEFAULT_STALE_TIME_MS", "30000")
    loaded = Settings(_env_file=None)
    assert loaded.lru_max_size == 7
    assert loaded.default_stale_time_ms == 30000


def test_lru_size_comes_from_settings(monkeypatch):
    monkeypatch.setattr("tiercache.adapters.lru.settings", Settings(_env_file=None, lru_max_size=3))
    assert LRUCacheAdapter().max_size == 3


def test_client_default_stale_time_from_settings(monkeypatch):
    async def fetch(context):
        return None

    config = CacheConfig(cache_name="n", fetch=fetch, cache_key=lambda params, result=None: "k", cache=[])

    monkeypatch.setattr("tiercache.client.settings", Settings(_env_file=None, default_stale_time_ms=45000))
    assert CachedClient(config).create_context({}).metadata.ttl == 45000

    monkeypatch.setattr("tiercache.client.settings", Settings(_env_file=None))
    assert CachedClient(config).create_context({}).metadata.ttl == math.inf


def test_unbounded_stale_time_beats_finite_default(monkeypatch):
    async def fetch(context):
        return None

    config = CacheConfig(
        cache_name="n", fetch=fetch, cache_key=lambda params, result=None: "k", cache=[], stale_time=math.inf
    )

    monkeypatch.setattr("tiercache.client.settings", Settings(_env_file=None, default_stale_time_ms=60000))
    assert CachedClient(config).create_context({}).metadata.ttl == math.inf


def test_configure_logging():
    configure_logging("debug")
    assert logging.getLogger("tiercache").level == logging.DEBUG
    configure_logging("warning")
    assert logging.getLogger("tiercache").level == logging.WARNING
