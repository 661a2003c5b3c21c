"""
Tests for the Redis layer.

Covers:
    • Client construction from settings (auth, db index, timeout)
    • Eager PING and failure mapping
    • JSON get/set helpers, delete, counters
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import pytest
import redis

from microcli.app.core.cache import (
    cache_delete,
    cache_get,
    cache_incr,
    cache_set,
    close_redis,
    create_redis,
)
from microcli.app.core.config import Settings
from microcli.app.core.errors import CacheError


class TestCreateRedis:
    def test_connects_with_settings(self):
        s = Settings(_env_file=None, REDIS_HOST="cache", REDIS_PORT=6380, REDIS_DB=2, REDIS_AUTH="pw")
        with patch("microcli.app.core.cache.redis.Redis") as factory:
            client = create_redis(s)
        factory.assert_called_once_with(
            host="cache",
            port=6380,
            db=2,
            password="pw",
            socket_connect_timeout=2.5,
            decode_responses=True,
        )
        client.ping.assert_called_once()

    def test_empty_auth_means_no_password(self):
        s = Settings(_env_file=None, REDIS_AUTH="")
        with patch("microcli.app.core.cache.redis.Redis") as factory:
            create_redis(s)
        assert factory.call_args.kwargs["password"] is None

    def test_ping_failure(self):
        s = Settings(_env_file=None)
        with patch("microcli.app.core.cache.redis.Redis") as factory:
            factory.return_value.ping.side_effect = redis.ConnectionError("refused")
            with pytest.raises(CacheError) as info:
                create_redis(s)
        assert info.value.details["port"] == 6379
        assert isinstance(info.value.__cause__, redis.ConnectionError)


class TestHelpers:
    def test_get_miss(self, cache):
        assert cache_get(cache, "absent") is None

    def test_get_hit(self, cache):
        cache.get.return_value = json.dumps({"id": 1})
        assert cache_get(cache, "user:1") == {"id": 1}

    def test_set_serialises(self, cache):
        cache_set(cache, "user:1", {"id": 1, "name": "john"}, ttl=30)
        cache.set.assert_called_once_with("user:1", '{"id": 1, "name": "john"}', ex=30)

    def test_set_default_ttl(self, cache):
        with patch("microcli.app.core.cache.get_settings", return_value=Settings(_env_file=None, CACHE_TTL=99)):
            cache_set(cache, "k", 1)
        assert cache.set.call_args.kwargs["ex"] == 99

    def test_set_zero_ttl_never_expires(self, cache):
        with patch("microcli.app.core.cache.get_settings", return_value=Settings(_env_file=None, CACHE_TTL=99)):
            cache_set(cache, "k", 1, ttl=0)
        assert cache.set.call_args.kwargs["ex"] is None

    def test_delete(self, cache):
        cache.delete.return_value = 1
        assert cache_delete(cache, "k") is True
        cache.delete.return_value = 0
        assert cache_delete(cache, "k") is False

    def test_incr(self, cache):
        cache.incr.return_value = 5
        assert cache_incr(cache, "counter") == 5
        cache.incr.assert_called_once_with("counter", 1)

    @pytest.mark.parametrize("call", [
        lambda c: cache_get(c, "k"),
        lambda c: cache_set(c, "k", 1, ttl=1),
        lambda c: cache_delete(c, "k"),
        lambda c: cache_incr(c, "k"),
    ])
    def test_redis_errors_wrapped(self, call):
        client = MagicMock()
        for name in ("get", "set", "delete", "incr"):
            getattr(client, name).side_effect = redis.TimeoutError("slow")
        with pytest.raises(CacheError) as info:
            call(client)
        assert info.value.details["key"] == "k"

    def test_close(self, cache):
        close_redis(cache)
        cache.close.assert_called_once()
