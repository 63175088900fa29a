import redis

from hf_registry.core import redis as redis_cache


class FakeRedis:
    def __init__(self, fail=False):
        self.data = {}
        self.fail = fail

    def get(self, key):
        if self.fail:
            raise redis.ConnectionError("down")
        return self.data.get(key)

    def setex(self, key, ttl, value):
        if self.fail:
            raise redis.ConnectionError("down")
        self.data[key] = value


def test_disabled_cache_is_a_no_op(monkeypatch):
    monkeypatch.setattr(redis_cache, "get_redis_client", lambda: None)

    assert redis_cache.set_cached_json("k", {"total": 1}, ttl=60) is False
    assert redis_cache.get_cached_json("k") is None


def test_json_round_trip(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(redis_cache, "get_redis_client", lambda: fake)

    assert redis_cache.set_cached_json("k", {"total": 3}, ttl=60) is True
    assert redis_cache.get_cached_json("k") == {"total": 3}
    assert redis_cache.get_cached_json("missing") is None


def test_corrupt_entry_is_a_miss(monkeypatch):
    fake = FakeRedis()
    fake.data["k"] = "{not json"
    monkeypatch.setattr(redis_cache, "get_redis_client", lambda: fake)

    assert redis_cache.get_cached_json("k") is None


def test_redis_errors_degrade_to_miss(monkeypatch):
    monkeypatch.setattr(redis_cache, "get_redis_client", lambda: FakeRedis(fail=True))

    assert redis_cache.get_cached_json("k") is None
    assert redis_cache.set_cached_json("k", {}, ttl=60) is False


def test_stats_cache_key_includes_version():
    assert redis_cache.stats_cache_key("ab12cd34", 7) == "hf_registry:ab12cd34:stats:v7"
