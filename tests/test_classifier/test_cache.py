"""Tests for the inference response cache and its key derivation."""

from autofill.classifier.cache import ResponseCache, field_cache_key, question_cache_key
from autofill.models import Context, FieldDescriptor, PlatformType


class TestResponseCache:
    """Test TTL expiry, replacement and capacity eviction."""

    def test_hit_and_miss(self, clock):
        cache = ResponseCache(clock=clock)
        cache.put("a", 1)

        assert cache.get("a") == 1
        assert cache.get("b") is None
        assert cache.stats()["hits"] == 1
        assert cache.stats()["misses"] == 1

    def test_ttl_boundary(self, clock):
        """An entry exactly ttl seconds old is still fresh."""
        cache = ResponseCache(ttl=60, clock=clock)
        cache.put("a", "payload")

        clock.advance(60)
        assert cache.get("a") == "payload"

        clock.advance(0.001)
        assert cache.get("a") is None

    def test_expired_entry_is_not_removed_by_get(self, clock):
        cache = ResponseCache(ttl=60, clock=clock)
        cache.put("a", "payload")
        clock.advance(61)

        assert cache.get("a") is None
        assert "a" in cache

    def test_put_replaces_and_refreshes(self, clock):
        cache = ResponseCache(ttl=60, clock=clock)
        cache.put("a", "old")
        clock.advance(50)
        cache.put("a", "new")
        clock.advance(50)

        assert cache.get("a") == "new"
        assert len(cache) == 1

    def test_eviction_keeps_most_recent(self, clock):
        cache = ResponseCache(max_size=3, clock=clock)
        for i in range(5):
            cache.put(f"k{i}", i)
            clock.advance(1)

        assert len(cache) == 3
        assert [k for k in ("k0", "k1", "k2", "k3", "k4") if k in cache] == ["k2", "k3", "k4"]

    def test_eviction_prefers_expired(self, clock):
        cache = ResponseCache(max_size=2, ttl=10, clock=clock)
        cache.put("stale", 0)
        clock.advance(5)
        cache.put("fresh", 1)
        clock.advance(6)

        cache.put("newest", 2)

        assert "stale" not in cache
        assert "fresh" in cache
        assert "newest" in cache

    def test_equal_timestamps_evict_in_insertion_order(self, clock):
        cache = ResponseCache(max_size=2, clock=clock)
        cache.put("first", 1)
        cache.put("second", 2)
        cache.put("third", 3)

        assert "first" not in cache
        assert len(cache) == 2

    def test_evict_returns_count(self, clock):
        cache = ResponseCache(max_size=10, clock=clock)
        for i in range(4):
            cache.put(str(i), i)
        cache.max_size = 1

        assert cache.evict_if_over_capacity() == 3
        assert cache.evict_if_over_capacity() == 0

    def test_clear(self, clock):
        cache = ResponseCache(clock=clock, name="fields")
        cache.put("a", 1)
        cache.get("a")
        cache.clear()

        assert len(cache) == 0
        assert cache.stats() == {
            "name": "fields",
            "size": 0,
            "max_size": 100,
            "ttl_seconds": 86400,
            "hits": 0,
            "misses": 0,
        }


class TestCacheKeys:
    def test_field_key_is_deterministic(self):
        fields = [FieldDescriptor(name="a"), FieldDescriptor(name="b")]
        context = Context(platform_type=PlatformType.LEVER, url="https://jobs.lever.co/x")

        key = field_cache_key(fields, context)

        assert key == field_cache_key(list(fields), context)
        assert key.startswith("fields-")
        assert len(key) == len("fields-") + 32

    def test_field_key_is_order_sensitive(self):
        a, b = FieldDescriptor(name="a"), FieldDescriptor(name="b")
        context = Context()
        assert field_cache_key([a, b], context) != field_cache_key([b, a], context)

    def test_field_key_depends_on_page(self):
        fields = [FieldDescriptor(name="a")]
        assert field_cache_key(fields, Context(url="https://a.example")) != field_cache_key(
            fields, Context(url="https://b.example")
        )

    def test_field_key_ignores_placeholder(self):
        context = Context()
        assert field_cache_key([FieldDescriptor(name="a", placeholder="x")], context) == (
            field_cache_key([FieldDescriptor(name="a", placeholder="y")], context)
        )

    def test_question_key_depends_on_position_and_company(self):
        text = "Why do you want to work here?"
        base = question_cache_key(text, Context(company="Acme", position="Engineer"))

        assert base == question_cache_key(text, Context(company="Acme", position="Engineer"))
        assert base != question_cache_key(text, Context(company="Other", position="Engineer"))
        assert base != question_cache_key(text + "!", Context(company="Acme", position="Engineer"))
        assert base.startswith("question-")

    def test_question_key_ignores_url(self):
        text = "Why us?"
        assert question_cache_key(text, Context(url="https://a.example")) == question_cache_key(
            text, Context(url="https://b.example")
        )

    def test_keys_accept_lone_surrogates(self):
        """Text scraped from broken pages can hold unpaired surrogates."""
        context = Context(company="Acme")
        text = "Describe \udcff your favourite colour"

        key = question_cache_key(text, context)

        assert key == question_cache_key(text, context)
        assert key != question_cache_key("Describe your favourite colour", context)
        assert field_cache_key([FieldDescriptor(name="q\ud800", label="Pick \udcff one")], context)
