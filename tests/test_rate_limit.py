import os
import unittest
from datetime import datetime, timezone
from unittest.mock import patch

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

import redis

from clientdesk.services import rate_limit
from clientdesk.services.rate_limit import InMemoryRateLimiter, RedisRateLimiter
from tests.base import ApiTestBase


class _FakeRedis:
    def __init__(self):
        self.values = {}
        self.ttls = {}

    def incr(self, key):
        self.values[key] = self.values.get(key, 0) + 1
        return self.values[key]

    def expire(self, key, seconds):
        self.ttls[key] = seconds

    def ttl(self, key):
        return self.ttls.get(key, -1)


class InMemoryRateLimiterTests(unittest.TestCase):
    def test_blocks_after_limit(self):
        limiter = InMemoryRateLimiter()
        results = [limiter.hit("general:1.2.3.4", limit=3, window_seconds=60) for _ in range(4)]
        self.assertEqual([r.allowed for r in results], [True, True, True, False])
        self.assertEqual(results[-1].current_value, 4)
        self.assertGreater(results[-1].retry_after_seconds, 0)
        self.assertLessEqual(results[-1].retry_after_seconds, 60)

    def test_keys_are_independent(self):
        limiter = InMemoryRateLimiter()
        self.assertTrue(limiter.hit("auth:1.1.1.1", limit=1, window_seconds=60).allowed)
        self.assertFalse(limiter.hit("auth:1.1.1.1", limit=1, window_seconds=60).allowed)
        self.assertTrue(limiter.hit("general:1.1.1.1", limit=1, window_seconds=60).allowed)
        self.assertTrue(limiter.hit("auth:2.2.2.2", limit=1, window_seconds=60).allowed)

    def test_window_expiry_resets_counter(self):
        limiter = InMemoryRateLimiter()
        self.assertTrue(limiter.hit("k", limit=1, window_seconds=0).allowed)
        # window_seconds is clamped to one second; expire it by hand
        count, _ = limiter._data["k"]
        limiter._data["k"] = (count, datetime.now(timezone.utc))
        self.assertTrue(limiter.hit("k", limit=1, window_seconds=60).allowed)

    def test_expired_keys_are_pruned_past_threshold(self):
        limiter = InMemoryRateLimiter(prune_threshold=3)
        for idx in range(3):
            limiter.hit(f"general:10.0.0.{idx}", limit=5, window_seconds=60)
        past = datetime.now(timezone.utc)
        for key, (count, _) in list(limiter._data.items()):
            limiter._data[key] = (count, past)
        limiter.hit("general:10.0.0.99", limit=5, window_seconds=60)
        self.assertEqual(list(limiter._data), ["general:10.0.0.99"])

    def test_live_keys_survive_pruning(self):
        limiter = InMemoryRateLimiter(prune_threshold=2)
        limiter.hit("a", limit=5, window_seconds=60)
        limiter.hit("b", limit=5, window_seconds=60)
        limiter.hit("c", limit=5, window_seconds=60)
        self.assertEqual(set(limiter._data), {"a", "b", "c"})
        self.assertEqual(limiter.hit("a", limit=5, window_seconds=60).current_value, 2)


class RedisRateLimiterTests(unittest.TestCase):
    def test_counts_and_sets_expiry_once(self):
        fake = _FakeRedis()
        limiter = RedisRateLimiter(fake)
        first = limiter.hit("general:ip", limit=1, window_seconds=900)
        second = limiter.hit("general:ip", limit=1, window_seconds=900)
        self.assertTrue(first.allowed)
        self.assertFalse(second.allowed)
        self.assertEqual(second.retry_after_seconds, 900)
        self.assertEqual(fake.ttls, {"clientdesk:rl:general:ip": 900})


class LimiterSelectionTests(unittest.TestCase):
    def setUp(self):
        rate_limit.reset_rate_limiter_for_tests()

    def tearDown(self):
        rate_limit.reset_rate_limiter_for_tests()

    def test_in_memory_without_redis_url(self):
        with patch("clientdesk.services.rate_limit.settings.REDIS_URL", ""):
            limiter = rate_limit.get_rate_limiter()
        self.assertIsInstance(limiter, InMemoryRateLimiter)
        self.assertIs(rate_limit.get_rate_limiter(), limiter)

    def test_unreachable_redis_falls_back(self):
        with patch("clientdesk.services.rate_limit.settings.REDIS_URL", "redis://localhost:6390/0"), patch(
            "clientdesk.services.rate_limit.redis.Redis.from_url",
            side_effect=redis.ConnectionError("refused"),
        ):
            with self.assertLogs("clientdesk", level="WARNING"):
                limiter = rate_limit.get_rate_limiter()
        self.assertIsInstance(limiter, InMemoryRateLimiter)


class RateLimitEndpointTests(ApiTestBase):
    def test_auth_endpoints_use_stricter_budget(self):
        with patch("clientdesk.services.rate_limit.settings.AUTH_RATE_LIMIT_MAX_REQUESTS", 2):
            for _ in range(2):
                response = self.client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret1"})
                self.assertEqual(response.status_code, 401)
            blocked = self.client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret1"})
        self.assertEqual(blocked.status_code, 429)
        body = blocked.json()
        self.assertEqual(body["error"], "Too many authentication attempts")
        self.assertGreater(body["retryAfter"], 0)
        self.assertEqual(blocked.headers.get("retry-after"), str(body["retryAfter"]))

        # general budget is untouched by the auth bucket
        self.assertEqual(self.client.get("/api/auth/profile").status_code, 401)

    def test_general_budget_applies_to_all_api_routes(self):
        with patch("clientdesk.services.rate_limit.settings.RATE_LIMIT_MAX_REQUESTS", 3):
            statuses = [self.client.get("/api/client").status_code for _ in range(4)]
        self.assertEqual(statuses, [401, 401, 401, 429])

    def test_health_is_not_limited(self):
        with patch("clientdesk.services.rate_limit.settings.RATE_LIMIT_MAX_REQUESTS", 1):
            statuses = {self.client.get("/health").status_code for _ in range(3)}
        self.assertEqual(statuses, {200})

    def test_forwarded_for_is_trusted_only_when_enabled(self):
        first = {"X-Forwarded-For": "203.0.113.7, 10.0.0.1"}
        second = {"X-Forwarded-For": "198.51.100.4"}
        with patch("clientdesk.core.deps.settings.TRUST_PROXY", True), patch(
            "clientdesk.services.rate_limit.settings.RATE_LIMIT_MAX_REQUESTS", 1
        ):
            self.assertEqual(self.client.get("/api/client", headers=first).status_code, 401)
            self.assertEqual(self.client.get("/api/client", headers=first).status_code, 429)
            self.assertEqual(self.client.get("/api/client", headers=second).status_code, 401)
        self.assertEqual(self.limiter.hit("general:203.0.113.7", limit=5, window_seconds=60).current_value, 3)

        with patch("clientdesk.services.rate_limit.settings.RATE_LIMIT_MAX_REQUESTS", 1):
            # header ignored: both requests share the socket address
            self.assertEqual(self.client.get("/api/client", headers=second).status_code, 401)
            self.assertEqual(self.client.get("/api/client", headers=first).status_code, 429)
