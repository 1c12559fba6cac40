"""
Unit tests for the in-memory fixed-window limiter (no HTTP involved).
"""
import asyncio
from concurrent.futures import ThreadPoolExecutor
from types import SimpleNamespace

import pytest

from app.core.limiter import InMemoryRateLimiter, RateLimitDecision, default_key_func

from conftest import FakeClock, START_MS

HOUR_MS = 60 * 60 * 1000


def test_requests_within_quota_count_down(limiter, clock):
    policy = limiter.create_rate_limit("profile", 5 * 60 * 1000, 30)

    for count in range(1, 31):
        decision = limiter.hit(policy, "chef-1")
        assert decision.allowed
        assert decision.remaining == 30 - count
        assert decision.limit == 30
        assert decision.retry_after is None
        clock.advance(100)


def test_request_over_quota_is_rejected_without_counting(limiter, clock):
    policy = limiter.create_rate_limit("auth", 15 * 60 * 1000, 3)
    for _ in range(3):
        assert limiter.hit(policy, "user-a").allowed

    clock.advance(60 * 1000)
    rejected = limiter.hit(policy, "user-a")

    assert not rejected.allowed
    assert rejected.remaining == 0
    assert rejected.retry_after == 14 * 60
    assert limiter.get_entry(policy, "user-a").count == 3

    # Repeated rejections keep the same window
    again = limiter.hit(policy, "user-a")
    assert not again.allowed
    assert again.reset_time == rejected.reset_time


def test_fresh_window_after_reset(limiter, clock):
    policy = limiter.create_rate_limit("auth", 1000, 1)
    first = limiter.hit(policy, "user-a")
    assert first.reset_time == START_MS + 1000
    assert not limiter.hit(policy, "user-a").allowed

    # Still inside the window at exactly reset_time
    clock.advance(1000)
    assert not limiter.hit(policy, "user-a").allowed

    clock.advance(1)
    decision = limiter.hit(policy, "user-a")
    assert decision.allowed
    assert decision.remaining == 0
    assert decision.reset_time == START_MS + 1001 + 1000
    assert limiter.get_entry(policy, "user-a").count == 1


def test_retry_after_never_reports_zero(limiter, clock):
    policy = limiter.create_rate_limit("auth", 1000, 1)
    limiter.hit(policy, "user-a")
    clock.advance(1000)

    decision = limiter.hit(policy, "user-a")
    assert not decision.allowed
    assert decision.retry_after == 1


def test_scopes_and_callers_are_independent(limiter):
    contact = limiter.create_rate_limit("contact", HOUR_MS, 1)
    general = limiter.create_rate_limit("general", 60 * 1000, 1)

    assert limiter.hit(contact, "10.0.0.1").allowed
    assert not limiter.hit(contact, "10.0.0.1").allowed

    assert limiter.hit(contact, "10.0.0.2").allowed
    assert limiter.hit(general, "10.0.0.1").allowed
    assert len(limiter) == 3


def test_contact_scenario(limiter, clock):
    policy = limiter.create_rate_limit("contact", HOUR_MS, 5)

    for expected_remaining in [4, 3, 2, 1, 0]:
        decision = limiter.hit(policy, "203.0.113.7")
        assert decision.allowed
        assert decision.remaining == expected_remaining
        clock.advance(1000)

    sixth = limiter.hit(policy, "203.0.113.7")
    assert not sixth.allowed
    assert 0 < sixth.retry_after <= 3600

    clock.advance(HOUR_MS)
    seventh = limiter.hit(policy, "203.0.113.7")
    assert seventh.allowed
    assert seventh.remaining == 4


def test_auth_scenario_users_do_not_share_quota(limiter):
    policy = limiter.create_rate_limit("auth", 15 * 60 * 1000, 10)

    decisions = [limiter.hit(policy, "user-a") for _ in range(10)]
    assert all(d.allowed for d in decisions)
    assert decisions[-1].remaining == 0

    other = limiter.hit(policy, "user-b")
    assert other.allowed
    assert other.remaining == 9
    assert not limiter.hit(policy, "user-a").allowed


def test_window_seam_allows_double_burst(limiter, clock):
    policy = limiter.create_rate_limit("general", 1000, 3)
    limiter.hit(policy, "ip")
    clock.advance(998)
    assert limiter.hit(policy, "ip").allowed
    assert limiter.hit(policy, "ip").allowed

    clock.advance(3)
    allowed = [limiter.hit(policy, "ip").allowed for _ in range(3)]
    assert allowed == [True, True, True]


def test_identical_configuration_gives_identical_decisions():
    def run():
        clock = FakeClock()
        rate_limiter = InMemoryRateLimiter(clock=clock)
        policy = rate_limiter.create_rate_limit("contact", 10_000, 2)
        out = []
        for step in range(8):
            decision = rate_limiter.hit(policy, "caller")
            out.append((decision.allowed, decision.headers()))
            clock.advance(3_000)
        rate_limiter.destroy()
        return out

    assert run() == run()


def test_headers_on_allow_and_reject(limiter, clock):
    policy = limiter.create_rate_limit("contact", HOUR_MS, 1)
    allowed = limiter.hit(policy, "ip").headers()

    assert allowed == {
        "X-RateLimit-Limit": "1",
        "X-RateLimit-Remaining": "0",
        "X-RateLimit-Reset": "2023-11-14T23:13:20.000Z",
    }

    clock.advance(30 * 60 * 1000)
    rejected = limiter.hit(policy, "ip").headers()
    assert rejected["X-RateLimit-Remaining"] == "0"
    assert rejected["X-RateLimit-Reset"] == allowed["X-RateLimit-Reset"]
    assert rejected["Retry-After"] == "1800"


def test_rejection_response_body():
    decision = RateLimitDecision(allowed=False, limit=5, remaining=0, reset_time=START_MS, retry_after=42)
    response = decision.to_response()

    assert response.status_code == 429
    assert response.body == b'{"error":"Too many requests, please try again later","retryAfter":42}'
    assert response.headers["retry-after"] == "42"


@pytest.mark.parametrize(
    "scope, window_ms, max_requests",
    [
        ("", 1000, 1),
        ("auth", 0, 1),
        ("auth", -5, 1),
        ("auth", 1000, 0),
        ("auth", 1000, -1),
        ("auth", True, 1),
        ("auth", 1000, True),
        ("auth", 1000.5, 1),
        ("auth", 1000, 2.0),
    ],
)
def test_misconfiguration_fails_at_construction(limiter, scope, window_ms, max_requests):
    with pytest.raises(ValueError):
        limiter.create_rate_limit(scope, window_ms, max_requests)


def test_duplicate_scope_is_rejected(limiter):
    limiter.create_rate_limit("auth", 1000, 1)
    with pytest.raises(ValueError):
        limiter.create_rate_limit("auth", 2000, 2)


def test_invalid_sweep_interval():
    with pytest.raises(ValueError):
        InMemoryRateLimiter(sweep_interval_seconds=0)


def test_sweep_removes_only_expired_entries(limiter, clock):
    short = limiter.create_rate_limit("general", 1000, 10)
    long = limiter.create_rate_limit("contact", HOUR_MS, 10)

    limiter.hit(short, "one-off-caller")
    limiter.hit(long, "regular-caller")
    clock.advance(1001)

    assert limiter.sweep() == 1
    assert limiter.get_entry(short, "one-off-caller") is None
    assert limiter.get_entry(long, "regular-caller").count == 1


def test_check_uses_policy_key_func(limiter):
    limiter.create_rate_limit("auth", 1000, 1, key_func=lambda request: request.state.user_id)
    request = SimpleNamespace(state=SimpleNamespace(user_id="user-a"), client=None)

    assert limiter.check("auth", request).allowed
    assert not limiter.check("auth", request).allowed
    assert limiter.get_entry(limiter.get_policy("auth"), "user-a") is not None


def test_default_key_func_falls_back_to_unknown():
    assert default_key_func(SimpleNamespace(client=None)) == "unknown"
    assert default_key_func(SimpleNamespace(client=SimpleNamespace(host="10.1.1.1"))) == "10.1.1.1"


def test_background_sweep_and_destroy(clock):
    async def scenario():
        rate_limiter = InMemoryRateLimiter(sweep_interval_seconds=0.01, clock=clock)
        policy = rate_limiter.create_rate_limit("general", 1000, 5)
        rate_limiter.hit(policy, "ip")

        rate_limiter.start()
        rate_limiter.start()  # idempotent
        assert rate_limiter.is_running

        clock.advance(2000)
        await asyncio.sleep(0.1)
        assert len(rate_limiter) == 0

        rate_limiter.hit(policy, "ip")
        rate_limiter.destroy()
        assert not rate_limiter.is_running
        assert len(rate_limiter) == 0

    asyncio.run(scenario())


def test_concurrent_hits_never_exceed_quota(limiter):
    quota, rounds = 50, 8
    policy = limiter.create_rate_limit("general", 60_000, quota)

    with ThreadPoolExecutor(max_workers=16) as pool:
        decisions = list(pool.map(lambda _: limiter.hit(policy, "ip"), range(quota * rounds)))

    assert sum(d.allowed for d in decisions) == quota
    assert limiter.get_entry(policy, "ip").count == quota
    assert len(limiter) == 1
