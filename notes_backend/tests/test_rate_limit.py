from notes_backend.shared.middleware.rate_limit import InMemoryRateLimiter, RateLimitExceededError


class Ticker:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_limiter_blocks_after_limit_until_window_passes() -> None:
    ticker = Ticker()
    limiter = InMemoryRateLimiter(2, 60, clock=ticker)

    assert limiter.hit("/api/auth/login:1.2.3.4") == 0
    assert limiter.hit("/api/auth/login:1.2.3.4") == 0
    ticker.now += 15
    assert limiter.hit("/api/auth/login:1.2.3.4") == 45
    assert limiter.hit("/api/auth/login:5.6.7.8") == 0

    ticker.now += 45
    assert limiter.hit("/api/auth/login:1.2.3.4") == 0



def test_idle_clients_are_forgotten_after_a_window() -> None:
    ticker = Ticker()
    limiter = InMemoryRateLimiter(5, 60, clock=ticker)
    for i in range(100):
        limiter.hit(f"/api/auth/signup:10.0.0.{i}")
    assert len(limiter) == 100

    ticker.now += 30
    limiter.hit("/api/auth/signup:10.0.1.1")
    assert len(limiter) == 101

    ticker.now += 31
    limiter.hit("/api/auth/signup:10.0.1.2")
    assert len(limiter) == 2


def test_rate_limit_error_shape() -> None:
    error = RateLimitExceededError(12.34)

    assert error.status == 429
    assert error.to_dict() == {
        "error": "rate_limited",
        "message": "Too many requests. Please try again later.",
        "context": {"retry_after_seconds": 12.3},
    }
