from decimal import Decimal

from swap_bundler.cache import PriceCache

WINDOW = 300.0
HONEY = "0x7EeCA4205fF31f947EdBd49195a7A88E6A91161B"


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_entry_expires_just_after_window():
    clock = FakeClock()
    cache = PriceCache(ttl_seconds=WINDOW, clock=clock)
    cache.put(HONEY, Decimal("1.01"))

    clock.now += WINDOW + 0.001

    assert cache.get(HONEY) is None


def test_entry_is_fresh_just_before_window():
    clock = FakeClock()
    cache = PriceCache(ttl_seconds=WINDOW, clock=clock)
    cache.put(HONEY, Decimal("1.01"))

    clock.now += WINDOW - 0.001

    assert cache.get(HONEY) == Decimal("1.01")


def test_expired_entry_is_dropped():
    clock = FakeClock()
    cache = PriceCache(ttl_seconds=WINDOW, clock=clock)
    cache.put(HONEY, Decimal("1"))
    assert len(cache) == 1

    clock.now += WINDOW
    assert cache.get(HONEY) is None
    assert len(cache) == 0


def test_keys_are_case_insensitive():
    cache = PriceCache(clock=FakeClock())
    cache.put(HONEY, Decimal("0.99"))

    assert cache.get(HONEY.lower()) == Decimal("0.99")
    assert cache.get(HONEY.upper().replace("0X", "0x")) == Decimal("0.99")


def test_last_write_wins_and_refreshes_timestamp():
    clock = FakeClock()
    cache = PriceCache(ttl_seconds=WINDOW, clock=clock)
    cache.put(HONEY, Decimal("1"))
    clock.now += WINDOW - 1
    cache.put(HONEY, Decimal("2"))
    clock.now += 2

    assert cache.get(HONEY) == Decimal("2")


def test_missing_key_returns_none():
    assert PriceCache().get(HONEY) is None
