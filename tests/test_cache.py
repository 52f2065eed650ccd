from climate_connectors.cache import RateLimiter, TTLCache, location_key


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now
        self.slept = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.slept.append(seconds)
        self.now += seconds


def make_clock():
    return FakeClock()


def test_location_key_rounds_to_about_a_kilometre():
    assert location_key('weather', 37.26361, 127.02859) == 'weather_37.26_127.03'
    assert location_key('weather', 37.26361, 127.02859, precision=3) == 'weather_37.264_127.029'


def test_entries_expire_after_ttl():
    clock = make_clock()
    cache = TTLCache(ttl_seconds=300, clock=clock)
    cache.set('a', {'temperature': 25})

    clock.now = 299
    assert cache.get('a') == {'temperature': 25}

    clock.now = 300
    assert cache.get('a') is None
    assert len(cache) == 0


def test_per_entry_ttl_override():
    clock = make_clock()
    cache = TTLCache(ttl_seconds=300, clock=clock)
    cache.set('short', 1, ttl_seconds=10)
    cache.set('long', 2)

    clock.now = 10

    assert cache.get('short') is None
    assert cache.get('long') == 2


def test_oldest_entries_evicted_beyond_max():
    cache = TTLCache(max_entries=2, clock=make_clock())
    cache.set('a', 1)
    cache.set('b', 2)
    cache.set('a', 3)  # refreshes 'a'
    cache.set('c', 4)

    assert cache.get('b') is None
    assert cache.get('a') == 3
    assert cache.get('c') == 4
    assert cache.stats() == {'count': 2}


def test_purge_expired_counts_removed():
    clock = make_clock()
    cache = TTLCache(ttl_seconds=60, clock=clock)
    cache.set('a', 1)
    cache.set('b', 2, ttl_seconds=120)

    clock.now = 90

    assert cache.purge_expired() == 1
    assert len(cache) == 1
    cache.clear()
    assert len(cache) == 0


def test_rate_limiter_spaces_calls():
    clock = make_clock()
    limiter = RateLimiter(min_interval=2.0, clock=clock, sleep=clock.sleep)

    assert limiter.wait() == 0.0
    clock.now += 0.5
    assert limiter.wait() == 1.5
    clock.now += 5
    assert limiter.wait() == 0.0
    assert clock.slept == [1.5]
