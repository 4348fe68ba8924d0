from wardaqi.services.cache import TTLCache, make_key


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_entry_is_fresh_until_ttl():
    clock = FakeClock()
    cache = TTLCache(600, clock=clock)
    cache.set("stations", [1, 2])

    clock.now += 599
    assert cache.get("stations") == [1, 2]

    clock.now += 1
    assert cache.get("stations") is None
    assert cache.get_stale("stations") == [1, 2]


def test_missing_key():
    cache = TTLCache(10)
    assert cache.get("nope") is None
    assert cache.get_stale("nope") is None
    assert cache.status("nope") == {"has_data": False, "age_seconds": None, "fresh": False}


def test_status_and_clear():
    clock = FakeClock()
    cache = TTLCache(60, clock=clock)
    cache.set("k", "v")
    clock.now += 30

    assert cache.status("k") == {"has_data": True, "age_seconds": 30.0, "fresh": True}

    cache.clear()
    assert len(cache) == 0
    assert cache.get_stale("k") is None


def test_set_refreshes_timestamp():
    clock = FakeClock()
    cache = TTLCache(60, clock=clock)
    cache.set("k", "old")
    clock.now += 59
    cache.set("k", "new")
    clock.now += 59
    assert cache.get("k") == "new"


def test_make_key_ignores_keyword_order():
    assert make_key("stations", lat=1, lng=2) == make_key("stations", lng=2, lat=1)
    assert make_key("stations", lat=1) != make_key("history", lat=1)
