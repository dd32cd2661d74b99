from cinescout.metadata.cache import TTLCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = TTLCache(60, clock=clock)
    cache.set("search:movie:leo", ["leo"])

    clock.now += 59
    assert cache.get("search:movie:leo") == ["leo"]

    clock.now += 1
    assert cache.get("search:movie:leo") is None
    assert len(cache) == 0


def test_set_refreshes_and_clear_empties():
    clock = FakeClock()
    cache = TTLCache(10, clock=clock)
    cache.set("a", 1)
    clock.now += 8
    cache.set("a", 2)
    clock.now += 8

    assert cache.get("a") == 2
    assert cache.get("missing") is None

    cache.clear()
    assert len(cache) == 0
