from efile_legal.utils.simple_cache import TTLCache


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_get_and_age_track_the_clock():
    clock = FakeClock()
    cache = TTLCache(clock=clock)
    cache.set('u1:profile', {'firstName': 'Ana'}, ttl_seconds=60)
    assert cache.get('u1:profile') == {'firstName': 'Ana'}
    assert cache.age('u1:profile') == 0

    clock.now += 45
    assert cache.age('u1:profile') == 45

    clock.now += 20
    assert cache.get('u1:profile') is None
    assert cache.age('u1:profile') is None


def test_delete_prefix_only_removes_matching_keys():
    cache = TTLCache(clock=FakeClock())
    cache.set('u1:profile', 1)
    cache.set('u1:security', 2)
    cache.set('u2:profile', 3)
    cache.delete_prefix('u1:')
    assert cache.get('u1:profile') is None
    assert cache.get('u1:security') is None
    assert cache.get('u2:profile') == 3
