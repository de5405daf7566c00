from fintrack.db.cache import QueryCache


def test_get_returns_copies():
    cache = QueryCache()
    key = cache.make_key("transactions", "user-1", date_from="2025-11-01")
    cache.set(key, [{"id": "t1", "amount": 10}])

    first = cache.get(key)
    first[0]["amount"] = 999
    assert cache.get(key) == [{"id": "t1", "amount": 10}]


def test_keys_depend_on_parameters():
    cache = QueryCache()
    assert cache.make_key("budgets", "u", filters={"a": 1}) == cache.make_key("budgets", "u", filters={"a": 1})
    assert cache.make_key("budgets", "u", date_from="x") != cache.make_key("budgets", "u", date_from="y")


def test_invalidate_drops_collection_for_user_only():
    cache = QueryCache()
    own = cache.make_key("transactions", "user-1")
    own_filtered = cache.make_key("transactions", "user-1", filters={"type": "income"})
    other_user = cache.make_key("transactions", "user-2")
    other_collection = cache.make_key("budgets", "user-1")
    for key in (own, own_filtered, other_user, other_collection):
        cache.set(key, [])

    cache.invalidate("transactions", "user-1")

    assert cache.get(own) is None
    assert cache.get(own_filtered) is None
    assert cache.get(other_user) == []
    assert cache.get(other_collection) == []


def test_clear():
    cache = QueryCache()
    key = cache.make_key("loans", "user-1")
    cache.set(key, [{"id": "l1"}])
    cache.clear()
    assert cache.get(key) is None
