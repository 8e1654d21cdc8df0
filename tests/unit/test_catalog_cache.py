"""Tests for the per-import catalog cache"""

from topobus.utils import CatalogCache


class TestCatalogCache:

    def setup_method(self):
        self.calls = []

        def loader(key):
            self.calls.append(key)
            return None if key == "missing" else key.upper()

        self.cache = CatalogCache("test", loader)

    def test_loads_once(self):
        assert self.cache.get("m-0083") == "M-0083"
        assert self.cache.get("m-0083") == "M-0083"
        assert self.calls == ["m-0083"]

    def test_unavailable_results_are_cached(self):
        assert self.cache.get("missing") is None
        assert self.cache.get("missing") is None
        assert self.calls == ["missing"]
        assert "missing" in self.cache

    def test_none_key(self):
        assert self.cache.get(None) is None
        assert self.calls == []

    def test_statistics(self):
        self.cache.get("a")
        self.cache.get("a")
        self.cache.get("missing")

        stats = self.cache.get_statistics()

        assert stats['hits'] == 1
        assert stats['misses'] == 2
        assert stats['total'] == 3
        assert stats['hit_rate'] == "33.3%"
        assert stats['loaded'] == 1
        assert stats['unavailable'] == 1
        assert len(self.cache) == 2

    def test_clear(self):
        self.cache.get("a")
        self.cache.clear()
        assert len(self.cache) == 0
        assert self.cache.get_statistics()['total'] == 0
        self.cache.get("a")
        assert self.calls == ["a", "a"]
