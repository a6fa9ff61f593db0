"""Tests for ChangeCache check-and-set semantics."""

import threading

from baseline_watch.core.change_cache import ChangeCache


class TestChangeCache:
    def test_first_signature_is_a_change(self) -> None:
        assert ChangeCache().record_and_check("/a.js", "h1")

    def test_same_signature_is_not_a_change(self) -> None:
        cache = ChangeCache()
        cache.record_and_check("/a.js", "h1")
        assert not cache.record_and_check("/a.js", "h1")
        assert cache.record_and_check("/a.js", "h2")
        assert cache.get("/a.js") == "h2"

    def test_evict(self) -> None:
        cache = ChangeCache()
        cache.record_and_check("/a.js", "h1")
        assert cache.evict("/a.js")
        assert not cache.evict("/a.js")
        assert "/a.js" not in cache
        assert cache.record_and_check("/a.js", "h1")

    def test_paths_under(self) -> None:
        cache = ChangeCache()
        for path in ("/p/src/a.js", "/p/src/sub/b.js", "/p/other/c.js", "/p/srcx/d.js"):
            cache.record_and_check(path, 1.0)
        assert sorted(cache.paths_under("/p/src")) == ["/p/src/a.js", "/p/src/sub/b.js"]

    def test_concurrent_signals_observe_one_change(self) -> None:
        cache = ChangeCache()
        results: list[bool] = []
        barrier = threading.Barrier(8)

        def worker() -> None:
            barrier.wait()
            results.append(cache.record_and_check("/a.js", "same"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert results.count(True) == 1
        assert len(cache) == 1
