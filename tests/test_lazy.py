import threading

import pytest

from deltalog.lazy import Lazy


def test_value_is_computed_once():
    calls = []

    def compute():
        calls.append(1)
        return "value"

    lazy = Lazy(compute)
    assert calls == []
    assert lazy.get() == "value"
    assert lazy.get() == "value"
    assert len(calls) == 1


def test_exception_is_cached_and_reraised():
    calls = []

    def compute():
        calls.append(1)
        raise KeyError("missing")

    lazy = Lazy(compute)
    with pytest.raises(KeyError):
        lazy.get()
    with pytest.raises(KeyError):
        lazy.get()
    assert len(calls) == 1


def test_concurrent_callers_share_one_evaluation():
    calls = []
    gate = threading.Event()
    sentinel = object()

    def compute():
        gate.wait()
        calls.append(1)
        return sentinel

    lazy = Lazy(compute)
    results = []
    threads = [threading.Thread(target=lambda: results.append(lazy.get())) for _ in range(8)]
    for t in threads:
        t.start()
    gate.set()
    for t in threads:
        t.join()
    assert len(calls) == 1
    assert len(results) == 8
    assert all(r is sentinel for r in results)
    assert lazy.get() is sentinel


def test_none_result_is_cached():
    calls = []
    lazy = Lazy(lambda: calls.append(1))
    assert lazy.get() is None
    assert lazy.get() is None
    assert len(calls) == 1