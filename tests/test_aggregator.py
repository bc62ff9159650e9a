import queue
import threading

from gridwc.common.channel import CancelSignal, PartialQueue
from gridwc.master.app.aggregator import aggregate_counts


def _start(partials, cancel):
    final_counts = queue.Queue(maxsize=1)
    done = threading.Event()
    t = threading.Thread(target=aggregate_counts,
                         args=(cancel, partials, final_counts, done, 0.01))
    t.start()
    return t, final_counts, done


def test_merges_partials_until_closed():
    partials = PartialQueue(3)
    cancel = CancelSignal()
    t, final_counts, done = _start(partials, cancel)

    partials.put({b"hello": 2, b"world": 1})
    partials.put({b"world": 1, b"foo": 1})
    partials.put({})
    assert not done.is_set()
    partials.close()
    t.join(2)

    assert done.is_set()
    assert final_counts.get_nowait() == {b"hello": 2, b"world": 2, b"foo": 1}


def test_closed_without_partials_publishes_empty():
    partials = PartialQueue(1)
    partials.close()
    t, final_counts, done = _start(partials, CancelSignal())
    t.join(2)
    assert done.is_set()
    assert final_counts.get_nowait() == {}


def test_merge_order_does_not_matter():
    maps = [{b"a": 1, b"b": 2}, {b"b": 3}, {b"c": 4, b"a": 5}]
    results = []
    for ordering in (maps, list(reversed(maps))):
        partials = PartialQueue(len(ordering))
        for m in ordering:
            partials.put(dict(m))
        partials.close()
        t, final_counts, _ = _start(partials, CancelSignal())
        t.join(2)
        results.append(final_counts.get_nowait())
    assert results[0] == results[1] == {b"a": 6, b"b": 5, b"c": 4}


def test_cancel_publishes_nothing(caplog):
    partials = PartialQueue(2)
    cancel = CancelSignal()
    t, final_counts, done = _start(partials, cancel)
    partials.put({b"lost": 1})
    cancel.cancel()
    t.join(2)

    assert not t.is_alive()
    assert not done.is_set()
    assert final_counts.empty()
    assert any("aggregate canceled" in r.getMessage() for r in caplog.records)
