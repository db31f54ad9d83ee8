import random
import threading

from hibp_preloader.application.shutdown import ShutdownController
from hibp_preloader.application.store import ResultStore

from conftest import make_record


class TestResultStoreFinalize:
    def test_sorted_regardless_of_append_order(self) -> None:
        records = [make_record(f"{i:05X}", i % 7) for i in range(200)]
        shuffled = records[:]
        random.Random(4).shuffle(shuffled)
        store = ResultStore()

        for start in range(0, len(shuffled), 13):
            store.append(shuffled[start:start + 13])
        result = store.finalize()

        digests = [r.digest for r in result]
        assert digests == sorted(digests)
        assert len(result) == len(records)

    def test_sort_is_stable_and_keeps_duplicates(self) -> None:
        a = make_record("00001", 1, count=1)
        b = make_record("00001", 1, count=2)
        c = make_record("00000", 1)
        store = ResultStore()
        store.append([a, b])
        store.append([c])

        assert store.finalize() == [c, a, b]

    def test_empty_store(self) -> None:
        assert ResultStore().finalize() == []


class TestResultStoreAppend:
    def test_returns_running_total(self) -> None:
        store = ResultStore()

        assert store.append([make_record("00000", 0)]) == 1
        assert store.append([make_record("00000", 1), make_record("00000", 2)]) == 3

    def test_concurrent_merge_loses_nothing(self) -> None:
        workers, per_worker = 16, 500
        store = ResultStore()
        buffers = [
            [make_record(f"{w:05X}", i) for i in range(per_worker)]
            for w in range(workers)
        ]
        barrier = threading.Barrier(workers)

        def merge(buffer: list) -> None:
            barrier.wait()
            for start in range(0, per_worker, 50):
                store.append(buffer[start:start + 50])

        threads = [threading.Thread(target=merge, args=(b,)) for b in buffers]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        result = store.finalize()
        assert len(result) == workers * per_worker
        assert set(result) == {r for buffer in buffers for r in buffer}


class TestShutdownController:
    def test_initially_clear(self) -> None:
        assert not ShutdownController().is_set()

    def test_request_stop_is_idempotent(self) -> None:
        controller = ShutdownController()

        controller.request_stop()
        controller.request_stop()

        assert controller.is_set()
