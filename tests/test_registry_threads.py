from __future__ import annotations

import threading

from typekeyed import TypeKeyedRegistry, key


def _run_all(threads: list[threading.Thread]) -> None:
    for t in threads:
        t.start()
    for t in threads:
        t.join()


def test_keys_is_restartable() -> None:
    reg = TypeKeyedRegistry()
    reg.put(int, 1)
    reg.put(str, "a")

    assert set(reg.keys()) == set(reg.keys())
    assert set(reg) == {key(int), key(str)}


def test_keys_snapshot_is_taken_when_iteration_starts() -> None:
    reg = TypeKeyedRegistry()
    reg.put(int, 1)

    pending = reg.keys()
    reg.put(str, "added before first next()")
    first = next(pending)

    reg.put(bytes, b"added during iteration")
    reg.remove(int)
    rest = list(pending)

    assert {first, *rest} == {key(int), key(str)}
    assert set(reg.keys()) == {key(str), key(bytes)}


def test_mutation_while_iterating_does_not_break_iteration() -> None:
    reg = TypeKeyedRegistry()
    for i in range(10):
        reg.put(key(int, i), i)

    seen = []
    for k in reg.keys():
        seen.append(k)
        reg.remove(k)
        reg.put(key(int, f"new-{k.discriminator}"), 0)

    assert len(seen) == 10
    assert len(reg) == 10


def test_concurrent_writers_keep_one_entry_per_key() -> None:
    reg = TypeKeyedRegistry()
    n_threads = 8
    n_keys = 50
    barrier = threading.Barrier(n_threads)

    def _writer(tid: int) -> None:
        barrier.wait()
        for i in range(n_keys):
            reg.put(key(int, i), tid)
            reg.put(key(str, i), str(tid))

    _run_all([threading.Thread(target=_writer, args=(t,)) for t in range(n_threads)])

    assert len(reg) == 2 * n_keys
    for i in range(n_keys):
        assert reg[key(int, i)] in range(n_threads)
        assert reg[key(str, i)] in {str(t) for t in range(n_threads)}
    assert reg.revision() == n_threads * n_keys * 2


def test_concurrent_readers_and_writers() -> None:
    reg = TypeKeyedRegistry()
    reg.put(list[int], [0])
    errors: list[BaseException] = []
    stop = threading.Event()

    def _writer() -> None:
        for i in range(500):
            reg.put(list[int], [i])
            reg.put(key(float, i % 7), float(i))
            reg.remove(key(float, (i + 3) % 7))
        stop.set()

    def _reader() -> None:
        try:
            while not stop.is_set():
                got = reg.get(list[int])
                assert got.is_present
                assert isinstance(got.unwrap()[0], int)
                for k in reg.keys():
                    assert k.token is not None
        except BaseException as exc:  # pragma: no cover - surfaced below
            errors.append(exc)

    _run_all([threading.Thread(target=_writer)] + [threading.Thread(target=_reader) for _ in range(4)])

    assert errors == []


def test_get_or_put_is_atomic() -> None:
    reg = TypeKeyedRegistry()
    n_threads = 8
    barrier = threading.Barrier(n_threads)
    results: list[object] = []
    lock = threading.Lock()

    def _worker() -> None:
        barrier.wait()
        value = reg.get_or_put(dict[str, int], lambda: {})
        with lock:
            results.append(value)

    _run_all([threading.Thread(target=_worker) for _ in range(n_threads)])

    assert len(results) == n_threads
    assert all(r is results[0] for r in results)
