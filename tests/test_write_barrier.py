import queue
import threading
import time

import pytest

from raftlog.write_barrier import WriteBarrier, Writer

TIMEOUT = 10.0


def test_sequential_groups():
    barrier = WriteBarrier()
    leaders = 0
    processed = 0
    for _ in range(4):
        writer = Writer(None, False)
        group = barrier.enter(writer)
        assert group is not None
        with group:
            leaders += 1
            for w in group:
                w.set_output(7)
                processed += 1
        assert writer.finish() == 7
    assert processed == 4
    assert leaders == 4


def test_finish_without_output_raises():
    writer = Writer(1, True)
    with pytest.raises(RuntimeError):
        writer.finish()


def test_set_output_is_reentrant():
    writer = Writer("data", False)
    writer.set_output(1)
    writer.set_output(2)
    assert writer.finish() == 2
    assert writer.payload == "data"
    assert writer.sync is False


def test_close_twice_keeps_barrier_usable():
    barrier = WriteBarrier()
    writer = Writer(5, False)
    group = barrier.enter(writer)
    assert [w.payload for w in group] == [5]
    group.close()
    group.close()
    second = Writer(6, False)
    group2 = barrier.enter(second)
    assert [w.payload for w in group2] == [6]
    group2.close()


def test_pending_leader_collects_followers():
    barrier = WriteBarrier()
    first = Writer(1, False)
    group = barrier.enter(first)
    results = {}
    errors = []

    def run(payload):
        try:
            w = Writer(payload, False)
            g = barrier.enter(w)
            if g is not None:
                with g:
                    results["group"] = [x.payload for x in g]
                    for x in g:
                        x.set_output(x.payload * 10)
            results[payload] = w.finish()
        except Exception as exc:  # pragma: no cover - reported below
            errors.append(exc)

    t2 = threading.Thread(target=run, args=(2,))
    t2.start()
    time.sleep(0.1)
    t3 = threading.Thread(target=run, args=(3,))
    t3.start()
    time.sleep(0.1)
    for w in group:
        w.set_output(w.payload * 10)
    group.close()
    t2.join(TIMEOUT)
    t3.join(TIMEOUT)
    assert errors == []
    assert first.finish() == 10
    assert results["group"] == [2, 3]
    assert results[2] == 20
    assert results[3] == 30


class _Rendezvous:
    """A zero-capacity channel: the sender blocks until the receiver takes it."""

    def __init__(self):
        self._items = queue.Queue()
        self._acks = queue.Queue()

    def send(self):
        self._items.put(None)
        self._acks.get(timeout=TIMEOUT)

    def recv(self):
        self._items.get(timeout=TIMEOUT)
        self._acks.put(None)


class _ConcurrentWriteContext:
    def __init__(self, barrier):
        self.barrier = barrier
        self.seq = 0
        self.threads = []
        self.errors = []
        self.leader_exit = _Rendezvous()

    def _spawn(self, target):
        def wrapped():
            try:
                target()
            except Exception as exc:
                self.errors.append(exc)

        thread = threading.Thread(target=wrapped, daemon=True)
        thread.start()
        self.threads.append(thread)

    def step(self, n):
        if not self.threads:
            self.seq += 1
            enter_q = queue.Queue()
            seq = self.seq

            def lone_leader():
                writer = Writer(seq, False)
                group = self.barrier.enter(writer)
                assert group is not None
                with group:
                    enter_q.put(None)
                    count = 0
                    for w in group:
                        w.set_output(w.payload)
                        count += 1
                    assert count == 1
                    self.leader_exit.send()
                assert writer.finish() == seq

            self._spawn(lone_leader)
            enter_q.get(timeout=TIMEOUT)

        prev_writers = len(self.threads)
        enter_q = queue.Queue()
        start = threading.Barrier(n + 1)
        for _ in range(n):
            self.seq += 1
            seq = self.seq

            def member(seq=seq):
                writer = Writer(seq, False)
                start.wait(TIMEOUT)
                group = self.barrier.enter(writer)
                if group is not None:
                    with group:
                        enter_q.put(None)
                        count = 0
                        for w in group:
                            w.set_output(w.payload)
                            count += 1
                        assert count == n
                        self.leader_exit.send()
                assert writer.finish() == seq

            self._spawn(member)
        start.wait(TIMEOUT)
        time.sleep(0.1)
        self.leader_exit.recv()
        finished, self.threads = self.threads[:prev_writers], self.threads[prev_writers:]
        for thread in finished:
            thread.join(TIMEOUT)
            assert not thread.is_alive()
        enter_q.get(timeout=TIMEOUT)

    def join(self):
        self.leader_exit.recv()
        for thread in self.threads:
            thread.join(TIMEOUT)
            assert not thread.is_alive()
        self.threads = []


def test_parallel_groups():
    barrier = WriteBarrier()
    ctx = _ConcurrentWriteContext(barrier)
    for i in range(1, 5):
        ctx.step(i)
    ctx.join()
    assert ctx.errors == []
    assert ctx.seq == 11

    # Once every group has exited, a new writer leads a group of its own.
    writer = Writer(99, False)
    group = barrier.enter(writer)
    assert group is not None
    with group:
        members = [w.payload for w in group]
        for w in group:
            w.set_output(w.payload + 1)
    assert members == [99]
    assert writer.finish() == 100