"""Grouping of concurrent writers so that one leader performs a batch of writes."""

from __future__ import annotations

import threading
from typing import Any, Generic, Iterator, Optional, TypeVar

P = TypeVar("P")
O = TypeVar("O")

_UNSET: Any = object()


class Writer(Generic[P, O]):
    """A single write request waiting to be processed by a write group leader."""

    def __init__(self, payload: P, sync: bool) -> None:
        self.payload = payload
        self.sync = sync
        self.entered_time: Optional[float] = None
        self._output: Any = _UNSET
        self._next: Optional[Writer[P, O]] = None
        self._released = False

    def set_output(self, output: O) -> None:
        """Set the result of this write; may be called more than once."""
        self._output = output

    def finish(self) -> O:
        """Take the output of this writer.

        Raises ``RuntimeError`` if no output has been set, either by a
        write group leader or by the writer itself.
        """
        if self._output is _UNSET:
            raise RuntimeError("writer finished before an output was set")
        output = self._output
        self._output = _UNSET
        return output


class WriteGroup(Generic[P, O]):
    """Writers a leader is responsible for; closing it lets the next group form."""

    def __init__(self, start: Writer[P, O], back: Writer[P, O], barrier: WriteBarrier[P, O]) -> None:
        self._start = start
        self._back = back
        self._barrier = barrier
        self._closed = False

    def __iter__(self) -> Iterator[Writer[P, O]]:
        writer: Optional[Writer[P, O]] = self._start
        while writer is not None:
            yield writer
            if writer is self._back:
                return
            writer = writer._next

    def __enter__(self) -> WriteGroup[P, O]:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Release the followers of this group and wake the next leader."""
        if self._closed:
            return
        self._closed = True
        self._barrier._leader_exit(self)


class WriteBarrier(Generic[P, O]):
    """Synchronizes writers into successive write groups."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._leader_cv = threading.Condition(self._lock)
        self._follower_cvs = (threading.Condition(self._lock), threading.Condition(self._lock))
        self._head: Optional[Writer[P, O]] = None
        self._tail: Optional[Writer[P, O]] = None
        self._pending_leader: Optional[Writer[P, O]] = None
        self._pending_index = 0

    def enter(self, writer: Writer[P, O]) -> Optional[WriteGroup[P, O]]:
        """Block until ``writer`` is processed or becomes a leader.

        Returns a :class:`WriteGroup` holding ``writer`` and the writers that
        joined after it if ``writer`` became a leader, otherwise ``None`` once
        another leader has processed it.
        """
        writer._next = None
        writer._released = False
        with self._lock:
            if self._tail is not None:
                self._tail._next = writer
                self._tail = writer
                if self._pending_leader is not None:
                    # Follower of the next write group.
                    cv = self._follower_cvs[self._pending_index % 2]
                    cv.wait_for(lambda: writer._released)
                    return None
                # Leader of the next write group.
                self._pending_leader = writer
                self._pending_index += 1
                self._leader_cv.wait_for(lambda: self._head is writer)
                self._pending_leader = None
            else:
                # Leader of an empty write group; proceed directly.
                self._head = writer
                self._tail = writer
            return WriteGroup(writer, self._tail, self)

    def _leader_exit(self, group: WriteGroup[P, O]) -> None:
        with self._lock:
            for member in group:
                member._released = True
            leader = self._pending_leader
            if leader is not None:
                self._head = leader
                self._leader_cv.notify_all()
                self._follower_cvs[(self._pending_index - 1) % 2].notify_all()
            else:
                self._follower_cvs[self._pending_index % 2].notify_all()
                self._head = None
                self._tail = None