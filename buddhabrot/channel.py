"""
Many-producer / single-consumer channel carrying batches from workers to the
aggregator.

Closing is done by the consumer: after close(), send() returns False and the
workers stop. Each worker reports sender_done() exactly once when it exits,
so the consumer knows when the channel is exhausted.

With capacity 0 the queue is unbounded and send never blocks. With a
positive capacity a full queue makes send wait, re-checking the closed flag
every poll_interval seconds.
"""

from __future__ import annotations

import queue
import threading
from typing import Optional

_SENDER_DONE = None


class WorkerError(RuntimeError):
    """A worker raised; carries the worker's formatted traceback."""


class _WorkerFailure:
    def __init__(self, worker_index: int, traceback_text: str):
        self.worker_index = worker_index
        self.traceback_text = traceback_text


class ResultChannel:
    def __init__(self, senders: int, capacity: int = 0, context=None, poll_interval: float = 0.1):
        """
        context: a multiprocessing context for process workers, or None for
        threads.
        """
        if senders <= 0:
            raise ValueError(f"senders must be positive, got {senders}")
        self.senders = senders
        self.capacity = capacity
        self.poll_interval = poll_interval

        if context is None:
            self._queue = queue.Queue(maxsize=capacity)
            self._closed = threading.Event()
        else:
            self._queue = context.Queue(maxsize=capacity)
            self._closed = context.Event()

        # consumer side only
        self._done = 0

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    @property
    def exhausted(self) -> bool:
        return self._done >= self.senders

    def send(self, batch) -> bool:
        """Queue a batch. Returns False once the consumer has closed the channel."""
        while not self._closed.is_set():
            try:
                self._queue.put(batch, timeout=self.poll_interval)
                return True
            except queue.Full:
                continue
        return False

    def send_error(self, worker_index: int, traceback_text: str) -> None:
        """Report a worker failure; the consumer raises WorkerError on receipt."""
        self._queue.put(_WorkerFailure(worker_index, traceback_text))

    def sender_done(self) -> None:
        # the sentinel must get through even on a full, closed channel
        self._queue.put(_SENDER_DONE)

    def close(self) -> None:
        self._closed.set()

    def receive(self, timeout: Optional[float] = None, raise_errors: bool = True):
        """
        Next batch, or None once every sender is done.
        Raises queue.Empty if timeout expires first, and WorkerError when a
        worker reported a failure.
        """
        while not self.exhausted:
            item = self._queue.get(timeout=timeout)
            if item is _SENDER_DONE:
                self._done += 1
                continue
            if isinstance(item, _WorkerFailure):
                if raise_errors:
                    raise WorkerError(f"worker {item.worker_index} failed:\n{item.traceback_text}")
                continue
            return item
        return None

    def __iter__(self):
        while True:
            batch = self.receive()
            if batch is None:
                return
            yield batch

    def drain(self) -> int:
        """Discard queued batches until all senders are done. Returns the count discarded."""
        discarded = 0
        while self.receive(raise_errors=False) is not None:
            discarded += 1
        return discarded
