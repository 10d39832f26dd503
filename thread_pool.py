"""Bounded worker pool for accepted client connections."""

from __future__ import annotations

import queue
import threading
import time
from collections.abc import Callable

ClientAddress = tuple[str, int]
Connection = tuple[object, ClientAddress]
ConnectionHandler = Callable[[object, ClientAddress], None]


class ThreadPool:
    """Fixed set of worker threads fed from a bounded connection queue."""

    def __init__(self, worker_count: int, queue_size: int, handler: ConnectionHandler) -> None:
        if worker_count <= 0:
            raise ValueError("worker_count must be positive")
        if queue_size <= 0:
            raise ValueError("queue_size must be positive")

        self._handler = handler
        self._pending: queue.Queue[Connection | None] = queue.Queue(maxsize=queue_size)
        self._closed = threading.Event()
        self._workers: list[threading.Thread] = []
        self._worker_count = worker_count
        self._outstanding = 0
        self._idle = threading.Condition()
        self._shutdown_lock = threading.Lock()
        self._shutdown_started = False

    @property
    def worker_count(self) -> int:
        return self._worker_count

    @property
    def threads(self) -> tuple[threading.Thread, ...]:
        return tuple(self._workers)

    @property
    def outstanding(self) -> int:
        with self._idle:
            return self._outstanding

    def start(self) -> None:
        for index in range(self._worker_count):
            worker = threading.Thread(
                target=self._run_worker,
                name=f"arcadia-worker-{index}",
                daemon=True,
            )
            self._workers.append(worker)
            worker.start()

    def submit(self, client_socket: object, address: ClientAddress) -> bool:
        """Queue a connection; False means the pool is closed or the queue is full."""
        if self._closed.is_set():
            return False
        with self._idle:
            self._outstanding += 1
        try:
            self._pending.put_nowait((client_socket, address))
        except queue.Full:
            self._release()
            return False
        return True

    def wait_for_drain(self, timeout: float | None = None) -> bool:
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._idle:
            while self._outstanding > 0:
                if deadline is None:
                    self._idle.wait(timeout=0.1)
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._idle.wait(timeout=min(remaining, 0.1))
        return True

    def shutdown(self, *, graceful: bool = False, timeout: float | None = None) -> bool:
        """Stop the workers, optionally waiting for queued and running jobs first.

        Returns True when the pool drained cleanly.
        """
        with self._shutdown_lock:
            if self._shutdown_started:
                return True
            self._shutdown_started = True

        drained = self.wait_for_drain(timeout=timeout) if graceful else self.outstanding == 0
        self._closed.set()
        for _ in self._workers:
            try:
                self._pending.put_nowait(None)
            except queue.Full:
                break

        current = threading.current_thread()
        for worker in self._workers:
            if worker is not current:
                worker.join(timeout=1.0)
        return drained

    def _run_worker(self) -> None:
        while not self._closed.is_set():
            try:
                item = self._pending.get(timeout=0.2)
            except queue.Empty:
                continue
            if item is None:
                self._pending.task_done()
                return

            try:
                client_socket, address = item
                self._handler(client_socket, address)
            finally:
                self._release()
                self._pending.task_done()

    def _release(self) -> None:
        with self._idle:
            self._outstanding -= 1
            self._idle.notify_all()

    def discard_pending(self) -> list[Connection]:
        """Remove connections still queued after shutdown so the caller can close them."""
        leftovers: list[Connection] = []
        while True:
            try:
                item = self._pending.get_nowait()
            except queue.Empty:
                return leftovers
            self._pending.task_done()
            if item is not None:
                leftovers.append(item)
                self._release()
