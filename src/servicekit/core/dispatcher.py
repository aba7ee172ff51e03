"""
=============================================================================
CONNECTION DISPATCHER
=============================================================================

One daemon thread per accepted connection, capped at max_connections:

    accept loop                 dispatcher                     threads
    ───────────                 ──────────                     ───────
    conn ──► submit(task) ──►  acquire slot? ──yes──► Thread ──► task()
                                     │                           │
                                     no                     release slot
                                     │
                                     └──► return False   (caller answers 503)

A slot is taken before the thread starts and released when the task
returns or raises, so active_count never exceeds max_connections.

Exceptions escaping a task are logged and do not affect other threads
or the accept loop.

=============================================================================
"""

import logging
import threading
import time
from typing import Any, Callable, Optional, Set


logger = logging.getLogger(__name__)


class ConnectionDispatcher:
    """
    Runs each task on its own thread, refusing work at capacity.

    Usage:
        dispatcher = ConnectionDispatcher(max_connections=1000)
        if not dispatcher.submit(handle, args=(conn,)):
            reject(conn)
        ...
        dispatcher.shutdown(wait=True, timeout=5.0)
    """

    def __init__(
        self,
        max_connections: int = 1000,
        on_active_change: Optional[Callable[[int], None]] = None,
    ):
        """
        Args:
            max_connections: Tasks allowed to run at once.
            on_active_change: Called with the number of running tasks
                whenever a task starts or finishes.
        """
        if max_connections <= 0:
            raise ValueError(f"max_connections must be positive, got {max_connections}")
        self.max_connections = max_connections
        self._slots = threading.BoundedSemaphore(max_connections)
        self._threads: Set[threading.Thread] = set()
        self._lock = threading.Lock()
        self._shutdown = False
        self._next_id = 0
        self.tasks_completed = 0
        self.tasks_failed = 0
        self._on_active_change = on_active_change

    def submit(self, func: Callable[..., Any], args: tuple = (), kwargs: Optional[dict] = None) -> bool:
        """
        Start func(*args, **kwargs) on a new thread.

        Returns:
            True if started, False if all slots are taken.

        Raises:
            RuntimeError: After shutdown().
        """
        if self._shutdown:
            raise RuntimeError("Dispatcher is shutting down")

        if not self._slots.acquire(blocking=False):
            return False

        with self._lock:
            thread_id = self._next_id
            self._next_id += 1
            thread = threading.Thread(
                target=self._run,
                args=(func, args, kwargs or {}),
                name=f"Connection-{thread_id}",
                daemon=True,
            )
            self._threads.add(thread)
            self._notify()

        thread.start()
        return True

    def _run(self, func: Callable[..., Any], args: tuple, kwargs: dict):
        start_time = time.time()
        try:
            func(*args, **kwargs)
            with self._lock:
                self.tasks_completed += 1
        except Exception as e:
            logger.exception(
                f"Connection task failed after {time.time() - start_time:.3f}s: {e}"
            )
            with self._lock:
                self.tasks_failed += 1
        finally:
            with self._lock:
                self._threads.discard(threading.current_thread())
                self._notify()
            self._slots.release()

    def _notify(self):
        # Called with _lock held so updates arrive in order
        if self._on_active_change is not None:
            self._on_active_change(len(self._threads))

    @property
    def active_count(self) -> int:
        """Tasks currently running."""
        with self._lock:
            return len(self._threads)

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop accepting tasks and optionally wait for running ones.

        Args:
            wait: Join running threads.
            timeout: Overall limit for the join, in seconds.
        """
        self._shutdown = True
        if not wait:
            return

        deadline = None if timeout is None else time.time() + timeout
        with self._lock:
            threads = list(self._threads)

        for thread in threads:
            remaining = None if deadline is None else max(0.0, deadline - time.time())
            thread.join(remaining)
            if thread.is_alive():
                logger.warning("Shutdown timeout, leaving connections running")
                break

    @property
    def stats(self) -> dict:
        with self._lock:
            return {
                "active": len(self._threads),
                "max_connections": self.max_connections,
                "completed": self.tasks_completed,
                "failed": self.tasks_failed,
            }
