"""
=============================================================================
BOUNDED WORKER POOL
=============================================================================

Used only when the server is configured with more than one worker. The
default (workers=1) serves connections inline in the accept loop and
never creates a pool.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    Pool Layout                                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   accept loop ──submit()──►  [ bounded queue ]  ──get()──► Worker-0  │
    │                                                 ──get()──► Worker-1  │
    │                                                 ──get()──► Worker-N  │
    │                                                                      │
    │   queue full? submit() returns False and the caller drops the        │
    │   connection. Memory use stays bounded under a connection flood.    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Each worker still serves one request per connection and closes it; the
pool adds parallelism across connections, never within one.

SHUTDOWN uses the "poison pill" pattern: one None per worker is queued
after the real tasks, and a worker that dequeues None exits.

=============================================================================
"""

import threading
import queue
import time
import logging
from typing import Callable, Optional, Any
from dataclasses import dataclass, field
from enum import Enum


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    IDLE = "idle"        # Waiting for a task
    BUSY = "busy"        # Executing a task
    STOPPED = "stopped"  # Thread exited


@dataclass
class Task:
    """
    A deferred function call: "call func(*args) later".

    Attributes:
        func: The function to execute.
        args: Positional arguments for the function.
        submitted_at: Submission time, for queue-wait logging.
    """
    func: Callable[..., Any]
    args: tuple = ()
    submitted_at: float = field(default_factory=time.time)


class Worker(threading.Thread):
    """
    Worker thread that processes tasks from the shared queue.

        1. get() a task (blocking)
        2. None? exit
        3. run it; exceptions are logged, never kill the worker
        4. task_done(), back to 1
    """

    def __init__(self, task_queue: queue.Queue, worker_id: int):
        # daemon=True: a stuck client never keeps the process alive
        super().__init__(name=f"Worker-{worker_id}", daemon=True)

        self.task_queue = task_queue
        self.worker_id = worker_id
        self.state = WorkerState.IDLE

        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while True:
            task = self.task_queue.get()

            if task is None:
                self.task_queue.task_done()
                break

            try:
                self._execute_task(task)
            finally:
                self.task_queue.task_done()

        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        self.state = WorkerState.BUSY
        start_time = time.time()
        waited = start_time - task.submitted_at

        try:
            task.func(*task.args)
            self.tasks_completed += 1
            logger.debug(
                f"Worker {self.worker_id} completed task in "
                f"{time.time() - start_time:.3f}s (queued {waited:.3f}s)"
            )
        except Exception as e:
            # One bad connection must not take a worker down with it
            logger.exception(f"Worker {self.worker_id} task failed: {e}")
            self.tasks_failed += 1
        finally:
            self.state = WorkerState.IDLE


class ThreadPool:
    """
    Fixed-size thread pool with a bounded task queue.

    Usage:
        pool = ThreadPool(workers=4, queue_size=10)
        pool.start()

        if not pool.submit(handle_connection, args=(conn,)):
            conn.close()  # Pool saturated

        pool.shutdown(wait=True)
    """

    def __init__(self, workers: int = 4, queue_size: int = 10):
        """
        Args:
            workers: Number of worker threads, all created by start().
            queue_size: Tasks allowed to wait for a free worker.
        """
        self.workers = workers
        self.queue_size = queue_size

        self._task_queue: queue.Queue[Optional[Task]] = queue.Queue(maxsize=queue_size)
        self._workers: list[Worker] = []
        self._lock = threading.Lock()
        self._started = False
        self._shutdown = False

    def start(self):
        """Create and start all worker threads. Idempotent."""
        with self._lock:
            if self._started:
                return

            logger.info(f"Starting thread pool with {self.workers} workers")

            for worker_id in range(self.workers):
                worker = Worker(self._task_queue, worker_id)
                self._workers.append(worker)
                worker.start()

            self._started = True
            self._shutdown = False

    def submit(self, func: Callable[..., Any], args: tuple = ()) -> bool:
        """
        Queue a call without blocking.

        Returns:
            True if queued, False if the queue is full.

        Raises:
            RuntimeError: If the pool is not started or is shutting down.
        """
        if not self._started:
            raise RuntimeError("Thread pool not started")

        if self._shutdown:
            raise RuntimeError("Thread pool is shutting down")

        try:
            self._task_queue.put(Task(func=func, args=args), block=False)
            return True
        except queue.Full:
            return False

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop all workers.

        Args:
            wait: Let queued tasks finish before stopping workers.
                  If False, queued tasks are discarded.
            timeout: Upper bound, in seconds, on waiting for each worker.
        """
        if not self._started:
            return

        logger.info("Shutting down thread pool...")
        self._shutdown = True

        if not wait:
            # Drop pending work; the tasks' connections are never served
            while True:
                try:
                    self._task_queue.get_nowait()
                    self._task_queue.task_done()
                except queue.Empty:
                    break

        # Poison pills queue up behind any remaining tasks
        for _ in self._workers:
            self._task_queue.put(None)

        for worker in self._workers:
            worker.join(timeout=timeout)
            if worker.is_alive():
                logger.warning(f"{worker.name} did not stop within {timeout}s")

        self._workers.clear()
        self._started = False

        logger.info("Thread pool shutdown complete")

    @property
    def busy_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.BUSY)

    @property
    def queue_depth(self) -> int:
        return self._task_queue.qsize()

    @property
    def stats(self) -> dict:
        """Worker and task counts, for logging and tests."""
        return {
            "workers": {
                "total": len(self._workers),
                "busy": self.busy_workers,
            },
            "tasks": {
                "queued": self.queue_depth,
                "completed": sum(w.tasks_completed for w in self._workers),
                "failed": sum(w.tasks_failed for w in self._workers),
            },
        }
