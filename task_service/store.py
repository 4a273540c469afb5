"""
In-memory task store.

The store is the only shared mutable state of the service. Route handlers
run in FastAPI's worker threadpool, so every access to the task map and
the id counter goes through a readers-writer lock: lookups and listings
may overlap each other, creates and deletes are exclusive.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple

from task_service.logger import logger
from task_service.models import Task, utcnow


class ReadWriteLock:
    """Many readers or one writer, with waiting writers served first."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class TaskStore:
    """Thread-safe in-memory repository of tasks.

    Ids are sequential (``task-1``, ``task-2``, ...) and allocated under the
    write lock, so concurrent creates never collide. Every task returned is
    a copy; mutating it does not touch the stored record.
    """

    def __init__(self):
        self._lock = ReadWriteLock()
        self._tasks: Dict[str, Task] = {}
        self._next_id = 1

    def create(self, title: str, description: str = "") -> Task:
        """Create a new task and return a copy of it"""
        with self._lock.write_locked():
            task_id = f"task-{self._next_id}"
            self._next_id += 1
            task = Task(
                id=task_id,
                title=title,
                description=description,
                completed=False,
                created_at=utcnow(),
            )
            self._tasks[task_id] = task
            created = task.copy()
        logger.info(f"Created task with ID: {task_id}")
        return created

    def get(self, task_id: str) -> Tuple[Optional[Task], bool]:
        """Get a single task by ID; the flag reports whether it exists"""
        with self._lock.read_locked():
            task = self._tasks.get(task_id)
            if task is None:
                return None, False
            return task.copy(), True

    def get_all(self) -> List[Task]:
        """Snapshot of every stored task, in no guaranteed order"""
        with self._lock.read_locked():
            return [task.copy() for task in self._tasks.values()]

    def delete(self, task_id: str) -> bool:
        """Delete a task; returns False when there was nothing to delete"""
        with self._lock.write_locked():
            deleted = self._tasks.pop(task_id, None) is not None
        if deleted:
            logger.info(f"Deleted task with ID: {task_id}")
        return deleted

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._tasks)
