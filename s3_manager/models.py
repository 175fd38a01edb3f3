from __future__ import annotations
"""Data models shared by the bucket operations."""
from dataclasses import dataclass, field
import threading
import time
from typing import Optional


@dataclass
class ObjectPage:
    """A single page of object keys returned by a listing call.

    ``next_token`` is ``None`` when the listing is exhausted. Any other value,
    including an empty string, is a continuation cursor to send back.
    """

    keys: list[str] = field(default_factory=list)
    key_count: int = 0
    next_token: Optional[str] = None

    @property
    def has_more(self) -> bool:
        return self.next_token is not None


@dataclass
class CleanupReport:
    """Progress of a bucket cleanup.

    The pagination counters are final once ``cleanup`` returns. The deletion
    counters keep moving while background tasks are still running.
    """

    bucket: str
    pages_listed: int = 0
    keys_scheduled: int = 0
    deleted: int = 0
    failed: int = 0
    tasks: list[threading.Thread] = field(default_factory=list, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def tasks_spawned(self) -> int:
        return len(self.tasks)

    @property
    def pending_tasks(self) -> int:
        return sum(1 for task in self.tasks if task.is_alive())

    def record_deleted(self) -> None:
        with self._lock:
            self.deleted += 1

    def record_failed(self) -> None:
        with self._lock:
            self.failed += 1

    def wait(self, timeout: float | None = None) -> bool:
        """Join the deletion tasks; return True when all of them finished.

        ``timeout`` bounds the whole wait, not each task.
        """

        deadline = None if timeout is None else time.monotonic() + timeout
        for task in list(self.tasks):
            if deadline is None:
                task.join()
            else:
                task.join(max(deadline - time.monotonic(), 0))
        return self.pending_tasks == 0


@dataclass
class PopulateReport:
    """Outcome of a bulk object creation run."""

    bucket: str
    requested: int = 0
    created: int = 0
    failed: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record_created(self) -> None:
        with self._lock:
            self.created += 1

    def record_failed(self) -> None:
        with self._lock:
            self.failed += 1


@dataclass(frozen=True)
class AuthSelection:
    """How the user chose to authenticate."""

    method: str
    profile_name: Optional[str] = None
    endpoint_url: Optional[str] = None
    access_key: Optional[str] = None
    secret_key: Optional[str] = field(default=None, repr=False)
    region_name: Optional[str] = None
