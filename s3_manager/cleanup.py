from __future__ import annotations
"""Drain every object out of a bucket, page by page."""
import logging
import threading
from typing import Callable, Optional

from .models import CleanupReport, ObjectPage
from .services import S3BucketService, StoreError


LOGGER = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20

PageFn = Callable[[ObjectPage], None]


class BucketCleaner:
    """Lists a bucket page by page and deletes each page in the background.

    Deletion tasks are daemon threads that are never joined by
    :meth:`cleanup`. A cleanup is complete once every page has been listed;
    deletions of earlier pages may still be running, and are abandoned if the
    process exits first. Use :meth:`CleanupReport.wait` to block on them.

    ``max_in_flight`` limits how many tasks delete at once. Every page still
    gets its own thread, so the number of threads is not bounded.
    """

    def __init__(
        self,
        service: S3BucketService,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_in_flight: int | None = None,
    ):
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self._service = service
        self._page_size = page_size
        # Tasks still start immediately; the semaphore only gates their deletes.
        self._slots = threading.BoundedSemaphore(max_in_flight) if max_in_flight else None

    @property
    def page_size(self) -> int:
        return self._page_size

    def cleanup(
        self,
        bucket_name: str,
        *,
        on_page: PageFn | None = None,
        report: CleanupReport | None = None,
    ) -> CleanupReport:
        """Delete all objects in ``bucket_name``.

        Pass ``report`` to keep hold of the spawned tasks even when a later
        listing request fails.

        Raises:
            StoreError: when a listing request fails. Deletion tasks spawned for
                earlier pages keep running.
        """

        if report is None:
            report = CleanupReport(bucket=bucket_name)
        page_token: Optional[str] = None
        while True:
            page = self._service.list_objects(
                bucket_name,
                max_keys=self._page_size,
                continuation_token=page_token,
            )
            report.pages_listed += 1

            if page.keys:
                report.keys_scheduled += len(page.keys)
                self._spawn(bucket_name, list(page.keys), report)
            LOGGER.info("Spawned a new delete task for %d objects", page.key_count)
            if on_page:
                on_page(page)

            page_token = page.next_token
            if page_token is None:
                break
        LOGGER.debug(
            "Listed %d page(s) of bucket '%s'; %d delete task(s) still running",
            report.pages_listed,
            bucket_name,
            report.pending_tasks,
        )
        return report

    def _spawn(self, bucket_name: str, keys: list[str], report: CleanupReport) -> None:
        task = threading.Thread(
            target=self._delete_batch,
            args=(bucket_name, keys, report),
            name=f"delete-{bucket_name}-{report.tasks_spawned + 1}",
            daemon=True,
        )
        report.tasks.append(task)
        task.start()

    def _delete_batch(self, bucket_name: str, keys: list[str], report: CleanupReport) -> None:
        if self._slots is not None:
            self._slots.acquire()
        try:
            for key in keys:
                try:
                    self._service.delete_object(bucket_name, key)
                except StoreError as exc:
                    LOGGER.warning("Failed to delete '%s' from '%s': %s", key, bucket_name, exc)
                    report.record_failed()
                else:
                    report.record_deleted()
        finally:
            if self._slots is not None:
                self._slots.release()
