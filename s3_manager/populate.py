from __future__ import annotations
"""Fill a bucket with small throwaway objects."""
from concurrent.futures import ThreadPoolExecutor, as_completed
import logging
from typing import Callable
import uuid

from .models import PopulateReport
from .services import S3BucketService, StoreError


LOGGER = logging.getLogger(__name__)

DEFAULT_WORKERS = 16
MAX_OBJECTS_PER_WORKER = 999_999


def new_object_key() -> str:
    return str(uuid.uuid4())


class ObjectPopulator:
    """Creates objects from several workers and waits for all of them."""

    def __init__(
        self,
        service: S3BucketService,
        *,
        workers: int = DEFAULT_WORKERS,
        key_factory: Callable[[], str] = new_object_key,
    ):
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self._service = service
        self._workers = workers
        self._key_factory = key_factory

    @property
    def workers(self) -> int:
        return self._workers

    def populate(self, bucket_name: str, per_worker: int) -> PopulateReport:
        """Have every worker put ``per_worker`` objects into ``bucket_name``.

        Each object's body is its own key.
        """

        if per_worker < 0 or per_worker > MAX_OBJECTS_PER_WORKER:
            raise ValueError(f"per_worker must be between 0 and {MAX_OBJECTS_PER_WORKER}")
        report = PopulateReport(bucket=bucket_name, requested=per_worker * self._workers)
        if per_worker == 0:
            return report

        with ThreadPoolExecutor(max_workers=self._workers) as executor:
            futures = [
                executor.submit(self._create_objects, bucket_name, per_worker, report)
                for _ in range(self._workers)
            ]
            for future in as_completed(futures):
                future.result()

        LOGGER.info(
            "Created %d object(s) in '%s', %d failed",
            report.created,
            bucket_name,
            report.failed,
        )
        return report

    def _create_objects(self, bucket_name: str, count: int, report: PopulateReport) -> None:
        for _ in range(count):
            key = self._key_factory()
            try:
                self._service.put_object(bucket_name, key, key.encode("utf-8"))
            except StoreError as exc:
                LOGGER.warning("Failed to create S3 object '%s': %s", key, exc)
                report.record_failed()
            else:
                report.record_created()
