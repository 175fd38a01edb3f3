from __future__ import annotations
"""Controller layer between the interactive CLI and the S3 services."""
import logging
from typing import Callable

from .auth import AuthResolver
from .cleanup import BucketCleaner, PageFn
from .models import AuthSelection, CleanupReport, PopulateReport
from .populate import ObjectPopulator
from .profiles import ConnectionProfile, ProfileStorage
from .services import S3BucketService, StoreError
from .settings import AppSettings


LOGGER = logging.getLogger(__name__)

ServiceFactory = Callable[..., S3BucketService]


class NotConnectedError(RuntimeError):
    """Raised when an S3 operation is attempted before authenticating."""


class S3ManagerController:
    """Coordinates user actions with :class:`S3BucketService`."""

    def __init__(
        self,
        *,
        resolver: AuthResolver | None = None,
        storage: ProfileStorage | None = None,
        settings: AppSettings | None = None,
        service_factory: ServiceFactory | None = None,
    ):
        self._resolver = resolver or AuthResolver()
        self._storage = storage or ProfileStorage()
        self._settings = settings or AppSettings()
        self._service_factory = service_factory or S3BucketService
        self._session = None
        self._service: S3BucketService | None = None
        self._selection: AuthSelection | None = None
        self._profiles: list[ConnectionProfile] = self._storage.load()

    @property
    def is_connected(self) -> bool:
        return self._service is not None

    @property
    def selection(self) -> AuthSelection | None:
        return self._selection

    @property
    def settings(self) -> AppSettings:
        return self._settings

    @settings.setter
    def settings(self, value: AppSettings) -> None:
        self._settings = value

    @property
    def resolver(self) -> AuthResolver:
        return self._resolver

    def connect(self, selection: AuthSelection) -> list[str]:
        """Authenticate and return the visible bucket names."""

        session = self._resolver.create_session(selection)
        region_name = selection.region_name or getattr(session, "region_name", None)
        service = self._service_factory(
            session.client,
            region_name=region_name,
            endpoint_url=selection.endpoint_url,
        )
        buckets = service.list_buckets()
        self._session = session
        self._service = service
        self._selection = selection
        LOGGER.debug("Connected using '%s' (%d buckets)", selection.method, len(buckets))
        return buckets

    def list_buckets(self) -> list[str]:
        return self._require_connection().list_buckets()

    def bucket_region(self, bucket_name: str) -> str:
        return self._require_connection().get_bucket_region(bucket_name)

    def list_regions(self) -> list[str]:
        service = self._require_connection()
        try:
            regions = service.list_regions()
        except StoreError as exc:
            LOGGER.info("Falling back to the SDK region list: %s", exc)
            regions = []
        if not regions and self._session is not None:
            regions = list(self._session.get_available_regions("s3"))
        return sorted(regions)

    def cleanup_bucket(
        self,
        bucket_name: str,
        *,
        region: str | None = None,
        on_page: PageFn | None = None,
        report: CleanupReport | None = None,
    ) -> CleanupReport:
        cleaner = BucketCleaner(
            self._service_for_bucket(bucket_name, region),
            page_size=self._settings.page_size,
            max_in_flight=self._settings.max_concurrent_deletions or None,
        )
        return cleaner.cleanup(bucket_name, on_page=on_page, report=report)

    def create_objects(self, bucket_name: str, per_worker: int, *, region: str | None = None) -> PopulateReport:
        populator = ObjectPopulator(
            self._service_for_bucket(bucket_name, region),
            workers=self._settings.populate_workers,
        )
        return populator.populate(bucket_name, per_worker)

    def create_bucket(self, bucket_name: str, region: str) -> None:
        self._require_connection().for_region(region).create_bucket(bucket_name, region)

    def delete_bucket(self, bucket_name: str, *, region: str | None = None) -> None:
        self._service_for_bucket(bucket_name, region).delete_bucket(bucket_name)

    def list_profiles(self) -> list[ConnectionProfile]:
        return list(self._profiles)

    def save_profile(self, profile: ConnectionProfile, *, original_name: str | None = None) -> None:
        if original_name and original_name != profile.name:
            self._profiles = [p for p in self._profiles if p.name != original_name]
        self._upsert_profile(profile)
        self._persist_profiles()

    def delete_profile(self, name: str) -> None:
        before = len(self._profiles)
        self._profiles = [p for p in self._profiles if p.name != name]
        if len(self._profiles) == before:
            raise ValueError(f"Profile '{name}' does not exist")
        self._persist_profiles()

    def get_profile(self, name: str) -> ConnectionProfile:
        for profile in self._profiles:
            if profile.name == name:
                return profile
        raise ValueError(f"Profile '{name}' does not exist")

    def _service_for_bucket(self, bucket_name: str, region: str | None) -> S3BucketService:
        service = self._require_connection()
        if region is None:
            region = service.get_bucket_region(bucket_name)
        if region == service.region_name:
            return service
        return service.for_region(region)

    def _require_connection(self) -> S3BucketService:
        if self._service is None:
            raise NotConnectedError("Not connected to S3")
        return self._service

    def _upsert_profile(self, profile: ConnectionProfile) -> None:
        for idx, existing in enumerate(self._profiles):
            if existing.name == profile.name:
                self._profiles[idx] = profile
                break
        else:
            self._profiles.append(profile)

    def _persist_profiles(self) -> None:
        self._storage.save(self._profiles)
