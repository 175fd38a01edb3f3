from __future__ import annotations
"""Business logic for talking to S3 and the AWS account service."""
from contextlib import contextmanager
import logging
import threading
from typing import Callable, Iterator, Optional

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from .models import ObjectPage


LOGGER = logging.getLogger(__name__)

DEFAULT_REGION = "us-east-1"
# Legacy LocationConstraint values returned by GetBucketLocation.
LEGACY_LOCATIONS = {"EU": "eu-west-1"}
REGION_OPT_STATUSES = ("ENABLED", "ENABLED_BY_DEFAULT", "ENABLING")


class StoreError(RuntimeError):
    """Raised when a call to the remote object store fails."""

    def __init__(self, message: str, *, code: str | None = None, operation: str | None = None):
        super().__init__(message)
        self.code = code
        self.operation = operation


def _describe(exc: Exception) -> tuple[str, str | None]:
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        code = error.get("Code")
        message = error.get("Message") or str(exc)
        return message, code
    return str(exc), None


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except (BotoCoreError, ClientError) as exc:
        message, code = _describe(exc)
        raise StoreError(message, code=code, operation=operation) from exc


def normalize_location(location: str | None) -> str:
    """Map a bucket LocationConstraint to a region name."""

    if not location:
        return DEFAULT_REGION
    return LEGACY_LOCATIONS.get(location, location)


class S3BucketService:
    """Encapsulates S3 calls independent of any UI technology.

    The underlying boto3 client is created once and shared, so a single
    service instance can be used from many threads at the same time.
    """

    def __init__(
        self,
        client_factory: Callable[..., object] | None = None,
        *,
        region_name: str | None = None,
        endpoint_url: str | None = None,
    ):
        self._client_factory = client_factory or boto3.client
        self._region_name = region_name
        self._endpoint_url = endpoint_url
        self._client = None
        self._client_lock = threading.Lock()

    @property
    def region_name(self) -> str | None:
        return self._region_name

    @property
    def endpoint_url(self) -> str | None:
        return self._endpoint_url

    def for_region(self, region_name: str) -> "S3BucketService":
        """Return a service bound to ``region_name`` sharing this factory."""

        return S3BucketService(
            self._client_factory,
            region_name=region_name,
            endpoint_url=self._endpoint_url,
        )

    def list_buckets(self) -> list[str]:
        """Return the available bucket names."""

        with _store_errors("ListBuckets"):
            response = self._s3().list_buckets()
        return [bucket["Name"] for bucket in response.get("Buckets", [])]

    def get_bucket_region(self, bucket_name: str) -> str:
        with _store_errors("GetBucketLocation"):
            response = self._s3().get_bucket_location(Bucket=bucket_name)
        return normalize_location(response.get("LocationConstraint"))

    def list_regions(self) -> list[str]:
        """Return the regions enabled for the account, following pagination."""

        with _store_errors("ListRegions"):
            client = self._create_client("account")
        regions: list[str] = []
        params: dict[str, object] = {"RegionOptStatusContains": list(REGION_OPT_STATUSES)}
        while True:
            with _store_errors("ListRegions"):
                response = client.list_regions(**params)
            regions.extend(
                region["RegionName"]
                for region in response.get("Regions", [])
                if region.get("RegionName")
            )
            next_token = response.get("NextToken")
            if not next_token:
                break
            params["NextToken"] = next_token
        return regions

    def create_bucket(self, bucket_name: str, region_name: str) -> None:
        params: dict[str, object] = {"Bucket": bucket_name}
        # us-east-1 rejects an explicit LocationConstraint.
        if region_name != DEFAULT_REGION:
            params["CreateBucketConfiguration"] = {"LocationConstraint": region_name}
        with _store_errors("CreateBucket"):
            self._s3().create_bucket(**params)
        LOGGER.info("Created bucket '%s' in %s", bucket_name, region_name)

    def delete_bucket(self, bucket_name: str) -> None:
        with _store_errors("DeleteBucket"):
            self._s3().delete_bucket(Bucket=bucket_name)
        LOGGER.info("Deleted bucket '%s'", bucket_name)

    def list_objects(
        self,
        bucket_name: str,
        *,
        max_keys: int,
        continuation_token: Optional[str] = None,
    ) -> ObjectPage:
        """Fetch one page of object keys.

        Raises:
            StoreError: when the listing request fails.
        """

        params: dict[str, object] = {"Bucket": bucket_name, "MaxKeys": max_keys}
        if continuation_token is not None:
            params["ContinuationToken"] = continuation_token
        with _store_errors("ListObjectsV2"):
            response = self._s3().list_objects_v2(**params)
        keys = [obj["Key"] for obj in response.get("Contents", [])]
        key_count = response.get("KeyCount")
        return ObjectPage(
            keys=keys,
            key_count=key_count if isinstance(key_count, int) else len(keys),
            next_token=response.get("NextContinuationToken"),
        )

    def delete_object(self, bucket_name: str, key: str) -> None:
        """Delete an object; deleting a missing key is not an error."""

        with _store_errors("DeleteObject"):
            self._s3().delete_object(Bucket=bucket_name, Key=key)

    def put_object(self, bucket_name: str, key: str, body: bytes) -> None:
        with _store_errors("PutObject"):
            self._s3().put_object(Bucket=bucket_name, Key=key, Body=body)

    def _s3(self):
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = self._create_client("s3")
        return self._client

    def _create_client(self, service_name: str):
        kwargs: dict[str, object] = {}
        if self._region_name:
            kwargs["region_name"] = self._region_name
        if service_name == "s3":
            kwargs["config"] = Config(signature_version="s3v4")
            if self._endpoint_url:
                kwargs["endpoint_url"] = self._endpoint_url
        return self._client_factory(service_name, **kwargs)
