from __future__ import annotations
"""UI-agnostic helpers for prompts and formatting."""
from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError, metadata, version
import re
import uuid

DIST_NAME = "pys3m"
OBJECT_COUNT_PATTERN = re.compile(r"^\d{1,6}$")
INVALID_OBJECT_COUNT = "Invalid quantity specified. Please use a value from 1 - 999999"


@dataclass(frozen=True)
class PackageInfo:
    name: str
    version: str
    summary: str


def load_package_info(dist_name: str = DIST_NAME) -> PackageInfo:
    try:
        distribution_metadata = metadata(dist_name)
        package_version = version(dist_name)
    except PackageNotFoundError:
        return PackageInfo(
            name="S3 Bucket Manager",
            version="",
            summary="Create, fill, empty and delete Amazon S3 buckets.",
        )
    return PackageInfo(
        name=distribution_metadata.get("Name"),
        version=package_version,
        summary=distribution_metadata.get("Summary") or "",
    )


def validate_object_count(value: str) -> bool | str:
    """questionary validator for the object count prompt."""

    if OBJECT_COUNT_PATTERN.match(value.strip()):
        return True
    return INVALID_OBJECT_COUNT


def default_bucket_name() -> str:
    return str(uuid.uuid4())


def format_count(count: int, noun: str) -> str:
    suffix = "" if count == 1 else "s"
    return f"{count:,} {noun}{suffix}"
