from __future__ import annotations
"""Helpers for printing listings and presigned URLs on the command line."""
from dataclasses import dataclass
from datetime import datetime
from importlib.metadata import PackageNotFoundError, metadata, version

from .models import Bucket, Content

DIST_NAME = "pys3rest"
SIZE_SUFFIXES = ("B", "KB", "MB", "GB", "TB")


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
            name=dist_name,
            version="",
            summary="Client for S3-compatible REST services.",
        )
    return PackageInfo(
        name=distribution_metadata.get("Name") or dist_name,
        version=package_version,
        summary=distribution_metadata.get("Summary") or "",
    )


def format_size(size: int | None) -> str:
    if size is None:
        return "-"
    value = float(max(size, 0))
    for suffix in SIZE_SUFFIXES:
        if value < 1024 or suffix == SIZE_SUFFIXES[-1]:
            return f"{value:.1f} {suffix}" if suffix != "B" else f"{int(value)} {suffix}"
        value /= 1024
    return f"{size} B"


def format_timestamp(timestamp: datetime | None) -> str:
    if timestamp is None:
        return "-"
    return timestamp.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


def format_bucket(bucket: Bucket) -> str:
    return f"{format_timestamp(bucket.creation_date):<23}  {bucket.name}"


def format_content(content: Content) -> str:
    return (
        f"{format_timestamp(content.last_modified):<23}  "
        f"{format_size(content.size_bytes):>10}  "
        f"{content.storage_class or '-':<12}  {content.key}"
    )


def build_download_commands(url: str, filename: str) -> tuple[str, str]:
    """Return ``wget`` and ``curl`` commands fetching a presigned URL."""

    return f'wget "{url}" -O "{filename}"', f'curl -L "{url}" -o "{filename}"'


def suggest_filename(key: str) -> str:
    cleaned = key.strip().rstrip("/")
    if not cleaned:
        return "local-file"
    return cleaned.rsplit("/", 1)[-1] or "local-file"
