from __future__ import annotations
"""Data models representing S3 requests, listings and responses."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional
from xml.etree.ElementTree import Element

WIRE_NAME = "wire"
REQUIRED = "required"


def wire_field(tag: str, *, required: bool = False, **kwargs: Any) -> Any:
    """Declare a dataclass field bound from the XML element named ``tag``.

    Required fields have no default and must be present in the bound value.
    """

    if not required:
        kwargs.setdefault("default", None)
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[WIRE_NAME] = tag
    metadata[REQUIRED] = required
    return field(metadata=metadata, **kwargs)


class StorageClass:
    """Storage classes known at the time of writing.

    Listings keep ``storage_class`` as a plain string, so values missing here
    are passed through unchanged.
    """

    STANDARD = "STANDARD"
    REDUCED_REDUNDANCY = "REDUCED_REDUNDANCY"
    GLACIER = "GLACIER"
    STANDARD_IA = "STANDARD_IA"
    ONEZONE_IA = "ONEZONE_IA"
    INTELLIGENT_TIERING = "INTELLIGENT_TIERING"
    DEEP_ARCHIVE = "DEEP_ARCHIVE"
    GLACIER_IR = "GLACIER_IR"
    OUTPOSTS = "OUTPOSTS"
    EXPRESS_ONEZONE = "EXPRESS_ONEZONE"


@dataclass(frozen=True)
class Owner:
    """Owner of a bucket or an object."""

    id: Optional[str] = wire_field("ID")
    display_name: Optional[str] = wire_field("DisplayName")


@dataclass(frozen=True)
class Bucket:
    """A bucket, identified by its name only."""

    name: str = wire_field("Name", required=True)
    creation_date: Optional[datetime] = wire_field("CreationDate", compare=False)


@dataclass(frozen=True)
class Content:
    """Metadata about a single object returned by a bucket listing."""

    key: str = wire_field("Key", required=True)
    last_modified: Optional[datetime] = wire_field("LastModified")
    etag: Optional[str] = wire_field("ETag")
    size: Optional[str] = wire_field("Size")
    storage_class: Optional[str] = wire_field("StorageClass")
    owner: Optional[Owner] = wire_field("Owner")
    # Listing bucket, used to build follow-up URLs such as presign.
    bucket: Optional[Bucket] = field(default=None, compare=False, repr=False)

    @property
    def size_bytes(self) -> Optional[int]:
        if self.size is None:
            return None
        try:
            return int(self.size)
        except ValueError:
            return None


@dataclass(frozen=True)
class ListContentsRequest:
    """Optional filters for a bucket listing. Unset fields are not sent."""

    delimiter: Optional[str] = None
    encoding_type: Optional[str] = None
    marker: Optional[str] = None
    max_keys: Optional[int | str] = None
    prefix: Optional[str] = None


@dataclass(frozen=True)
class ListBucketResult:
    """A single page of a bucket listing."""

    name: Optional[str] = wire_field("Name")
    prefix: Optional[str] = wire_field("Prefix")
    marker: Optional[str] = wire_field("Marker")
    max_keys: Optional[int] = wire_field("MaxKeys")
    is_truncated: bool = wire_field("IsTruncated", default=False)
    delimiter: Optional[str] = wire_field("Delimiter")
    next_marker: Optional[str] = wire_field("NextMarker")
    contents: tuple[Content, ...] = ()


@dataclass(frozen=True)
class ListAllMyBucketsResult:
    """Reply of the bucket collection endpoint."""

    owner: Optional[Owner] = wire_field("Owner")
    buckets: tuple[Bucket, ...] = wire_field("Buckets", default=())


@dataclass(frozen=True)
class Response:
    """Outcome of a single HTTP exchange."""

    status_code: int
    body: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    document: Optional[Element] = field(default=None, compare=False, repr=False)
