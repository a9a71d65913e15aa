from __future__ import annotations
"""Resource operations against an S3-compatible REST endpoint."""
import logging
from typing import Mapping, Optional, Union
from urllib.parse import quote, urlencode
from xml.etree.ElementTree import Element

from botocore.awsrequest import AWSPreparedRequest

from .binder import bind
from .encoding import encode_parameters
from .errors import S3ClientError
from .models import (
    Bucket,
    Content,
    ListAllMyBucketsResult,
    ListBucketResult,
    ListContentsRequest,
    Response,
)
from .normalizer import XmlNormalizer, local_name
from .profiles import ConnectionProfile
from .settings import ClientSettings
from .transport import BotocoreSigner, Signer, Transport, Urllib3Transport

LOGGER = logging.getLogger(__name__)

BucketRef = Union[Bucket, str]


def _bucket_name(bucket: BucketRef) -> str:
    name = bucket.name if isinstance(bucket, Bucket) else bucket
    if not name:
        raise S3ClientError("Bucket name cannot be empty")
    return name


def _check_key(key: str) -> None:
    if not key:
        raise S3ClientError("Object key cannot be empty")
    if key.startswith("/"):
        raise S3ClientError(f"Object key must not start with '/': {key!r}")


class S3RestService:
    """Bucket and object operations over a :class:`Signer` and a :class:`Transport`."""

    def __init__(
        self,
        endpoint_url: str,
        signer: Signer,
        transport: Transport,
        normalizer: XmlNormalizer | None = None,
    ):
        if not endpoint_url:
            raise ValueError("endpoint_url is required")
        self._endpoint_url = endpoint_url.rstrip("/")
        self._signer = signer
        self._transport = transport
        self._normalizer = normalizer or XmlNormalizer()

    @classmethod
    def from_profile(
        cls,
        profile: ConnectionProfile,
        settings: ClientSettings | None = None,
    ) -> S3RestService:
        """Build a service using botocore signing and transport."""

        settings = settings or ClientSettings()
        signer = BotocoreSigner(
            profile.access_key,
            profile.secret_key,
            region=profile.region or settings.region,
            expires=settings.presign_expires,
        )
        return cls(profile.endpoint_url, signer, Urllib3Transport(timeout=settings.timeout))

    @property
    def endpoint_url(self) -> str:
        return self._endpoint_url

    def list_buckets(self) -> list[Bucket]:
        """Return the buckets owned by the authenticated sender."""

        return list(self.list_all_my_buckets().buckets)

    def list_all_my_buckets(self) -> ListAllMyBucketsResult:
        response = self._execute("GET", self._url(), expected_status=200)
        document = self._require_document(response)
        result = bind(self._normalizer.normalize(document), ListAllMyBucketsResult)
        LOGGER.debug("Listed %d bucket(s)", len(result.buckets))
        return result

    def create_bucket(self, name: BucketRef) -> Response:
        return self._execute("PUT", self._url(_bucket_name(name)), expected_status=200)

    def delete_bucket(self, name: BucketRef) -> None:
        self._execute("DELETE", self._url(_bucket_name(name)), expected_status=204)

    def list_contents(
        self,
        bucket: BucketRef,
        request: ListContentsRequest | None = None,
    ) -> list[Content]:
        """Return the objects of a single listing page, in document order."""

        return list(self.list_bucket_result(bucket, request).contents)

    def list_bucket_result(
        self,
        bucket: BucketRef,
        request: ListContentsRequest | None = None,
    ) -> ListBucketResult:
        """Return a listing page together with its paging metadata."""

        owner = bucket if isinstance(bucket, Bucket) else Bucket(name=_bucket_name(bucket))
        url = self._url(owner.name, query=encode_parameters(request))
        response = self._execute("GET", url, expected_status=200)
        document = self._require_document(response)

        contents: list[Content] = []
        metadata = []
        for child in document:
            if local_name(child.tag) == "Contents":
                # Each entry is normalized on its own so one bad entry cannot
                # leak into its siblings.
                contents.append(bind(self._normalizer.normalize(child), Content, bucket=owner))
            else:
                metadata.append(child)

        header = Element(document.tag)
        header.extend(metadata)
        result = bind(self._normalizer.normalize(header) or {}, ListBucketResult, contents=tuple(contents))
        LOGGER.debug("Listed %d object(s) in bucket '%s'", len(contents), owner.name)
        return result

    def create_content(
        self,
        bucket: BucketRef,
        key: str,
        headers: Optional[Mapping[str, str]] = None,
        payload: bytes = b"",
    ) -> Response:
        """Upload ``payload`` as the object ``key``."""

        _check_key(key)
        url = self._url(_bucket_name(bucket), key)
        return self._execute("PUT", url, expected_status=200, headers=headers, payload=payload)

    def delete_content(self, bucket: BucketRef, key: str) -> None:
        _check_key(key)
        self._execute("DELETE", self._url(_bucket_name(bucket), key), expected_status=204)

    def presign(self, content: Content) -> AWSPreparedRequest:
        """Return a signed, unsent GET request for ``content``.

        The credentials are embedded in the URL, which stays valid for the
        expiry configured on the signer.
        """

        if content.bucket is None:
            raise S3ClientError(f"Object {content.key!r} is not attached to a bucket")
        url = self._url(_bucket_name(content.bucket), content.key)
        LOGGER.debug("Presigning %s", url)
        return self._signer.sign("GET", url, presign=True)

    def presigned_url(self, content: Content) -> str:
        return self.presign(content).url

    def _url(self, bucket: str | None = None, key: str | None = None, query: Mapping[str, str] | None = None) -> str:
        url = self._endpoint_url + "/"
        if bucket:
            url += quote(bucket, safe="")
            if key:
                url += "/" + quote(key, safe="/~")
        if query:
            url += "?" + urlencode(query, quote_via=quote, safe="~")
        return url

    def _execute(
        self,
        method: str,
        url: str,
        *,
        expected_status: int,
        headers: Optional[Mapping[str, str]] = None,
        payload: Optional[bytes] = None,
    ) -> Response:
        request = self._signer.sign(method, url, headers=headers, payload=payload)
        response = self._transport.send(request)
        LOGGER.debug("%s %s -> %d", method, url, response.status_code)
        if response.status_code != expected_status:
            LOGGER.warning(
                "%s %s returned %d (expected %d)", method, url, response.status_code, expected_status
            )
            raise self._client_error(method, url, response)
        return response

    def _client_error(self, method: str, url: str, response: Response) -> S3ClientError:
        code = service_message = None
        document = response.document
        if document is not None and local_name(document.tag) == "Error":
            for child in document:
                name = local_name(child.tag)
                if name == "Code":
                    code = child.text
                elif name == "Message":
                    service_message = child.text
        message = f"{method} {url} failed with status {response.status_code}"
        if code:
            message += f" ({code})"
        return S3ClientError(
            message,
            status_code=response.status_code,
            body=response.body,
            code=code,
            service_message=service_message,
        )

    def _require_document(self, response: Response) -> Element:
        if response.document is None:
            raise S3ClientError(
                "Response body is not an XML document",
                status_code=response.status_code,
                body=response.body,
            )
        return response.document
