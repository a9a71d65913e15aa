from __future__ import annotations
"""Request signing and HTTP transport used by :class:`S3RestService`."""
import logging
from typing import Mapping, Optional, Protocol
from xml.etree import ElementTree as ET

from botocore.auth import S3SigV4Auth, S3SigV4QueryAuth
from botocore.awsrequest import AWSPreparedRequest, AWSRequest
from botocore.credentials import Credentials
from botocore.httpsession import URLLib3Session

from .models import Response

LOGGER = logging.getLogger(__name__)

SERVICE_NAME = "s3"
DEFAULT_REGION = "us-east-1"
DEFAULT_PRESIGN_EXPIRES = 3600
DEFAULT_TIMEOUT = 60


class Signer(Protocol):
    """Produces authenticated requests for the target service."""

    def sign(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        payload: Optional[bytes] = None,
        presign: bool = False,
    ) -> AWSPreparedRequest:
        """Return a prepared request.

        With ``presign`` the credentials go into the URL query string and the
        request is meant to be handed out rather than sent.
        """


class Transport(Protocol):
    """Sends prepared requests."""

    def send(self, request: AWSPreparedRequest) -> Response:
        ...


class BotocoreSigner:
    """AWS Signature Version 4 signing backed by botocore."""

    def __init__(
        self,
        access_key: str,
        secret_key: str,
        *,
        region: str = DEFAULT_REGION,
        session_token: str | None = None,
        expires: int = DEFAULT_PRESIGN_EXPIRES,
    ):
        if expires <= 0:
            raise ValueError("expires must be greater than zero")
        self._credentials = Credentials(access_key, secret_key, session_token)
        self._region = region or DEFAULT_REGION
        self._expires = expires

    @property
    def region(self) -> str:
        return self._region

    @property
    def expires(self) -> int:
        return self._expires

    def sign(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        payload: Optional[bytes] = None,
        presign: bool = False,
    ) -> AWSPreparedRequest:
        request = AWSRequest(
            method=method.upper(),
            url=url,
            headers=dict(headers or {}),
            data=payload or b"",
        )
        if presign:
            auth = S3SigV4QueryAuth(self._credentials, SERVICE_NAME, self._region, expires=self._expires)
        else:
            auth = S3SigV4Auth(self._credentials, SERVICE_NAME, self._region)
        auth.add_auth(request)
        return request.prepare()


def parse_xml_body(content: bytes, content_type: str | None = None) -> ET.Element | None:
    """Parse an XML reply body, returning None for empty or non-XML bodies."""

    if not content or not content.strip():
        return None
    if content_type:
        if "xml" not in content_type.lower():
            return None
    elif not content.lstrip().startswith(b"<"):
        return None
    try:
        return ET.fromstring(content)
    except ET.ParseError as exc:
        LOGGER.warning("Discarding unparsable XML body: %s", exc)
        return None


class Urllib3Transport:
    """Sends requests through botocore's urllib3 session."""

    def __init__(self, timeout: int = DEFAULT_TIMEOUT, session: URLLib3Session | None = None):
        self._session = session or URLLib3Session(timeout=timeout)

    def send(self, request: AWSPreparedRequest) -> Response:
        LOGGER.debug("%s %s", request.method, request.url)
        http_response = self._session.send(request)
        content = http_response.content or b""
        headers = dict(http_response.headers.items())
        return Response(
            status_code=http_response.status_code,
            body=content.decode("utf-8", errors="replace"),
            headers=headers,
            document=parse_xml_body(content, headers.get("Content-Type") or headers.get("content-type")),
        )

    def close(self) -> None:
        self._session.close()
