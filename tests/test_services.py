import unittest
from datetime import datetime, timezone
from types import SimpleNamespace
from xml.etree import ElementTree as ET

from s3_rest.errors import BindingError, S3ClientError
from s3_rest.models import Bucket, Content, ListContentsRequest, Response, StorageClass
from s3_rest.profiles import ConnectionProfile
from s3_rest.services import S3RestService
from s3_rest.settings import ClientSettings
from s3_rest.transport import BotocoreSigner

ENDPOINT = "https://s3.example.com"

BUCKETS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<ListAllMyBucketsResult xmlns="http://s3.amazonaws.com/doc/2006-03-01/">
  <Owner><ID>owner-id</ID><DisplayName>me</DisplayName></Owner>
  <Buckets>
    <Bucket><Name>one</Name><CreationDate>2024-01-01T00:00:00.000Z</CreationDate></Bucket>
    <Bucket><Name>two</Name><CreationDate>2024-03-01T00:00:00.000Z</CreationDate></Bucket>
  </Buckets>
</ListAllMyBucketsResult>
"""

SINGLE_CONTENT_XML = (
    "<ListBucketResult><Contents><Key>a.txt</Key>"
    "<LastModified>2024-01-01T00:00:00.000Z</LastModified><ETag>\"abc\"</ETag>"
    "<Size>10</Size><StorageClass>STANDARD</StorageClass></Contents></ListBucketResult>"
)

CONTENTS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<ListBucketResult xmlns="http://s3.amazonaws.com/doc/2006-03-01/">
  <Name>logs</Name>
  <Prefix/>
  <Marker></Marker>
  <MaxKeys>1000</MaxKeys>
  <IsTruncated>true</IsTruncated>
  <Contents>
    <Key>z-last.txt</Key>
    <LastModified>2024-01-02T00:00:00.000Z</LastModified>
    <ETag>"z"</ETag>
    <Size>1</Size>
    <StorageClass>SOMETHING_NEW</StorageClass>
    <Owner><ID>owner-id</ID><DisplayName>me</DisplayName></Owner>
  </Contents>
  <Contents>
    <Key>a-first.txt</Key>
    <LastModified>2024-01-03T00:00:00.000Z</LastModified>
    <ETag>"a"</ETag>
    <Size>2048</Size>
    <StorageClass>GLACIER</StorageClass>
    <Owner/>
  </Contents>
</ListBucketResult>
"""

ACCESS_DENIED_XML = (
    "<Error><Code>AccessDenied</Code><Message>Access Denied</Message>"
    "<RequestId>req</RequestId></Error>"
)


def xml_response(status_code, text):
    return Response(status_code=status_code, body=text, document=ET.fromstring(text))


class FakeSigner:
    def __init__(self):
        self.calls = []

    def sign(self, method, url, headers=None, payload=None, presign=False):
        self.calls.append(
            {"method": method, "url": url, "headers": headers, "payload": payload, "presign": presign}
        )
        signed_url = url + ("&" if "?" in url else "?") + "X-Amz-Signature=sig" if presign else url
        return SimpleNamespace(method=method, url=signed_url, headers=dict(headers or {}), body=payload)


class FakeTransport:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.sent = []

    def send(self, request):
        self.sent.append(request)
        return self.responses.pop(0)


class S3RestServiceTests(unittest.TestCase):
    def make_service(self, *responses):
        self.signer = FakeSigner()
        self.transport = FakeTransport(*responses)
        return S3RestService(ENDPOINT + "/", self.signer, self.transport)

    def test_list_buckets(self):
        service = self.make_service(xml_response(200, BUCKETS_XML))

        buckets = service.list_buckets()

        self.assertEqual([Bucket(name="one"), Bucket(name="two")], buckets)
        self.assertEqual(datetime(2024, 1, 1, tzinfo=timezone.utc), buckets[0].creation_date)
        self.assertEqual([("GET", ENDPOINT + "/")], [(c["method"], c["url"]) for c in self.signer.calls])
        self.assertEqual(1, len(self.transport.sent))

    def test_list_all_my_buckets_keeps_owner(self):
        service = self.make_service(xml_response(200, BUCKETS_XML))

        result = service.list_all_my_buckets()

        self.assertEqual("owner-id", result.owner.id)
        self.assertEqual("me", result.owner.display_name)
        self.assertEqual(2, len(result.buckets))

    def test_list_buckets_with_one_or_no_bucket(self):
        single = "<ListAllMyBucketsResult><Buckets><Bucket><Name>solo</Name></Bucket></Buckets></ListAllMyBucketsResult>"
        empty = "<ListAllMyBucketsResult><Owner/><Buckets/></ListAllMyBucketsResult>"
        service = self.make_service(xml_response(200, single), xml_response(200, empty))

        self.assertEqual([Bucket(name="solo")], service.list_buckets())
        self.assertEqual([], service.list_buckets())

    def test_list_buckets_requires_xml_body(self):
        service = self.make_service(Response(status_code=200, body="not xml"))

        with self.assertRaises(S3ClientError) as ctx:
            service.list_buckets()

        self.assertEqual("not xml", ctx.exception.body)

    def test_list_buckets_named_like_booleans(self):
        xml = (
            "<ListAllMyBucketsResult><Owner><ID>true</ID><DisplayName>false</DisplayName></Owner>"
            "<Buckets><Bucket><Name>true</Name></Bucket><Bucket><Name>false</Name></Bucket></Buckets>"
            "</ListAllMyBucketsResult>"
        )
        service = self.make_service(xml_response(200, xml))

        result = service.list_all_my_buckets()

        self.assertEqual((Bucket(name="true"), Bucket(name="false")), result.buckets)
        self.assertEqual("true", result.owner.id)
        self.assertEqual("false", result.owner.display_name)

    def test_list_contents_of_bucket_named_false(self):
        xml = (
            "<ListBucketResult><Name>false</Name><Contents><Key>a</Key><ETag>true</ETag>"
            "<Size>false</Size><StorageClass>true</StorageClass></Contents></ListBucketResult>"
        )
        service = self.make_service(xml_response(200, xml))

        result = service.list_bucket_result("false")

        self.assertEqual("false", result.name)
        content = result.contents[0]
        self.assertEqual(("a", "true", "false", "true"), (content.key, content.etag, content.size, content.storage_class))
        self.assertEqual(ENDPOINT + "/false", self.signer.calls[0]["url"])

    def test_create_bucket_accepts_bucket_record(self):
        service = self.make_service(Response(status_code=200))

        service.create_bucket(Bucket(name="records"))

        self.assertEqual(ENDPOINT + "/records", self.signer.calls[0]["url"])

    def test_create_and_delete_bucket(self):
        created = Response(status_code=200, headers={"Location": "/new-bucket"})
        service = self.make_service(created, Response(status_code=204))

        self.assertIs(created, service.create_bucket("new-bucket"))
        self.assertIsNone(service.delete_bucket(Bucket(name="new-bucket")))

        self.assertEqual(
            [("PUT", ENDPOINT + "/new-bucket"), ("DELETE", ENDPOINT + "/new-bucket")],
            [(c["method"], c["url"]) for c in self.signer.calls],
        )

    def test_delete_bucket_expects_no_content(self):
        service = self.make_service(Response(status_code=200, body="ok"))

        with self.assertRaises(S3ClientError) as ctx:
            service.delete_bucket("b")

        self.assertEqual(200, ctx.exception.status_code)
        self.assertEqual("ok", ctx.exception.body)

    def test_list_contents_single_entry(self):
        service = self.make_service(xml_response(200, SINGLE_CONTENT_XML))

        contents = service.list_contents(Bucket(name="logs"))

        self.assertEqual(1, len(contents))
        content = contents[0]
        self.assertEqual("a.txt", content.key)
        self.assertEqual(datetime(2024, 1, 1, tzinfo=timezone.utc), content.last_modified)
        self.assertEqual('"abc"', content.etag)
        self.assertEqual("10", content.size)
        self.assertEqual(10, content.size_bytes)
        self.assertEqual(StorageClass.STANDARD, content.storage_class)
        self.assertIsNone(content.owner)
        self.assertEqual(Bucket(name="logs"), content.bucket)
        self.assertEqual(ENDPOINT + "/logs", self.signer.calls[0]["url"])

    def test_list_contents_encodes_request(self):
        service = self.make_service(xml_response(200, SINGLE_CONTENT_XML))

        service.list_contents("logs", ListContentsRequest(prefix="logs/", max_keys="50"))

        self.assertEqual(ENDPOINT + "/logs?max-keys=50&prefix=logs%2F", self.signer.calls[0]["url"])

    def test_list_contents_keeps_document_order(self):
        bucket = Bucket(name="logs")
        service = self.make_service(xml_response(200, CONTENTS_XML))

        contents = service.list_contents(bucket)

        self.assertEqual(["z-last.txt", "a-first.txt"], [c.key for c in contents])
        self.assertEqual("SOMETHING_NEW", contents[0].storage_class)
        self.assertEqual("me", contents[0].owner.display_name)
        self.assertIsNone(contents[1].owner)
        for content in contents:
            self.assertIs(bucket, content.bucket)

    def test_list_bucket_result_metadata(self):
        service = self.make_service(xml_response(200, CONTENTS_XML))

        result = service.list_bucket_result("logs")

        self.assertEqual("logs", result.name)
        self.assertIsNone(result.prefix)
        self.assertIsNone(result.marker)
        self.assertEqual(1000, result.max_keys)
        self.assertTrue(result.is_truncated)
        self.assertEqual(2, len(result.contents))
        self.assertEqual("logs", result.contents[1].bucket.name)

    def test_list_contents_with_no_entries(self):
        service = self.make_service(xml_response(200, "<ListBucketResult><Name>logs</Name></ListBucketResult>"))

        self.assertEqual([], service.list_contents("logs"))

    def test_list_contents_rejects_malformed_entry(self):
        xml = "<ListBucketResult><Contents><Key>a</Key></Contents><Contents><Size>1</Size></Contents></ListBucketResult>"
        service = self.make_service(xml_response(200, xml))

        with self.assertRaises(BindingError) as ctx:
            service.list_contents("logs")

        self.assertEqual("key", ctx.exception.field)

    def test_create_content(self):
        service = self.make_service(Response(status_code=200, headers={"ETag": '"abc"'}))

        response = service.create_content(
            "logs",
            "dir/a b.txt",
            headers={"Content-Type": "text/plain"},
            payload=b"hello",
        )

        self.assertEqual(200, response.status_code)
        call = self.signer.calls[0]
        self.assertEqual("PUT", call["method"])
        self.assertEqual(ENDPOINT + "/logs/dir/a%20b.txt", call["url"])
        self.assertEqual({"Content-Type": "text/plain"}, call["headers"])
        self.assertEqual(b"hello", call["payload"])
        self.assertFalse(call["presign"])

    def test_delete_content(self):
        service = self.make_service(Response(status_code=204))

        service.delete_content(Bucket(name="logs"), "a.txt")

        self.assertEqual(("DELETE", ENDPOINT + "/logs/a.txt"), (self.signer.calls[0]["method"], self.signer.calls[0]["url"]))

    def test_leading_slash_is_rejected_before_any_request(self):
        service = self.make_service()

        with self.assertRaises(S3ClientError) as create_ctx:
            service.create_content("logs", "/x", payload=b"data")
        with self.assertRaises(S3ClientError) as delete_ctx:
            service.delete_content("logs", "/x")

        self.assertIsNone(create_ctx.exception.status_code)
        self.assertIsNone(delete_ctx.exception.status_code)
        self.assertEqual([], self.signer.calls)
        self.assertEqual([], self.transport.sent)

    def test_forbidden_reply_raises_for_every_operation(self):
        operations = {
            "list_buckets": lambda service: service.list_buckets(),
            "create_bucket": lambda service: service.create_bucket("b"),
            "delete_bucket": lambda service: service.delete_bucket("b"),
            "list_contents": lambda service: service.list_contents("b"),
            "create_content": lambda service: service.create_content("b", "k", payload=b"x"),
            "delete_content": lambda service: service.delete_content("b", "k"),
        }
        for name, operation in operations.items():
            with self.subTest(operation=name):
                service = self.make_service(xml_response(403, ACCESS_DENIED_XML))

                with self.assertRaises(S3ClientError) as ctx:
                    operation(service)

                self.assertEqual(403, ctx.exception.status_code)
                self.assertEqual(ACCESS_DENIED_XML, ctx.exception.body)
                self.assertEqual("AccessDenied", ctx.exception.code)
                self.assertEqual("Access Denied", ctx.exception.service_message)

    def test_error_without_xml_body(self):
        service = self.make_service(Response(status_code=500, body="upstream failure"))

        with self.assertRaises(S3ClientError) as ctx:
            service.create_bucket("b")

        self.assertIsNone(ctx.exception.code)
        self.assertEqual("upstream failure", ctx.exception.body)

    def test_presign_signs_without_sending(self):
        service = self.make_service()
        content = Content(key="dir/a.txt", bucket=Bucket(name="logs"))

        request = service.presign(content)

        self.assertEqual(ENDPOINT + "/logs/dir/a.txt?X-Amz-Signature=sig", request.url)
        self.assertEqual(
            [{"method": "GET", "url": ENDPOINT + "/logs/dir/a.txt", "headers": None, "payload": None, "presign": True}],
            self.signer.calls,
        )
        self.assertEqual([], self.transport.sent)
        self.assertEqual(request.url, service.presigned_url(content))

    def test_presign_listed_content(self):
        service = self.make_service(xml_response(200, SINGLE_CONTENT_XML))
        content = service.list_contents("logs")[0]

        url = service.presigned_url(content)

        self.assertTrue(url.startswith(ENDPOINT + "/logs/a.txt?"))

    def test_presign_requires_bucket(self):
        service = self.make_service()

        with self.assertRaises(S3ClientError):
            service.presign(Content(key="a.txt"))
        self.assertEqual([], self.signer.calls)

    def test_empty_names_are_rejected(self):
        service = self.make_service()

        with self.assertRaises(S3ClientError):
            service.create_bucket("")
        with self.assertRaises(S3ClientError):
            service.delete_content("logs", "")
        self.assertEqual([], self.signer.calls)

    def test_from_profile_uses_botocore_signer(self):
        profile = ConnectionProfile(
            name="alpha",
            endpoint_url="https://minio.local:9000",
            access_key="AKID",
            secret_key="secret",
            region="eu-west-1",
        )

        service = S3RestService.from_profile(profile, ClientSettings(presign_expires=60))

        self.assertEqual("https://minio.local:9000", service.endpoint_url)
        self.assertIsInstance(service._signer, BotocoreSigner)
        self.assertEqual("eu-west-1", service._signer.region)
        self.assertEqual(60, service._signer.expires)


if __name__ == "__main__":
    unittest.main()
