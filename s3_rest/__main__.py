"""Command-line entry point for the S3 REST client."""
import argparse
import logging
import mimetypes
from pathlib import Path
import sys

from botocore.exceptions import BotoCoreError

from .errors import S3RestError
from .formatting import (
    build_download_commands,
    format_bucket,
    format_content,
    load_package_info,
    suggest_filename,
)
from .models import Bucket, Content, ListContentsRequest
from .profiles import ProfileStorage
from .services import S3RestService
from .settings import SettingsStorage

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    info = load_package_info()
    parser = argparse.ArgumentParser(prog="pys3rest", description=info.summary)
    parser.add_argument("--version", action="version", version=f"{info.name} {info.version}".strip())
    parser.add_argument("-p", "--profile", required=True, help="saved connection profile")
    parser.add_argument("-v", "--verbose", action="store_true", help="log requests")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("buckets", help="list buckets")

    ls = commands.add_parser("ls", help="list objects of a bucket")
    ls.add_argument("bucket")
    ls.add_argument("--prefix")
    ls.add_argument("--delimiter")
    ls.add_argument("--encoding-type", choices=["url"])
    ls.add_argument("--marker")
    ls.add_argument("--max-keys", type=int)

    mb = commands.add_parser("mb", help="create a bucket")
    mb.add_argument("bucket")
    rb = commands.add_parser("rb", help="delete a bucket")
    rb.add_argument("bucket")

    put = commands.add_parser("put", help="upload a file")
    put.add_argument("bucket")
    put.add_argument("key")
    put.add_argument("file", type=Path)

    rm = commands.add_parser("rm", help="delete an object")
    rm.add_argument("bucket")
    rm.add_argument("key")

    presign = commands.add_parser("presign", help="print a presigned download URL")
    presign.add_argument("bucket")
    presign.add_argument("key")
    return parser


def run(args: argparse.Namespace, service: S3RestService) -> None:
    if args.command == "buckets":
        for bucket in service.list_buckets():
            print(format_bucket(bucket))
    elif args.command == "ls":
        request = ListContentsRequest(
            delimiter=args.delimiter,
            encoding_type=args.encoding_type,
            marker=args.marker,
            max_keys=args.max_keys,
            prefix=args.prefix,
        )
        for content in service.list_contents(args.bucket, request):
            print(format_content(content))
    elif args.command == "mb":
        service.create_bucket(args.bucket)
    elif args.command == "rb":
        service.delete_bucket(args.bucket)
    elif args.command == "put":
        content_type = mimetypes.guess_type(args.file.name)[0] or "application/octet-stream"
        service.create_content(
            args.bucket,
            args.key,
            headers={"Content-Type": content_type},
            payload=args.file.read_bytes(),
        )
    elif args.command == "rm":
        service.delete_content(args.bucket, args.key)
    elif args.command == "presign":
        url = service.presigned_url(Content(key=args.key, bucket=Bucket(name=args.bucket)))
        print(url)
        for command in build_download_commands(url, suggest_filename(args.key)):
            print(command)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    try:
        profile = ProfileStorage().get(args.profile)
        service = S3RestService.from_profile(profile, SettingsStorage().load())
        run(args, service)
    except (S3RestError, BotoCoreError, ValueError, OSError) as exc:
        LOGGER.debug("Command '%s' failed", args.command, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
