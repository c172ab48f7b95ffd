#!/usr/bin/env python3
"""Multipart transfers against the configured S3 bucket.

Usage:
  .venv/bin/python scripts/transfer.py upload ./big.iso isos/big.iso --part-size 16777216
  .venv/bin/python scripts/transfer.py download isos/big.iso ./big.iso
  .venv/bin/python scripts/transfer.py copy isos/big.iso backup/big.iso
  .venv/bin/python scripts/transfer.py list-uploads --prefix isos/
  .venv/bin/python scripts/transfer.py list-parts isos/big.iso <upload-id>
  .venv/bin/python scripts/transfer.py abort isos/big.iso <upload-id>

Connection settings come from the environment (or .env), see
parttransfer/common/config.py.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from parttransfer.common.config import get_settings
from parttransfer.common.errors import TransferServiceError
from parttransfer.common.logging import setup_logging
from parttransfer.infra.storage.client import (
    SessionHandle,
    StorageError,
    UploadOptions,
)
from parttransfer.services.bundle import ServiceBundle, get_service_bundle

logger = logging.getLogger("parttransfer.cli")


def _parse_metadata(items: Sequence[str]) -> dict[str, str]:
    metadata: dict[str, str] = {}
    for item in items:
        if "=" not in item:
            raise argparse.ArgumentTypeError(f"metadata must be KEY=VALUE: {item}")
        key, value = item.split("=", 1)
        metadata[key.strip()] = value.strip()
    return metadata


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Multipart object transfers")
    parser.add_argument("--bucket", default=None, help="Override S3_BUCKET")
    sub = parser.add_subparsers(dest="command", required=True)

    upload = sub.add_parser("upload", help="Upload a local file")
    upload.add_argument("path")
    upload.add_argument("object_key")
    upload.add_argument("--part-size", type=int, default=None)
    upload.add_argument("--content-type", default=None)
    upload.add_argument(
        "--metadata",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="User metadata, repeatable",
    )

    download = sub.add_parser("download", help="Download an object")
    download.add_argument("object_key")
    download.add_argument("path")
    download.add_argument("--chunk-size", type=int, default=None)

    copy = sub.add_parser("copy", help="Server-side multipart copy")
    copy.add_argument("source_key")
    copy.add_argument("target_key")
    copy.add_argument("--part-size", type=int, default=None)

    list_uploads = sub.add_parser("list-uploads", help="List unfinished sessions")
    list_uploads.add_argument("--prefix", default=None)

    list_parts = sub.add_parser("list-parts", help="List parts of a session")
    list_parts.add_argument("object_key")
    list_parts.add_argument("upload_id")

    abort = sub.add_parser("abort", help="Abort a session")
    abort.add_argument("object_key")
    abort.add_argument("upload_id")
    return parser


def run(args: argparse.Namespace, bundle: ServiceBundle) -> int:
    if args.command == "upload":
        options = UploadOptions(
            content_type=args.content_type,
            metadata=_parse_metadata(args.metadata),
        )
        completed = bundle.upload().upload_file(
            args.path, args.object_key, part_size=args.part_size, options=options
        )
        print(f"Uploaded {completed.object_key} etag={completed.etag}")
    elif args.command == "download":
        written = bundle.download().download_file(
            args.object_key, args.path, chunk_size=args.chunk_size
        )
        print(f"Downloaded {written} bytes to {args.path}")
    elif args.command == "copy":
        completed = bundle.copy().copy_object(
            args.source_key, args.target_key, part_size=args.part_size
        )
        print(f"Copied to {completed.object_key} etag={completed.etag}")
    elif args.command == "list-uploads":
        for upload in bundle.client.list_pending_uploads(prefix=args.prefix):
            initiated = upload.initiated.isoformat() if upload.initiated else "-"
            print(f"{upload.object_key}\t{upload.upload_id}\t{initiated}")
    elif args.command == "list-parts":
        handle = SessionHandle(upload_id=args.upload_id, object_key=args.object_key)
        for part in bundle.client.list_parts(handle):
            print(f"{part.part_number}\t{part.etag}")
    elif args.command == "abort":
        handle = SessionHandle(upload_id=args.upload_id, object_key=args.object_key)
        bundle.client.abort_session(handle)
        print(f"Aborted {args.upload_id}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()
    setup_logging(json_output=settings.LOG_JSON)
    try:
        bundle = get_service_bundle(settings, bucket=args.bucket)
        return run(args, bundle)
    except (TransferServiceError, StorageError, argparse.ArgumentTypeError) as exc:
        logger.error("command_failed command=%s error=%s", args.command, exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
