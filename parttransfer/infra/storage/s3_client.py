"""S3-compatible session client implementation.

This module provides a multipart session client that works with
AWS S3, MinIO, and other S3-compatible object storage services.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, BinaryIO, Sequence
from urllib.parse import unquote_plus

from botocore.exceptions import ClientError

from parttransfer.domain.part_set import finalize_parts
from parttransfer.infra.storage.client import (
    ByteRange,
    CompletedObject,
    CopyConditions,
    ObjectMetadata,
    ObjectNotFoundError,
    PartResult,
    PendingUpload,
    ReadOptions,
    SessionHandle,
    StorageError,
    UploadOptions,
)

if TYPE_CHECKING:
    from parttransfer.common.config import Settings

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})

# Page size requested from the listing calls
_LIST_PAGE_SIZE = 1000


def _is_not_found(exc: Exception) -> bool:
    if not isinstance(exc, ClientError):
        return False
    code = str(exc.response.get("Error", {}).get("Code", ""))
    return code in _NOT_FOUND_CODES


def _upload_params(options: UploadOptions) -> dict[str, Any]:
    params: dict[str, Any] = {}
    if options.content_type:
        params["ContentType"] = options.content_type
    if options.metadata:
        params["Metadata"] = dict(options.metadata)
    if options.cache_control:
        params["CacheControl"] = options.cache_control
    if options.content_disposition:
        params["ContentDisposition"] = options.content_disposition
    if options.content_encoding:
        params["ContentEncoding"] = options.content_encoding
    if options.expires is not None:
        params["Expires"] = options.expires
    if options.server_side_encryption:
        params["ServerSideEncryption"] = options.server_side_encryption
    return params


def _condition_params(
    conditions: ReadOptions | CopyConditions | None, *, prefix: str = ""
) -> dict[str, Any]:
    if conditions is None:
        return {}
    params: dict[str, Any] = {}
    if conditions.if_match:
        params[f"{prefix}IfMatch"] = conditions.if_match
    if conditions.if_none_match:
        params[f"{prefix}IfNoneMatch"] = conditions.if_none_match
    if conditions.if_modified_since is not None:
        params[f"{prefix}IfModifiedSince"] = conditions.if_modified_since
    if conditions.if_unmodified_since is not None:
        params[f"{prefix}IfUnmodifiedSince"] = conditions.if_unmodified_since
    return params


class S3SessionClient:
    """S3-compatible multipart session client bound to a single bucket.

    Supports AWS S3, MinIO, and other S3-compatible services.
    Uses boto3 for all storage operations.
    """

    def __init__(self, *, settings: "Settings", bucket: str | None = None) -> None:
        """Initialize the S3 client with configuration from settings.

        Args:
            settings: Settings containing S3 configuration.
            bucket: Bucket to operate on; defaults to ``settings.S3_BUCKET``.

        Raises:
            StorageError: If no bucket is configured or boto3 is not installed.
        """
        self._settings = settings
        self._bucket = bucket or settings.S3_BUCKET
        if not self._bucket:
            raise StorageError("S3_BUCKET is required")
        self._client = self._build_client(settings)

    @property
    def bucket(self) -> str:
        return self._bucket

    @staticmethod
    def _build_client(settings: "Settings") -> Any:
        """Create a boto3 S3 client from settings."""
        try:
            import boto3
            from botocore.config import Config
        except ImportError as exc:
            raise StorageError(
                "boto3 and botocore are required for S3 storage backend. "
                "Install with: pip install boto3"
            ) from exc

        addressing_style = (settings.S3_ADDRESSING_STYLE or "path").strip().lower()
        config = Config(s3={"addressing_style": addressing_style})

        return boto3.client(
            "s3",
            endpoint_url=settings.S3_ENDPOINT_URL,
            region_name=settings.S3_REGION,
            aws_access_key_id=settings.S3_ACCESS_KEY_ID,
            aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY,
            use_ssl=bool(settings.S3_USE_SSL),
            config=config,
        )

    def open_session(
        self,
        object_key: str,
        options: UploadOptions | None = None,
    ) -> SessionHandle:
        """Initialize a multipart upload session."""
        params: dict[str, Any] = {"Bucket": self._bucket, "Key": object_key}
        params.update(_upload_params(options or UploadOptions()))

        try:
            response = self._client.create_multipart_upload(**params)
        except Exception as exc:
            raise StorageError(f"Failed to create multipart upload: {exc}") from exc

        upload_id = response.get("UploadId")
        if not upload_id:
            raise StorageError("S3 response missing UploadId")

        return SessionHandle(upload_id=str(upload_id), object_key=object_key)

    def upload_part(
        self,
        handle: SessionHandle,
        *,
        part_number: int,
        body: BinaryIO,
        size: int,
    ) -> PartResult:
        """Upload one part of a multipart session."""
        try:
            response = self._client.upload_part(
                Bucket=self._bucket,
                Key=handle.object_key,
                UploadId=handle.upload_id,
                PartNumber=int(part_number),
                Body=body,
                ContentLength=int(size),
            )
        except Exception as exc:
            raise StorageError(
                f"Failed to upload part {part_number}: {exc}"
            ) from exc

        etag = response.get("ETag")
        if not etag:
            raise StorageError(f"S3 response missing ETag for part {part_number}")
        return PartResult(part_number=int(part_number), etag=str(etag))

    def copy_part(
        self,
        handle: SessionHandle,
        *,
        part_number: int,
        source_key: str,
        source_range: ByteRange,
        conditions: CopyConditions | None = None,
    ) -> PartResult:
        """Copy a byte range of an object in the same bucket as one part."""
        params: dict[str, Any] = {
            "Bucket": self._bucket,
            "Key": handle.object_key,
            "UploadId": handle.upload_id,
            "PartNumber": int(part_number),
            "CopySource": {"Bucket": self._bucket, "Key": source_key},
            "CopySourceRange": source_range.as_header(),
        }
        params.update(_condition_params(conditions, prefix="CopySource"))

        try:
            response = self._client.upload_part_copy(**params)
        except Exception as exc:
            raise StorageError(f"Failed to copy part {part_number}: {exc}") from exc

        etag = (response.get("CopyPartResult") or {}).get("ETag")
        if not etag:
            raise StorageError(f"S3 response missing ETag for part {part_number}")
        return PartResult(part_number=int(part_number), etag=str(etag))

    def complete_session(
        self,
        handle: SessionHandle,
        parts: Sequence[PartResult],
    ) -> CompletedObject:
        """Complete a multipart upload by combining all parts."""
        multipart_payload = {
            "Parts": [
                {"ETag": part.etag, "PartNumber": int(part.part_number)}
                for part in finalize_parts(parts)
            ]
        }

        try:
            response = self._client.complete_multipart_upload(
                Bucket=self._bucket,
                Key=handle.object_key,
                UploadId=handle.upload_id,
                MultipartUpload=multipart_payload,
            )
        except Exception as exc:
            raise StorageError(f"Failed to complete multipart upload: {exc}") from exc

        return CompletedObject(
            object_key=handle.object_key,
            etag=response.get("ETag"),
            location=response.get("Location"),
        )

    def abort_session(self, handle: SessionHandle) -> None:
        """Abort a multipart upload and clean up uploaded parts."""
        try:
            self._client.abort_multipart_upload(
                Bucket=self._bucket,
                Key=handle.object_key,
                UploadId=handle.upload_id,
            )
        except Exception as exc:
            raise StorageError(f"Failed to abort multipart upload: {exc}") from exc

    def list_parts(self, handle: SessionHandle) -> list[PartResult]:
        """List the parts stored so far, following pagination markers."""
        parts: list[PartResult] = []
        marker = 0
        while True:
            try:
                response = self._client.list_parts(
                    Bucket=self._bucket,
                    Key=handle.object_key,
                    UploadId=handle.upload_id,
                    PartNumberMarker=marker,
                    MaxParts=_LIST_PAGE_SIZE,
                )
            except Exception as exc:
                raise StorageError(f"Failed to list parts: {exc}") from exc

            for item in response.get("Parts", []):
                parts.append(
                    PartResult(
                        part_number=int(item["PartNumber"]),
                        etag=str(item.get("ETag", "")),
                    )
                )
            if not response.get("IsTruncated"):
                break
            marker = int(response.get("NextPartNumberMarker") or 0)
        return parts

    def list_pending_uploads(self, prefix: str | None = None) -> list[PendingUpload]:
        """List in-progress multipart uploads in the bucket."""
        params: dict[str, Any] = {
            "Bucket": self._bucket,
            "EncodingType": "url",
            "MaxUploads": _LIST_PAGE_SIZE,
        }
        if prefix:
            params["Prefix"] = prefix

        uploads: list[PendingUpload] = []
        while True:
            try:
                response = self._client.list_multipart_uploads(**params)
            except Exception as exc:
                raise StorageError(f"Failed to list multipart uploads: {exc}") from exc

            for item in response.get("Uploads", []):
                uploads.append(
                    PendingUpload(
                        upload_id=str(item["UploadId"]),
                        # EncodingType=url form-encodes keys and markers
                        object_key=unquote_plus(str(item["Key"])),
                        initiated=item.get("Initiated"),
                    )
                )
            if not response.get("IsTruncated"):
                break
            next_key = str(response.get("NextKeyMarker", ""))
            params["KeyMarker"] = unquote_plus(next_key)
            params["UploadIdMarker"] = response.get("NextUploadIdMarker", "")
        return uploads

    def get_metadata(self, object_key: str) -> ObjectMetadata:
        """Get object metadata without downloading the content."""
        try:
            response = self._client.head_object(Bucket=self._bucket, Key=object_key)
        except Exception as exc:
            if _is_not_found(exc):
                raise ObjectNotFoundError(f"Object not found: {object_key}") from exc
            raise StorageError(f"Failed to get object metadata: {exc}") from exc

        size = response.get("ContentLength")
        headers = (response.get("ResponseMetadata") or {}).get("HTTPHeaders") or {}
        return ObjectMetadata(
            size_bytes=int(size) if size is not None else 0,
            etag=response.get("ETag"),
            content_type=response.get("ContentType"),
            headers=dict(headers),
        )

    def ranged_read(
        self,
        object_key: str,
        byte_range: ByteRange,
        options: ReadOptions | None = None,
    ) -> BinaryIO:
        """Open a streaming body over a byte range of an object."""
        params: dict[str, Any] = {
            "Bucket": self._bucket,
            "Key": object_key,
            "Range": byte_range.as_header(),
        }
        params.update(_condition_params(options))

        try:
            response = self._client.get_object(**params)
        except Exception as exc:
            if _is_not_found(exc):
                raise ObjectNotFoundError(f"Object not found: {object_key}") from exc
            raise StorageError(
                f"Failed to read range {byte_range.as_header()}: {exc}"
            ) from exc

        body = response.get("Body")
        if body is None:
            raise StorageError("S3 response missing Body")
        return body
