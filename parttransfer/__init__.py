"""Multipart upload, range-copy and ranged download for S3-compatible storage."""

__version__ = "0.1.0"
