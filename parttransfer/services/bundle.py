from __future__ import annotations

from dataclasses import dataclass, field

from parttransfer.common.config import Settings
from parttransfer.infra.storage.client import SessionClient
from parttransfer.infra.storage.s3_client import S3SessionClient

from .copy_service import CopyService
from .download_service import DownloadService
from .upload_service import UploadService


@dataclass
class ServiceBundle:
    """Lazily constructs transfer services sharing the same session client."""

    client: SessionClient
    settings: Settings
    _upload: UploadService | None = field(default=None, init=False, repr=False)
    _download: DownloadService | None = field(default=None, init=False, repr=False)
    _copy: CopyService | None = field(default=None, init=False, repr=False)

    def upload(self) -> UploadService:
        if self._upload is None:
            self._upload = UploadService(self.client, settings=self.settings)
        return self._upload

    def download(self) -> DownloadService:
        if self._download is None:
            self._download = DownloadService(self.client, settings=self.settings)
        return self._download

    def copy(self) -> CopyService:
        if self._copy is None:
            self._copy = CopyService(self.client, settings=self.settings)
        return self._copy


def get_service_bundle(
    settings: Settings, *, bucket: str | None = None
) -> ServiceBundle:
    client = S3SessionClient(settings=settings, bucket=bucket)
    return ServiceBundle(client=client, settings=settings)
