from .base import BaseTransferService, SessionRun, SessionState
from .bundle import ServiceBundle, get_service_bundle
from .copy_service import CopyService
from .download_service import DownloadService
from .upload_service import UploadService

__all__ = [
    "BaseTransferService",
    "CopyService",
    "DownloadService",
    "ServiceBundle",
    "SessionRun",
    "SessionState",
    "UploadService",
    "get_service_bundle",
]
