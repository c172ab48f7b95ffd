from __future__ import annotations

import pytest
from prometheus_client import REGISTRY

from parttransfer.common.errors import TransferError
from parttransfer.services.download_service import DownloadService
from parttransfer.services.upload_service import UploadService


def _sample(name: str, **labels: str) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


def test_upload_counts_parts_bytes_and_session(mock_client, settings, source_file):
    parts_before = _sample("transfer_parts_total", direction="upload", outcome="ok")
    bytes_before = _sample("transfer_bytes_total", direction="upload")
    sessions_before = _sample("transfer_sessions_total", outcome="completed")

    UploadService(mock_client, settings=settings).upload_file(
        source_file, "data.bin", part_size=100
    )

    assert _sample("transfer_parts_total", direction="upload", outcome="ok") == parts_before + 3
    assert _sample("transfer_bytes_total", direction="upload") == bytes_before + 250
    assert _sample("transfer_sessions_total", outcome="completed") == sessions_before + 1


def test_aborted_session_is_counted(mock_client, settings, source_file):
    aborted_before = _sample("transfer_sessions_total", outcome="aborted")
    errors_before = _sample("transfer_parts_total", direction="upload", outcome="error")
    mock_client.fail_parts = {1}

    with pytest.raises(TransferError):
        UploadService(mock_client, settings=settings).upload_file(
            source_file, "data.bin", part_size=100
        )

    assert _sample("transfer_sessions_total", outcome="aborted") == aborted_before + 1
    assert (
        _sample("transfer_parts_total", direction="upload", outcome="error")
        == errors_before + 1
    )


def test_download_counts_ranges(mock_client, settings, tmp_path):
    mock_client.objects["obj"] = b"q" * 250
    before = _sample("transfer_parts_total", direction="download", outcome="ok")

    DownloadService(mock_client, settings=settings).download_file(
        "obj", tmp_path / "out", chunk_size=100
    )

    assert _sample("transfer_parts_total", direction="download", outcome="ok") == before + 3
