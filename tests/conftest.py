from __future__ import annotations

import pytest

from parttransfer.common.config import Settings
from tests.services.mock_storage import MockSessionClient


@pytest.fixture()
def settings() -> Settings:
    """Settings with unit-sized bounds so plans stay small in tests."""
    return Settings(
        S3_BUCKET="test-bucket",
        PART_SIZE_MIN_BYTES=1,
        PART_SIZE_MAX_BYTES=1024,
        DEFAULT_PART_SIZE_BYTES=100,
        IO_BUFFER_SIZE=16,
        TRANSFER_WORKERS=1,
    )


@pytest.fixture()
def mock_client() -> MockSessionClient:
    return MockSessionClient()


@pytest.fixture()
def source_file(tmp_path):
    """A 250 byte file whose content identifies each offset."""
    path = tmp_path / "source.bin"
    path.write_bytes(bytes(i % 251 for i in range(250)))
    return path
