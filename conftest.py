"""Shared fixtures: every test gets its own data directory under tmp_path."""

from decimal import Decimal
from pathlib import Path

import pytest

from cmcs.models.claim import Claim
from cmcs.services.data_context import ClaimsData
from cmcs.utils.config import Config, FilePolicyConfig, LoggingConfig, StorageConfig


LECTURER_EMAIL = "lecturer@uni.ac.za"
MANAGER_EMAIL = "manager@uni.ac.za"


@pytest.fixture
def config(tmp_path):
    return Config(
        storage=StorageConfig(data_dir=str(tmp_path / "data")),
        file_policy=FilePolicyConfig(),
        logging=LoggingConfig(level="DEBUG"),
    )


@pytest.fixture
def data(config):
    return ClaimsData.from_config(config)


@pytest.fixture
def claims(data):
    return data.claims


@pytest.fixture
def notifications(data):
    return data.notifications


@pytest.fixture
def files(data):
    return data.files


@pytest.fixture
def workflow(data):
    return data.workflow


@pytest.fixture
def make_claim():
    """Factory for unsaved claims: 10 hours at 450.00 unless overridden."""
    def _make(**overrides):
        values = dict(
            lecturer_email=LECTURER_EMAIL,
            lecturer_name="Thandi Mokoena",
            hours=10,
            hourly_rate=Decimal("450.00"),
            assigned_manager_email=MANAGER_EMAIL,
            assigned_manager_name="Dr Pillay",
            description="Second semester tutorials",
        )
        values.update(overrides)
        return Claim(**values)
    return _make


@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def make_upload(upload_dir):
    """Factory writing a file the user could select for upload."""
    def _make(name: str, content: bytes = b"timesheet", size: int = None) -> Path:
        path = upload_dir / name
        if size is None:
            path.write_bytes(content)
        else:
            # sparse file, so size checks cost no disk space
            with open(path, "wb") as f:
                f.truncate(size)
        return path
    return _make
