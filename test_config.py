"""Tests for configuration loading."""

from pathlib import Path

import pytest

from cmcs.utils.config import Config
from cmcs.utils.errors import ConfigurationError, ErrorType


ENV_VARS = [
    "CMCS_DATA_DIR",
    "CMCS_DOCUMENTS_DIR",
    "CMCS_MAX_DOCUMENT_MB",
    "CMCS_MAX_IMAGE_MB",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def write_config(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_repository_config_file_loads():
    config = Config.load(str(Path(__file__).parent / "config.yaml"))

    assert config.storage.claims_file == "claims.json"
    assert config.file_policy.max_document_size_mb == 50
    assert config.file_policy.max_image_size_mb == 10
    assert ".pdf" in config.file_policy.document_extensions
    assert config.logging.level == "INFO"


def test_defaults():
    config = Config.default()

    assert config.storage.claims_path == Path("claims.json")
    assert config.storage.documents_path == Path("ClaimDocuments")
    assert config.file_policy.max_document_size_bytes == 50 * 1024 * 1024
    assert config.file_policy.max_image_size_bytes == 10 * 1024 * 1024
    assert config.logging.file == ""


def test_paths_resolve_against_data_dir(tmp_path):
    path = write_config(tmp_path, f"""
storage:
  data_dir: "{tmp_path}"
  claims_file: "store/claims.json"
  documents_dir: "{tmp_path / 'docs'}"
""")

    config = Config.load(path)

    assert config.storage.claims_path == tmp_path / "store" / "claims.json"
    assert config.storage.notifications_path == tmp_path / "notifications.json"
    assert config.storage.documents_path == tmp_path / "docs"


def test_extensions_are_normalized(tmp_path):
    path = write_config(tmp_path, """
file_policy:
  document_extensions: ["PDF", ".Docx", "pdf"]
  image_extensions: ["png"]
""")

    config = Config.load(path)

    assert config.file_policy.document_extensions == [".pdf", ".docx"]
    assert config.file_policy.image_extensions == [".png"]


def test_environment_overrides_file(tmp_path, monkeypatch):
    path = write_config(tmp_path, """
storage:
  data_dir: "from-file"
file_policy:
  max_document_size_mb: 20
logging:
  level: "WARNING"
""")
    monkeypatch.setenv("CMCS_DATA_DIR", str(tmp_path / "from-env"))
    monkeypatch.setenv("CMCS_MAX_DOCUMENT_MB", "75")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    config = Config.load(path)

    assert config.storage.data_dir == str(tmp_path / "from-env")
    assert config.file_policy.max_document_size_mb == 75
    assert config.logging.level == "DEBUG"


def test_empty_file_uses_defaults(tmp_path):
    config = Config.load(write_config(tmp_path, ""))

    assert config.storage.claims_file == "claims.json"
    assert config.file_policy.max_document_size_mb == 50


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError) as exc_info:
        Config.load(str(tmp_path / "absent.yaml"))

    assert exc_info.value.error_type == ErrorType.CONFIG_MISSING


@pytest.mark.parametrize(
    "text",
    [
        "storage: [unclosed",
        "- just\n- a list\n",
        "file_policy:\n  max_document_size_mb: lots\n",
        "file_policy:\n  image_extensions: .png\n",
    ],
)
def test_invalid_file(tmp_path, text):
    with pytest.raises(ConfigurationError) as exc_info:
        Config.load(write_config(tmp_path, text))

    assert exc_info.value.error_type == ErrorType.CONFIG_INVALID
