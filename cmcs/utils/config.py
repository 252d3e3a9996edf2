"""Configuration management for the claim data layer."""

import os
import yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from .errors import ConfigurationError
from .logging import DEFAULT_LOG_FORMAT


DEFAULT_DOCUMENT_EXTENSIONS = [".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx"]
DEFAULT_IMAGE_EXTENSIONS = [".jpg", ".jpeg", ".png", ".gif", ".bmp"]


@dataclass
class StorageConfig:
    """Locations of the JSON containers and the documents directory."""
    data_dir: str = "."
    claims_file: str = "claims.json"
    notifications_file: str = "notifications.json"
    users_file: str = "users.json"
    file_registry_file: str = "file_registry.json"
    documents_dir: str = "ClaimDocuments"

    def resolve(self, filename: str) -> Path:
        """Resolve a container or directory name against data_dir."""
        path = Path(filename)
        if path.is_absolute():
            return path
        return Path(self.data_dir) / path

    @property
    def claims_path(self) -> Path:
        return self.resolve(self.claims_file)

    @property
    def notifications_path(self) -> Path:
        return self.resolve(self.notifications_file)

    @property
    def users_path(self) -> Path:
        return self.resolve(self.users_file)

    @property
    def file_registry_path(self) -> Path:
        return self.resolve(self.file_registry_file)

    @property
    def documents_path(self) -> Path:
        return self.resolve(self.documents_dir)


@dataclass
class FilePolicyConfig:
    """Accepted attachment types and size caps."""
    max_document_size_mb: int = 50
    max_image_size_mb: int = 10
    document_extensions: List[str] = field(
        default_factory=lambda: list(DEFAULT_DOCUMENT_EXTENSIONS)
    )
    image_extensions: List[str] = field(
        default_factory=lambda: list(DEFAULT_IMAGE_EXTENSIONS)
    )

    @property
    def max_document_size_bytes(self) -> int:
        return self.max_document_size_mb * 1024 * 1024

    @property
    def max_image_size_bytes(self) -> int:
        return self.max_image_size_mb * 1024 * 1024


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = DEFAULT_LOG_FORMAT
    file: str = ""


@dataclass
class Config:
    """Main configuration class."""
    storage: StorageConfig
    file_policy: FilePolicyConfig
    logging: LoggingConfig

    @classmethod
    def default(cls) -> "Config":
        """Build a configuration from built-in defaults and the environment."""
        return cls._from_mapping({})

    @classmethod
    def load(cls, config_path: str = "config.yaml") -> "Config":
        """
        Load configuration from file and environment variables.

        Environment variables override config file values:
        - CMCS_DATA_DIR
        - CMCS_DOCUMENTS_DIR
        - CMCS_MAX_DOCUMENT_MB
        - CMCS_MAX_IMAGE_MB
        - LOG_LEVEL

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Config instance with loaded settings

        Raises:
            ConfigurationError: If the file is missing or not a YAML mapping
        """
        if not os.path.exists(config_path):
            raise ConfigurationError.missing(config_path)

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError.invalid(config_path, str(e)) from e

        if config_data is None:
            config_data = {}
        if not isinstance(config_data, dict):
            raise ConfigurationError.invalid(config_path, "top level must be a mapping")

        try:
            return cls._from_mapping(config_data)
        except (TypeError, ValueError) as e:
            raise ConfigurationError.invalid(config_path, str(e)) from e

    @classmethod
    def _from_mapping(cls, config_data: Dict[str, Any]) -> "Config":
        storage_data = config_data.get("storage", {}) or {}
        policy_data = config_data.get("file_policy", {}) or {}
        logging_data = config_data.get("logging", {}) or {}

        defaults = StorageConfig()
        storage_config = StorageConfig(
            data_dir=os.getenv("CMCS_DATA_DIR", storage_data.get("data_dir", defaults.data_dir)),
            claims_file=storage_data.get("claims_file", defaults.claims_file),
            notifications_file=storage_data.get("notifications_file", defaults.notifications_file),
            users_file=storage_data.get("users_file", defaults.users_file),
            file_registry_file=storage_data.get("file_registry_file", defaults.file_registry_file),
            documents_dir=os.getenv(
                "CMCS_DOCUMENTS_DIR",
                storage_data.get("documents_dir", defaults.documents_dir)
            ),
        )

        policy_defaults = FilePolicyConfig()
        file_policy_config = FilePolicyConfig(
            max_document_size_mb=int(os.getenv(
                "CMCS_MAX_DOCUMENT_MB",
                policy_data.get("max_document_size_mb", policy_defaults.max_document_size_mb)
            )),
            max_image_size_mb=int(os.getenv(
                "CMCS_MAX_IMAGE_MB",
                policy_data.get("max_image_size_mb", policy_defaults.max_image_size_mb)
            )),
            document_extensions=_normalize_extensions(
                policy_data.get("document_extensions", policy_defaults.document_extensions)
            ),
            image_extensions=_normalize_extensions(
                policy_data.get("image_extensions", policy_defaults.image_extensions)
            ),
        )

        logging_defaults = LoggingConfig()
        logging_config = LoggingConfig(
            level=os.getenv("LOG_LEVEL", logging_data.get("level", logging_defaults.level)),
            format=logging_data.get("format", logging_defaults.format),
            file=logging_data.get("file", logging_defaults.file) or "",
        )

        return cls(
            storage=storage_config,
            file_policy=file_policy_config,
            logging=logging_config,
        )


def _normalize_extensions(values: Any) -> List[str]:
    if not isinstance(values, (list, tuple)):
        raise ValueError("extension lists must be sequences")
    normalized: List[str] = []
    for value in values:
        text = str(value).strip().lower()
        if not text:
            continue
        if not text.startswith("."):
            text = f".{text}"
        if text not in normalized:
            normalized.append(text)
    return normalized
