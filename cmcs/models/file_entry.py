"""Stored document registry models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from ..utils.formatting import format_file_size
from ..utils.time_utils import format_timestamp, parse_timestamp


class FileCategory(str, Enum):
    """Category derived from a stored file's extension."""
    DOCUMENT = "Document"
    IMAGE = "Image"
    UNKNOWN = "Unknown"


@dataclass
class FileRegistryEntry:
    """
    Metadata for one document stored under a claim.

    Attributes:
        file_id: Globally unique token (uuid4 string)
        claim_id: Owning claim; entries whose claim is gone are orphans
        original_file_name: Name of the file the user selected
        stored_file_name: Name on disk, "{stem}_{yyyyMMddHHmmss}{ext}"
        storage_path: Full path of the stored copy
        file_size: Size in bytes at upload time
        upload_date: When the file was registered
        file_type: One of the FileCategory values
    """
    file_id: str
    claim_id: str
    original_file_name: str
    stored_file_name: str
    storage_path: str
    file_size: int
    upload_date: Optional[datetime] = None
    file_type: str = FileCategory.UNKNOWN.value

    def __post_init__(self):
        if isinstance(self.file_type, FileCategory):
            self.file_type = self.file_type.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "FileId": self.file_id,
            "ClaimId": self.claim_id,
            "OriginalFileName": self.original_file_name,
            "StoredFileName": self.stored_file_name,
            "StoragePath": self.storage_path,
            "FileSize": self.file_size,
            "UploadDate": format_timestamp(self.upload_date),
            "FileType": self.file_type,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileRegistryEntry":
        return cls(
            file_id=data["FileId"],
            claim_id=data.get("ClaimId") or "",
            original_file_name=data.get("OriginalFileName") or "",
            stored_file_name=data.get("StoredFileName") or "",
            storage_path=data.get("StoragePath") or "",
            file_size=int(data.get("FileSize") or 0),
            upload_date=parse_timestamp(data.get("UploadDate")),
            file_type=data.get("FileType") or FileCategory.UNKNOWN.value,
        )


@dataclass
class StorageStats:
    """Aggregate view of the file registry."""
    total_files: int = 0
    total_size_bytes: int = 0
    files_by_type: Dict[str, int] = field(default_factory=dict)
    files_by_claim: Dict[str, int] = field(default_factory=dict)

    @property
    def total_size_formatted(self) -> str:
        return format_file_size(self.total_size_bytes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_files": self.total_files,
            "total_size_bytes": self.total_size_bytes,
            "total_size_formatted": self.total_size_formatted,
            "files_by_type": dict(self.files_by_type),
            "files_by_claim": dict(self.files_by_claim),
        }
