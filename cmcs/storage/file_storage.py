"""Claim document storage and the file registry that tracks it."""

import logging
import shutil
import uuid
from collections import Counter
from pathlib import Path
from typing import Iterable, List, Optional, Union

from ..models.file_entry import FileCategory, FileRegistryEntry, StorageStats
from ..utils.config import FilePolicyConfig
from ..utils.errors import (
    ClaimsDataError,
    ClaimValidationError,
    FileStorageError,
    FileValidationError,
)
from ..utils.time_utils import now
from .claim_repository import ClaimRepository
from .record_store import JsonRecordStore

logger = logging.getLogger(__name__)


class FileRegistry:
    """
    Stores claim documents on disk and keeps a registry of them.

    Layout: one sub-directory per claim id under ``documents_dir``; each
    stored file gets a timestamp suffix so re-uploads of the same name do
    not clash.

    Provides methods for:
    - Validating files against the type/size policy
    - Saving single files or batches for a claim
    - Deleting single files, a claim's files, or orphaned files
    - Registry lookups and storage statistics
    """

    def __init__(
        self,
        documents_dir: Union[str, Path],
        registry: Union[JsonRecordStore, str, Path],
        claims: ClaimRepository,
        file_policy: Optional[FilePolicyConfig] = None
    ):
        """
        Initialize FileRegistry.

        Args:
            documents_dir: Root directory holding one folder per claim
            registry: File registry record store, or path to its container
            claims: Claim repository used for orphan detection
            file_policy: Allowed extensions and size caps (defaults apply if omitted)
        """
        if not isinstance(registry, JsonRecordStore):
            registry = JsonRecordStore(
                registry,
                decode=FileRegistryEntry.from_dict,
                encode=FileRegistryEntry.to_dict,
                name="file registry",
                critical=True
            )
        self.registry = registry
        self.documents_dir = Path(documents_dir)
        self.claims = claims
        self.policy = file_policy or FilePolicyConfig()

        self.documents_dir.mkdir(parents=True, exist_ok=True)

        logger.info(
            f"Initialized FileRegistry: "
            f"documents_dir={self.documents_dir}, "
            f"registry={self.registry.path}"
        )

    # Validation methods

    def get_file_category(self, extension: str) -> str:
        """
        Map an extension to its file category.

        Args:
            extension: Extension with or without leading dot, any case

        Returns:
            "Document", "Image" or "Unknown"
        """
        ext = extension.lower()
        if ext and not ext.startswith("."):
            ext = f".{ext}"

        if ext in self.policy.document_extensions:
            return FileCategory.DOCUMENT.value
        if ext in self.policy.image_extensions:
            return FileCategory.IMAGE.value
        return FileCategory.UNKNOWN.value

    def validate_file(self, file_path: Union[str, Path]) -> str:
        """
        Check a file against the storage policy.

        Args:
            file_path: File selected for upload

        Returns:
            The file's category

        Raises:
            FileValidationError: If the file is missing, of a disallowed
                type, or larger than its category allows
        """
        path = Path(file_path)
        if not path.is_file():
            raise FileValidationError.not_found(str(path))

        extension = path.suffix.lower()
        category = self.get_file_category(extension)

        if category == FileCategory.UNKNOWN.value:
            raise FileValidationError.type_not_allowed(
                filename=path.name,
                extension=extension,
                allowed=self.policy.document_extensions + self.policy.image_extensions
            )

        size = path.stat().st_size

        if category == FileCategory.DOCUMENT.value and size > self.policy.max_document_size_bytes:
            raise FileValidationError.size_exceeded(
                filename=path.name,
                category=category,
                size_bytes=size,
                limit_mb=self.policy.max_document_size_mb
            )

        if category == FileCategory.IMAGE.value and size > self.policy.max_image_size_bytes:
            raise FileValidationError.size_exceeded(
                filename=path.name,
                category=category,
                size_bytes=size,
                limit_mb=self.policy.max_image_size_mb
            )

        return category

    # Save methods

    def get_claim_dir(self, claim_id: str) -> Path:
        """
        Get the directory path for a specific claim.

        Raises:
            ClaimValidationError: If the claim id cannot be used as a folder name
        """
        if not claim_id or claim_id in (".", "..") or "/" in claim_id or "\\" in claim_id:
            raise ClaimValidationError.invalid_field(
                "claim_id", f"'{claim_id}' is not usable as a storage folder"
            )
        return self.documents_dir / claim_id

    def save_file(self, source_path: Union[str, Path], claim_id: str) -> str:
        """
        Validate, copy and register one document for a claim.

        Args:
            source_path: File selected by the user
            claim_id: Claim the file belongs to

        Returns:
            Storage path of the stored copy

        Raises:
            FileValidationError: If the file fails the storage policy
            FileStorageError: If the copy fails
            RecordStoreError: If the registry cannot be written
        """
        source = Path(source_path)
        category = self.validate_file(source)
        claim_dir = self.get_claim_dir(claim_id)

        timestamp = now()

        with self.registry.lock:
            destination = self._unique_destination(claim_dir, source, timestamp)

            try:
                claim_dir.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(source, destination)
                size = source.stat().st_size
            except OSError as e:
                logger.error(f"Failed to store {source.name} for claim {claim_id}: {str(e)}")
                raise FileStorageError.save_failed(source.name, claim_id, e) from e

            entry = FileRegistryEntry(
                file_id=str(uuid.uuid4()),
                claim_id=claim_id,
                original_file_name=source.name,
                stored_file_name=destination.name,
                storage_path=str(destination),
                file_size=size,
                upload_date=timestamp,
                file_type=category,
            )

            try:
                self._register(entry)
            except ClaimsDataError:
                # an unregistered copy would never be cleaned up
                destination.unlink(missing_ok=True)
                raise

        logger.info(f"Saved file: {destination} ({size} bytes) for claim {claim_id}")
        return str(destination)

    def save_multiple_files(
        self,
        source_paths: Iterable[Union[str, Path]],
        claim_id: str
    ) -> List[str]:
        """
        Save several files for a claim, skipping any that fail.

        Args:
            source_paths: Files selected by the user
            claim_id: Claim the files belong to

        Returns:
            Storage paths of the files that were saved, in input order
        """
        saved_paths: List[str] = []

        for source_path in source_paths:
            try:
                saved_paths.append(self.save_file(source_path, claim_id))
            except ClaimsDataError as e:
                logger.warning(f"Failed to save file {source_path}: {e.user_message}")

        logger.info(f"Saved {len(saved_paths)} file(s) for claim {claim_id}")
        return saved_paths

    # Lookup methods

    def get_claim_files(self, claim_id: str) -> List[FileRegistryEntry]:
        return [f for f in self.registry.load() if f.claim_id == claim_id]

    def get_file(self, file_id: str) -> Optional[FileRegistryEntry]:
        for entry in self.registry.load():
            if entry.file_id == file_id:
                return entry
        return None

    def get_file_by_path(self, storage_path: Union[str, Path]) -> Optional[FileRegistryEntry]:
        """Find the entry for a path recorded in a claim's attached documents."""
        target = str(storage_path)
        for entry in self.registry.load():
            if entry.storage_path == target:
                return entry
        return None

    def resolve_file_path(self, file_id: str) -> Path:
        """
        Get the on-disk path of a registered file for viewing.

        Raises:
            FileValidationError: If the entry or the stored file is missing
        """
        entry = self.get_file(file_id)
        if entry is None:
            raise FileValidationError.not_found(file_id)

        path = Path(entry.storage_path)
        if not path.is_file():
            raise FileValidationError.not_found(entry.storage_path)
        return path

    # Delete methods

    def delete_file(self, file_id: str) -> bool:
        """
        Remove a stored file and its registry entry.

        Args:
            file_id: Registry id of the file

        Returns:
            True if a registry entry was found and removed

        Raises:
            FileStorageError: If the stored file exists but cannot be removed
                (the registry entry is kept)
        """
        with self.registry.lock:
            entries = self.registry.load()
            entry = next((e for e in entries if e.file_id == file_id), None)
            if entry is None:
                logger.debug(f"Delete skipped, file {file_id} not registered")
                return False

            path = Path(entry.storage_path)
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.error(f"Failed to delete {path}: {str(e)}")
                raise FileStorageError.delete_failed(file_id, str(path), e) from e

            entries.remove(entry)
            self.registry.save(entries)

        logger.info(f"Deleted file {file_id} ({entry.original_file_name}) of claim {entry.claim_id}")
        return True

    def delete_claim_files(self, claim_id: str) -> int:
        """
        Delete every file registered for a claim, then its empty folder.

        Args:
            claim_id: Claim whose files are removed

        Returns:
            Number of files removed
        """
        deleted_count = 0

        for entry in self.get_claim_files(claim_id):
            try:
                if self.delete_file(entry.file_id):
                    deleted_count += 1
            except FileStorageError as e:
                logger.warning(f"Skipping file during claim cleanup: {e.user_message}")

        self._remove_empty_claim_dir(claim_id)

        logger.info(f"Deleted {deleted_count} file(s) for claim {claim_id}")
        return deleted_count

    def cleanup_orphaned_files(self) -> int:
        """
        Delete registry entries (and files) whose claim no longer exists.

        Skipped entirely when the claims container could not be read,
        since every file would otherwise look orphaned.

        Returns:
            Number of files removed
        """
        claims = self.claims.load()
        if self.claims.store.load_failed:
            logger.warning("Orphan cleanup skipped: claims container could not be loaded")
            return 0

        valid_claim_ids = {c.claim_id for c in claims}
        orphaned = [e for e in self.registry.load() if e.claim_id not in valid_claim_ids]

        cleaned_count = 0
        for entry in orphaned:
            try:
                if self.delete_file(entry.file_id):
                    cleaned_count += 1
            except FileStorageError as e:
                logger.warning(f"Orphan left in place: {e.user_message}")

        for claim_id in {e.claim_id for e in orphaned}:
            self._remove_empty_claim_dir(claim_id)

        logger.info(f"Cleanup completed: removed {cleaned_count} orphaned file(s)")
        return cleaned_count

    # Utility methods

    def get_storage_statistics(self) -> StorageStats:
        """
        Get statistics about the registered files.

        Returns:
            StorageStats with totals and per-category / per-claim counts
        """
        entries = self.registry.load()

        return StorageStats(
            total_files=len(entries),
            total_size_bytes=sum(e.file_size for e in entries),
            files_by_type=dict(Counter(e.file_type for e in entries)),
            files_by_claim=dict(Counter(e.claim_id for e in entries)),
        )

    def _unique_destination(self, claim_dir: Path, source: Path, timestamp) -> Path:
        """
        Pick "{stem}_{yyyyMMddHHmmss}{ext}", adding "_2", "_3", ... while that
        name is already on disk or in the registry. Caller holds the registry lock.
        """
        base = f"{source.stem}_{timestamp:%Y%m%d%H%M%S}"
        registered = {e.storage_path for e in self.registry.load()}

        candidate = claim_dir / f"{base}{source.suffix}"
        counter = 2
        while candidate.exists() or str(candidate) in registered:
            candidate = claim_dir / f"{base}_{counter}{source.suffix}"
            counter += 1
        return candidate

    def _register(self, entry: FileRegistryEntry) -> None:
        with self.registry.lock:
            entries = self.registry.load()
            entries.append(entry)
            self.registry.save(entries)

    def _remove_empty_claim_dir(self, claim_id: str) -> None:
        try:
            claim_dir = self.get_claim_dir(claim_id)
        except ClaimValidationError:
            return

        if claim_dir.is_dir() and not any(claim_dir.iterdir()):
            try:
                claim_dir.rmdir()
                logger.debug(f"Removed empty claim directory: {claim_dir}")
            except OSError as e:
                logger.warning(f"Could not remove {claim_dir}: {str(e)}")
