"""JSON-file record store shared by the claim, notification, user and file containers."""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Generic, Iterable, List, TypeVar, Union

from ..utils.errors import RecordStoreError, handle_record_store_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


class JsonRecordStore(Generic[T]):
    """
    Persists an ordered list of records as one human-readable JSON array.

    Every save replaces the whole container. Mutating callers follow
    load-modify-save and hold ``lock`` for the whole sequence so that
    in-process writers are serialized.

    Attributes:
        name: Logical store name used in logs and errors
        path: Container file path
        critical: Whether save failures are raised to the caller
        lock: Re-entrant lock guarding load-modify-save sequences
        load_failed: True when the most recent load degraded to an empty
            collection because the container could not be read
    """

    def __init__(
        self,
        path: Union[str, Path],
        decode: Callable[[Dict[str, Any]], T],
        encode: Callable[[T], Dict[str, Any]],
        name: str = "records",
        critical: bool = True
    ):
        """
        Initialize JsonRecordStore.

        Args:
            path: Container file path (created on first save)
            decode: Builds a record from one JSON object
            encode: Turns a record into one JSON object
            name: Logical store name
            critical: Raise RecordStoreError when a save fails
        """
        self.path = Path(path)
        self.name = name
        self.critical = critical
        self.lock = threading.RLock()
        self.load_failed = False
        self._decode = decode
        self._encode = encode

        logger.debug(f"Initialized JsonRecordStore: name={name}, path={self.path}")

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> List[T]:
        """
        Load all records from the container.

        Returns:
            Records in stored order. Empty when the container is missing,
            unreadable, not a JSON array, or holds a malformed record.
        """
        if not self.path.exists():
            logger.debug(f"No {self.name} container at {self.path}, starting empty")
            self.load_failed = False
            return []

        try:
            with open(self.path, 'r', encoding='utf-8-sig') as f:
                raw = json.load(f)

            if raw is None:
                self.load_failed = False
                return []
            if not isinstance(raw, list):
                raise ValueError(f"expected a JSON array, found {type(raw).__name__}")

            records = [self._decode(item) for item in raw]
            self.load_failed = False
            logger.debug(f"Loaded {len(records)} {self.name} from {self.path}")
            return records

        except (OSError, ValueError, TypeError, KeyError, AttributeError, ArithmeticError) as e:
            store_error = RecordStoreError.load_failed(self.name, str(self.path), e)
            logger.warning(f"Degraded load: {store_error}")
            self.load_failed = True
            return []

    def save(self, records: Iterable[T]) -> bool:
        """
        Serialize the full record sequence and replace the container.

        Args:
            records: Complete collection to persist

        Returns:
            True on success, False when a non-critical save failed

        Raises:
            RecordStoreError: If the save failed and the store is critical
        """
        payload = [self._encode(record) for record in records]

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                dir=str(self.path.parent)
            )
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(payload, f, indent=2, ensure_ascii=False)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.remove(tmp_name)
                raise

            logger.debug(f"Saved {len(payload)} {self.name} to {self.path}")
            return True

        except (OSError, TypeError, ValueError) as e:
            handle_record_store_error(
                error=e,
                store_name=self.name,
                path=str(self.path),
                logger=logger,
                critical=self.critical
            )
            return False
