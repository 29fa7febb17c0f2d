from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Union
import logging
import threading

from taxstore.core.config import settings
from taxstore.core.errors import DuplicateKeyError, NotFoundError, ValidationError
from taxstore.db.tax_file import TaxFile
from taxstore.schemas.tax import TaxRecord

logger = logging.getLogger(__name__)

FORBIDDEN_CHARS = (",", "\n", "\r")

class TaxRepository(ABC):
    @abstractmethod
    def get_by_key(self, key: str) -> Optional[TaxRecord]:
        pass

    @abstractmethod
    def get_all(self) -> List[TaxRecord]:
        pass

    @abstractmethod
    def insert(self, record: TaxRecord) -> TaxRecord:
        pass

    @abstractmethod
    def update(self, record: TaxRecord) -> bool:
        pass

    @abstractmethod
    def remove_by_key(self, key: str) -> bool:
        pass

class TaxStore(TaxRepository):
    """
    Tax records indexed by region key, mirrored to a flat file.

    Policies:
    - Construction loads the file and fails with PersistenceError if it is
      missing or unreadable.
    - Reads answer from memory; the file is only re-read by ``reload()``.
    - ``insert`` is strict: an existing key raises DuplicateKeyError.
    - ``update`` raises NotFoundError for a key that is not stored.

    Every mutation rewrites the whole file. When that commit fails the
    PersistenceError propagates but the in-memory change is kept, so memory
    and file can differ until the next successful commit.
    """

    def __init__(self, file_path: Union[str, Path, None] = None, *, tax_file: Optional[TaxFile] = None):
        self._file = tax_file or TaxFile(file_path or settings.TAX_FILE_PATH)
        self._taxes: Dict[str, TaxRecord] = {}
        # Guards the mapping and the backing file as one unit
        self._lock = threading.RLock()
        self.reload()

    @property
    def path(self) -> Path:
        return self._file.path

    def reload(self) -> None:
        with self._lock:
            loaded = self._file.load()
            self._taxes.clear()
            for record in loaded:
                self._taxes[record.region_key] = record

    def get_by_key(self, key: str) -> Optional[TaxRecord]:
        with self._lock:
            record = self._taxes.get(key)
        if record is None:
            logger.info(f"Region not found: {key}")
        return record

    def get_all(self) -> List[TaxRecord]:
        with self._lock:
            return list(self._taxes.values())

    def insert(self, record: TaxRecord) -> TaxRecord:
        self._validate(record)
        with self._lock:
            if record.region_key in self._taxes:
                raise DuplicateKeyError(record.region_key)
            self._taxes[record.region_key] = record
            self._commit()
        return record

    def update(self, record: TaxRecord) -> bool:
        self._validate(record)
        with self._lock:
            if record.region_key not in self._taxes:
                raise NotFoundError(record.region_key)
            self._taxes[record.region_key] = record
            self._commit()
        return True

    def remove_by_key(self, key: str) -> bool:
        with self._lock:
            if key not in self._taxes:
                return False
            del self._taxes[key]
            self._commit()
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._taxes)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._taxes

    def _validate(self, record: Optional[TaxRecord]) -> None:
        if record is None:
            raise ValidationError("Tax data is invalid: no record given.")
        if not record.region_key or not record.region_key.strip():
            raise ValidationError("Tax data is invalid: region key is empty.")
        if not record.region_name or not record.region_name.strip():
            raise ValidationError(f"Tax data is invalid: region name is empty for '{record.region_key}'.")
        # The file has no escaping, so these would split or drop the line on reload
        for field in (record.region_key, record.region_name):
            if any(c in field for c in FORBIDDEN_CHARS):
                raise ValidationError(f"Tax data is invalid: {field!r} contains a comma or line break.")

    def _commit(self) -> None:
        # Memory is not rolled back if this raises
        self._file.save(self._taxes.values())
