# Flat-file persistence for tax records.
# The whole file is rewritten on every save; there is no incremental append.

import logging
import os
import re
import shutil
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Iterable, List, Optional, Union

from pydantic import ValidationError as RecordValidationError

from taxstore.core.config import settings
from taxstore.core.errors import PersistenceError
from taxstore.schemas.tax import TaxRecord

logger = logging.getLogger(__name__)

# Plain ASCII fixed-point only: no exponent, no underscores, no other scripts' digits
RATE_PATTERN = re.compile(r'^[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)$')

class TaxFile:
    """
    Reads and writes the comma-delimited tax file.

    Layout: one header line, then ``key,name,rate`` per line. Region names
    must not contain commas; nothing escapes them.
    """

    def __init__(
        self,
        path: Union[str, Path],
        *,
        backup_suffix: Optional[str] = None,
        header: Optional[str] = None,
        encoding: Optional[str] = None,
    ):
        self.path = Path(path)
        self.backup_suffix = backup_suffix if backup_suffix is not None else settings.TAX_FILE_BACKUP_SUFFIX
        self.header = header if header is not None else settings.TAX_FILE_HEADER
        self.encoding = encoding or settings.TAX_FILE_ENCODING

    @property
    def backup_path(self) -> Path:
        return self.path.with_name(self.path.name + self.backup_suffix)

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> List[TaxRecord]:
        records: List[TaxRecord] = []
        try:
            with self.path.open("r", encoding=self.encoding) as f:
                f.readline()  # header
                for line_no, line in enumerate(f, start=2):
                    record = self._parse_line(line, line_no)
                    if record is not None:
                        records.append(record)
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(f"Error reading taxes from {self.path}: {e}") from e

        logger.info(f"Loaded {len(records)} tax records from {self.path}")
        return records

    def _parse_line(self, line: str, line_no: int) -> Optional[TaxRecord]:
        parts = line.rstrip("\r\n").split(",")
        if len(parts) < 3:
            return None

        key = parts[0].strip()
        name = parts[1].strip()
        if not key:
            logger.warning(f"{self.path}:{line_no}: empty region key, skipping line: {line.strip()!r}")
            return None

        rate_text = parts[2].strip()
        if not RATE_PATTERN.match(rate_text):
            logger.warning(f"{self.path}:{line_no}: invalid tax rate, skipping line: {line.strip()!r}")
            return None

        try:
            rate = Decimal(rate_text)
        except InvalidOperation:
            logger.warning(f"{self.path}:{line_no}: invalid tax rate, skipping line: {line.strip()!r}")
            return None

        try:
            return TaxRecord(region_key=key, region_name=name, rate=rate)
        except RecordValidationError:
            logger.warning(f"{self.path}:{line_no}: invalid tax rate, skipping line: {line.strip()!r}")
            return None

    def save(self, records: Iterable[TaxRecord]) -> None:
        lines = [self.header] + [r.to_line() for r in records]
        # Encode up front so an unencodable record never truncates the file
        try:
            data = "".join(line + "\n" for line in lines).encode(self.encoding)
        except UnicodeEncodeError as e:
            raise PersistenceError(f"Cannot encode taxes for {self.path} as {self.encoding}: {e}") from e

        had_file = self.exists()
        if had_file:
            try:
                shutil.copyfile(self.path, self.backup_path)
            except OSError as e:
                raise PersistenceError(f"Could not back up {self.path} to {self.backup_path}: {e}") from e

        try:
            self._write(data)
        except (OSError, ValueError) as e:
            logger.error(f"Error writing taxes to {self.path}: {e}")
            self._restore(had_file, e)
            raise PersistenceError(
                f"Error writing taxes to {self.path}; file restored from {self.backup_path}"
                if had_file else f"Error writing taxes to {self.path}"
            ) from e

        logger.info(f"Committed {len(lines) - 1} tax records to {self.path}")

    def _write(self, data: bytes) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("wb") as f:
            f.write(data)

    def _restore(self, had_file: bool, cause: Exception) -> None:
        try:
            if had_file:
                shutil.copyfile(self.backup_path, self.path)
                logger.info(f"Restored {self.path} from {self.backup_path}")
            elif self.path.exists():
                # No prior file to go back to: drop the partial write
                os.remove(self.path)
        except OSError as restore_error:
            logger.error(f"Restore of {self.path} failed: {restore_error}")
            raise PersistenceError(
                f"Error writing taxes to {self.path} ({cause}); restore from backup also failed: {restore_error}"
            ) from restore_error
